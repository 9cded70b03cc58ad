"""Pydantic models for content analysis."""

from pydantic import BaseModel, Field


class ContentAnalysis(BaseModel):
    """Lightweight statistics about a note's cleaned text.

    Attributes:
        keywords: Most frequent words, most common first
        topics: Short phrases following topic cues ('about X', 'X theory')
        word_count: Number of words longer than two characters
        complexity: Rough readability score between 0.0 and 1.0
    """

    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    complexity: float = Field(default=0.0, ge=0.0, le=1.0)
