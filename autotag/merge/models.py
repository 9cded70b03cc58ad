"""Pydantic models for tag merging."""

from typing import Literal

from pydantic import BaseModel, Field

from autotag.formats.codecs import TagFormat

MergeMode = Literal["append", "replace", "smart"]


class MergeResult(BaseModel):
    """Outcome of merging tags into a note.

    Attributes:
        content: Updated note text (equal to the input when unchanged)
        changed: Whether the text differs from the input
        existing_tags: Tags found in the note before merging
        final_tags: Tags the note carries after merging
        tag_format: Syntax used to read and write the tags
        merge_mode: Policy used to combine existing and new tags
    """

    content: str
    changed: bool = False
    existing_tags: list[str] = Field(default_factory=list)
    final_tags: list[str] = Field(default_factory=list)
    tag_format: TagFormat
    merge_mode: MergeMode
