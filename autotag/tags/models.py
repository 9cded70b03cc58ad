"""Pydantic request/response models for the tag API."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from autotag.formats.codecs import TagFormat
from autotag.merge.models import MergeMode
from autotag.providers.models import TagSuggestion


def tag_names(items: list[TagSuggestion | str]) -> list[str]:
    """Flatten a mix of suggestions and plain strings to tag names."""
    return [item.tag if isinstance(item, TagSuggestion) else item for item in items]


class GenerateRequest(BaseModel):
    """Generate tags for raw note text."""

    content: str


class NoteRequest(BaseModel):
    """Address a single note by vault-relative path."""

    path: str = Field(..., min_length=1)


class MergeRequest(BaseModel):
    """Merge tags into note text without touching the vault.

    Format and mode fall back to the configured defaults when omitted.
    """

    content: str
    tags: list[str] = Field(default_factory=list)
    tag_format: TagFormat | None = None
    merge_mode: MergeMode | None = None


class ApplyRequest(BaseModel):
    """Merge approved tags into a vault note.

    Attributes:
        path: Vault-relative note path
        tags: Approved tags, as names or full suggestions
        rejected: Suggestions the user declined (recorded in history only)
        tag_format: Override of the configured tag format
        merge_mode: Override of the configured merge mode
    """

    path: str = Field(..., min_length=1)
    tags: list[TagSuggestion | str] = Field(default_factory=list)
    rejected: list[TagSuggestion | str] = Field(default_factory=list)
    tag_format: TagFormat | None = None
    merge_mode: MergeMode | None = None


class ClearRequest(BaseModel):
    """Remove tags from one or more notes."""

    paths: list[str] = Field(..., min_length=1)
    tag_format: TagFormat | None = None


class ClearResult(BaseModel):
    """Counts from a multi-note tag clear."""

    success: int = 0
    failed: int = 0
    failed_paths: list[str] = Field(default_factory=list)


class BatchRequest(BaseModel):
    """Generate and auto-apply tags for many notes, one at a time.

    Either list `paths` explicitly or give a `folder` (empty string for the
    whole vault). When both are omitted the whole vault is processed.
    """

    paths: list[str] | None = None
    folder: str | None = None
    skip_existing: bool = True


class BatchItem(BaseModel):
    """Per-note outcome of a batch run."""

    path: str
    status: Literal["processed", "skipped", "error"]
    tags: list[str] = Field(default_factory=list)
    detail: str | None = None


class BatchResult(BaseModel):
    """Summary of a batch run."""

    processed: int = 0
    skipped: int = 0
    errors: int = 0
    items: list[BatchItem] = Field(default_factory=list)


class TagHistoryEntry(BaseModel):
    """One user decision about generated tags for a note."""

    file: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    applied_tags: list[str] = Field(default_factory=list)
    rejected_tags: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class PopularTag(BaseModel):
    """Tag with the number of times it was applied."""

    tag: str
    count: int = Field(default=0, ge=0)


class TagPerformance(BaseModel):
    """Share of suggestions for a tag that the user accepted."""

    tag: str
    success_rate: float = Field(..., ge=0.0, le=1.0)


class RecommendationRequest(BaseModel):
    """Text to look up in the tag history."""

    content: str


class ErrorDetail(BaseModel):
    """Error details."""

    message: str
    type: str = "server_error"
    code: str | None = None


class ErrorResponse(BaseModel):
    """Error response body."""

    error: ErrorDetail
