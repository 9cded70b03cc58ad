"""Pydantic models shared by the tag providers.

These are the values that cross the provider boundary: the per-backend
connection settings going in, and the scored suggestions coming out.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ProviderType = Literal["openai", "claude", "ollama"]
TagSource = Literal["keyword", "topic", "existing", "llm"]


class ProviderConfig(BaseModel):
    """Connection settings for one text-generation backend.

    Frozen so that a generation call always sees the configuration it
    started with.

    Attributes:
        name: Display name (e.g., 'OpenAI')
        base_url: API root without trailing slash
        api_key: Credential, empty when the backend needs none
        model: Model identifier sent in the request body
        enabled: Whether the user switched this backend on
    """

    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str
    api_key: str = ""
    model: str
    enabled: bool = True

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so endpoint paths join cleanly."""
        return v.rstrip("/")


class TagSuggestion(BaseModel):
    """Suggested tag with confidence.

    Attributes:
        tag: The suggested tag name, trimmed and non-empty
        confidence: Confidence score between 0.0 and 1.0
        source: Where the suggestion came from
        category: Optional grouping ('parent', 'child' or a backend label)
        description: Optional explanation from the backend
    """

    tag: str = Field(..., min_length=1)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    source: TagSource = "llm"
    category: str | None = None
    description: str | None = None

    @field_validator("tag")
    @classmethod
    def strip_tag(cls, v: str) -> str:
        """Trim surrounding whitespace from the tag."""
        v = v.strip()
        if not v:
            raise ValueError("tag must not be blank")
        return v


class GenerationResult(BaseModel):
    """Outcome of one generation call.

    A failed call carries an `error` message and no suggestions; the
    elapsed time is reported either way.
    """

    suggestions: list[TagSuggestion] = Field(default_factory=list)
    processing_time_ms: int = Field(default=0, ge=0)
    provider_id: str
    error: str | None = None

    @model_validator(mode="after")
    def drop_suggestions_on_error(self) -> "GenerationResult":
        if self.error and self.suggestions:
            self.suggestions = []
        return self
