"""Pydantic models for the tag generation pipeline."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from autotag.providers.models import ProviderConfig


class GenerationOptions(BaseModel):
    """Frozen view of the settings used by one generation call.

    Attributes:
        active_provider: Provider id to call ('openai', 'claude', 'ollama')
        providers: Connection settings keyed by provider id
        prompt_template: Prompt containing a `{content}` placeholder
        max_tags: Maximum suggestions kept from the backend reply
        min_confidence: Suggestions below this score are dropped
        enable_hierarchy: Group suggestions into parent/child tags
        request_timeout: HTTP timeout in seconds
        max_content_chars: Truncate normalized content to this length (None = no limit)
    """

    model_config = ConfigDict(frozen=True)

    active_provider: str
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    prompt_template: str = "{content}"
    max_tags: int = Field(default=10, ge=1)
    min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    enable_hierarchy: bool = False
    request_timeout: float = Field(default=60.0, gt=0)
    max_content_chars: int | None = Field(default=None, gt=0)

    @field_validator("prompt_template")
    @classmethod
    def ensure_placeholder(cls, v: str) -> str:
        """Append the content placeholder when a custom prompt forgot it."""
        if "{content}" not in v:
            return f"{v.rstrip()}\n\n{{content}}"
        return v
