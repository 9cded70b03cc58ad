"""Environment configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from autotag.generation.models import GenerationOptions
from autotag.providers.models import ProviderConfig

# Load .env file early to ensure environment variables are set
load_dotenv()

DEFAULT_PROMPT = (
    "Generate relevant tags for the following content. Requirements: "
    "1. Tags must be highly relevant to the content "
    "2. Use the same language as the content "
    "3. Each tag should not exceed 4 words "
    "4. Each tag must be unique, no duplicates "
    '5. Return only a JSON array of objects with "tag" and "confidence" fields, '
    "no explanations. Content: {content}"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    vault_path: Path
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    allowed_origins: str = "app://obsidian.md"

    active_provider: Literal["openai", "claude", "ollama"] = "openai"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_enabled: bool = True

    claude_api_key: str = ""
    claude_base_url: str = "https://api.anthropic.com"
    claude_model: str = "claude-sonnet-4-0"
    claude_enabled: bool = False

    ollama_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"
    ollama_enabled: bool = False

    prompt_template: str = DEFAULT_PROMPT
    max_tags: int = Field(default=10, ge=1, le=50)
    min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    enable_hierarchy: bool = False
    tag_format: Literal["hashtag", "yaml", "inline", "both"] = "hashtag"
    merge_mode: Literal["append", "replace", "smart"] = "smart"

    request_timeout: float = Field(default=60.0, gt=0)
    max_content_chars: int | None = Field(default=None, gt=0)
    min_content_length: int = Field(default=50, ge=0)
    batch_delay_seconds: float = Field(default=1.0, ge=0)
    auto_apply_limit: int = Field(default=3, ge=1)

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse allowed origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",")]

    def provider_configs(self) -> dict[str, ProviderConfig]:
        """Build one ProviderConfig per backend from the flat settings."""
        return {
            "openai": ProviderConfig(
                name="OpenAI",
                base_url=self.openai_base_url,
                api_key=self.openai_api_key,
                model=self.openai_model,
                enabled=self.openai_enabled,
            ),
            "claude": ProviderConfig(
                name="Claude",
                base_url=self.claude_base_url,
                api_key=self.claude_api_key,
                model=self.claude_model,
                enabled=self.claude_enabled,
            ),
            "ollama": ProviderConfig(
                name="Ollama",
                base_url=self.ollama_base_url,
                api_key=self.ollama_api_key,
                model=self.ollama_model,
                enabled=self.ollama_enabled,
            ),
        }

    def generation_options(self) -> GenerationOptions:
        """Snapshot the settings used by a single generation call."""
        return GenerationOptions(
            active_provider=self.active_provider,
            providers=self.provider_configs(),
            prompt_template=self.prompt_template,
            max_tags=self.max_tags,
            min_confidence=self.min_confidence,
            enable_hierarchy=self.enable_hierarchy,
            request_timeout=self.request_timeout,
            max_content_chars=self.max_content_chars,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
