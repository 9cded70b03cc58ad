"""Shared dependencies: VaultClient, error types and structured logger."""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import frontmatter

from autotag.config import Settings, get_settings
from autotag.formats.codecs import tag_values

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        data.update(
            {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS}
        )
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    settings = get_settings()
    logger = logging.getLogger("autotag")
    logger.setLevel(getattr(logging, settings.log_level.upper()))
    logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


logger = setup_logging()


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class VaultNotFoundError(VaultError):
    """Raised when a file is not found in the vault."""

    pass


class VaultSecurityError(VaultError):
    """Raised when a security violation is detected."""

    pass


class TaggingError(Exception):
    """Base exception for tag generation."""

    pass


class ProviderNotConfiguredError(TaggingError):
    """Raised when a provider is missing a required credential."""

    pass


class ProviderRequestError(TaggingError):
    """Raised inside a provider when the backend call fails."""

    pass


class ContentTooShortError(TaggingError):
    """Raised when a note has too little text to tag."""

    pass


@dataclass
class VaultClient:
    """Client for interacting with Obsidian vault."""

    vault_path: Path

    def _validate_path(self, relative_path: str) -> Path:
        """Validate and resolve a path within the vault.

        Args:
            relative_path: Relative path within the vault

        Returns:
            Resolved absolute path

        Raises:
            VaultSecurityError: If path traversal is detected
        """
        full_path = (self.vault_path / relative_path).resolve()
        if not full_path.is_relative_to(self.vault_path.resolve()):
            raise VaultSecurityError(f"Path traversal detected: {relative_path}")
        return full_path

    async def read_file(self, path: str) -> str:
        """Read a file from the vault.

        Args:
            path: Relative path to file

        Returns:
            File content as string

        Raises:
            VaultNotFoundError: If file does not exist
        """
        full_path = self._validate_path(path)
        if not full_path.exists():
            raise VaultNotFoundError(f"File not found: {path}")
        return full_path.read_text(encoding="utf-8")

    async def write_file(self, path: str, content: str) -> None:
        """Write content to a file in the vault.

        Args:
            path: Relative path to file
            content: Content to write
        """
        full_path = self._validate_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")

    async def file_exists(self, path: str) -> bool:
        """Check if a file exists in the vault.

        Args:
            path: Relative path to file

        Returns:
            True if file exists, False otherwise
        """
        try:
            full_path = self._validate_path(path)
            return full_path.exists()
        except VaultSecurityError:
            return False

    async def list_files(self, folder: str = "", pattern: str = "*.md") -> list[str]:
        """List files in the vault matching a pattern.

        Args:
            folder: Folder to search in (empty for root)
            pattern: Glob pattern for files

        Returns:
            List of relative file paths
        """
        base = self._validate_path(folder) if folder else self.vault_path
        return sorted(
            str(f.relative_to(self.vault_path)) for f in base.rglob(pattern) if f.is_file()
        )

    async def get_known_tags(self, path: str) -> list[str]:
        """Return the tags recorded in a note's YAML frontmatter.

        This is the metadata view of a note: it only looks at the
        frontmatter `tags` key, not at hashtags or links in the body.

        Args:
            path: Relative path to file

        Returns:
            List of tag strings (empty when the note has none or the
            frontmatter cannot be parsed)
        """
        content = await self.read_file(path)
        try:
            post = frontmatter.loads(content)
        except Exception as e:
            logger.debug("frontmatter_parse_failed", extra={"path": path, "error": str(e)})
            return []

        return tag_values(post.metadata.get("tags"))


async def get_vault_client() -> AsyncIterator[VaultClient]:
    """FastAPI dependency provider for VaultClient."""
    yield VaultClient(vault_path=get_settings().vault_path)


@dataclass
class TagDependencies:
    """Collaborators for one tagging request.

    Settings are resolved once per request so a request never sees a
    configuration change halfway through.
    """

    vault: VaultClient
    trace_id: str
    settings: Settings = field(default_factory=get_settings)
