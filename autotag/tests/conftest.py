"""Shared pytest fixtures."""

import os
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

# Set test defaults if not provided
if not os.environ.get("VAULT_PATH"):
    os.environ["VAULT_PATH"] = "/tmp/test-vault"

from fastapi.testclient import TestClient  # noqa: E402

from autotag.config import Settings  # noqa: E402
from autotag.dependencies import TagDependencies, VaultClient  # noqa: E402
from autotag.main import app  # noqa: E402
from autotag.providers.models import ProviderConfig  # noqa: E402


@pytest.fixture
def long_note() -> str:
    """Note text comfortably above the minimum content length."""
    return (
        "# API Design\n\n"
        "This note is about designing a REST API for the billing service. "
        "It covers resource naming, pagination and error handling."
    )


@pytest.fixture
def mock_vault_path(tmp_path: Path) -> Path:
    """Create a temporary vault directory with a test file."""
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "test.md").write_text("# Test")
    return vault


@pytest.fixture
def mock_vault_client(mock_vault_path: Path) -> VaultClient:
    """Create a VaultClient with temporary vault path."""
    return VaultClient(vault_path=mock_vault_path)


@pytest.fixture
def test_settings(mock_vault_path: Path) -> Settings:
    """Settings pointing at the temporary vault, with no batch pacing."""
    return Settings(
        vault_path=mock_vault_path,
        openai_api_key="sk-test-key",
        batch_delay_seconds=0,
        tag_format="hashtag",
        merge_mode="smart",
    )


@pytest.fixture
def tag_deps(mock_vault_client: VaultClient, test_settings: Settings) -> TagDependencies:
    """Create TagDependencies with mock vault client and test settings."""
    return TagDependencies(vault=mock_vault_client, trace_id="test-123", settings=test_settings)


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Connection settings for a fake backend."""
    return ProviderConfig(
        name="Test", base_url="http://backend.test/", api_key="sk-test", model="test-model"
    )


@pytest.fixture
def mock_http() -> Callable[..., httpx.AsyncClient]:
    """Factory for an AsyncClient answering every request with one handler.

    Usage:
        client = mock_http(lambda request: httpx.Response(200, json={...}))
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
