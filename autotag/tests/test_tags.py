"""Tests for vault tag operations and tag history.

Notes are written to a temporary vault; the generation pipeline is
replaced with a mock so no backend is contacted.
"""

from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from autotag.dependencies import (
    ContentTooShortError,
    TagDependencies,
    VaultClient,
    VaultNotFoundError,
)
from autotag.providers.models import GenerationResult, TagSuggestion
from autotag.tags.history import TagHistory
from autotag.tags.tools import (
    apply_tags_to_note,
    batch_process,
    clear_tags_from_note,
    clear_tags_from_notes,
    generate_tags_for_note,
    has_existing_tags,
    normalize_path,
    resolve_note_paths,
    select_auto_apply,
)


def fake_generator(result: GenerationResult) -> Mock:
    """Create a generator mock returning a fixed result."""
    generator = Mock()
    generator.generate_tags_for_content = AsyncMock(return_value=result)
    return generator


def suggestions(*pairs: tuple[str, float]) -> GenerationResult:
    return GenerationResult(
        provider_id="openai",
        suggestions=[TagSuggestion(tag=tag, confidence=c) for tag, c in pairs],
    )


# =============================================================================
# Path Helper Tests
# =============================================================================


class TestPaths:
    """Tests for path normalization and resolution."""

    def test_normalize_path(self) -> None:
        assert normalize_path("test") == "test.md"
        assert normalize_path(" /Projects/API Design/ ") == "Projects/API Design.md"
        assert normalize_path("note.md") == "note.md"

    @pytest.mark.asyncio
    async def test_resolve_explicit_paths(self, mock_vault_client: VaultClient) -> None:
        paths = await resolve_note_paths(mock_vault_client, ["a", "b/c.md"])
        assert paths == ["a.md", "b/c.md"]

    @pytest.mark.asyncio
    async def test_resolve_folder(
        self, mock_vault_client: VaultClient, mock_vault_path: Path
    ) -> None:
        (mock_vault_path / "Projects").mkdir()
        (mock_vault_path / "Projects" / "one.md").write_text("x")
        (mock_vault_path / "Projects" / "two.md").write_text("x")

        paths = await resolve_note_paths(mock_vault_client, folder="/Projects/")
        assert paths == ["Projects/one.md", "Projects/two.md"]

    @pytest.mark.asyncio
    async def test_resolve_whole_vault(self, mock_vault_client: VaultClient) -> None:
        assert await resolve_note_paths(mock_vault_client) == ["test.md"]


# =============================================================================
# Generate Tests
# =============================================================================


class TestGenerateTagsForNote:
    """Tests for note-level generation."""

    @pytest.mark.asyncio
    async def test_generate(
        self, tag_deps: TagDependencies, mock_vault_path: Path, long_note: str
    ) -> None:
        (mock_vault_path / "api.md").write_text(long_note)
        generator = fake_generator(suggestions(("api", 0.9)))

        with patch("autotag.tags.tools.build_generator", return_value=generator):
            result = await generate_tags_for_note(tag_deps, "api")

        assert [s.tag for s in result.suggestions] == ["api"]
        generator.generate_tags_for_content.assert_awaited_once_with(long_note)

    @pytest.mark.asyncio
    async def test_too_short(self, tag_deps: TagDependencies) -> None:
        with pytest.raises(ContentTooShortError):
            await generate_tags_for_note(tag_deps, "test.md")

    @pytest.mark.asyncio
    async def test_missing_note(self, tag_deps: TagDependencies) -> None:
        with pytest.raises(VaultNotFoundError):
            await generate_tags_for_note(tag_deps, "missing")


# =============================================================================
# Apply and Clear Tests
# =============================================================================


class TestApplyAndClear:
    """Tests for writing and removing tags."""

    @pytest.mark.asyncio
    async def test_apply_writes_note(
        self, tag_deps: TagDependencies, mock_vault_path: Path
    ) -> None:
        (mock_vault_path / "note.md").write_text("Body #old")

        result = await apply_tags_to_note(tag_deps, "note", ["new"])

        assert result.changed is True
        assert result.final_tags == ["old", "new"]
        assert (mock_vault_path / "note.md").read_text() == "Body\n\n#old #new"

    @pytest.mark.asyncio
    async def test_apply_with_overrides(
        self, tag_deps: TagDependencies, mock_vault_path: Path
    ) -> None:
        (mock_vault_path / "note.md").write_text("Body")

        await apply_tags_to_note(
            tag_deps, "note.md", ["a"], tag_format="yaml", merge_mode="replace"
        )

        assert (mock_vault_path / "note.md").read_text() == '---\ntags: ["a"]\n---\n\nBody'

    @pytest.mark.asyncio
    async def test_unchanged_note_not_written(
        self, tag_deps: TagDependencies, mock_vault_path: Path
    ) -> None:
        (mock_vault_path / "note.md").write_text("Body\n\n#a")
        tag_deps.vault = Mock(wraps=tag_deps.vault)
        tag_deps.vault.write_file = AsyncMock()

        result = await apply_tags_to_note(tag_deps, "note", ["a"])

        assert result.changed is False
        tag_deps.vault.write_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clear_note(self, tag_deps: TagDependencies, mock_vault_path: Path) -> None:
        (mock_vault_path / "note.md").write_text("Body\n\n#a #b")

        await clear_tags_from_note(tag_deps, "note")

        assert (mock_vault_path / "note.md").read_text() == "Body"

    @pytest.mark.asyncio
    async def test_clear_many_counts_failures(
        self, tag_deps: TagDependencies, mock_vault_path: Path
    ) -> None:
        (mock_vault_path / "note.md").write_text("Body #a")

        result = await clear_tags_from_notes(tag_deps, ["note.md", "missing.md"])

        assert result.success == 1
        assert result.failed == 1
        assert result.failed_paths == ["missing.md"]


# =============================================================================
# Batch Tests
# =============================================================================


class TestBatchProcess:
    """Tests for sequential batch tagging."""

    @pytest.fixture
    def batch_vault(self, mock_vault_path: Path, long_note: str) -> Path:
        (mock_vault_path / "fresh.md").write_text(long_note)
        (mock_vault_path / "hashtagged.md").write_text(f"{long_note}\n\n#done")
        (mock_vault_path / "frontmatter.md").write_text(f"---\ntags: [done]\n---\n{long_note}")
        return mock_vault_path

    def test_select_auto_apply(self, tag_deps: TagDependencies) -> None:
        result = suggestions(("a", 0.9), ("b", 0.8), ("low", 0.1), ("c", 0.7), ("d", 0.6))
        assert [s.tag for s in select_auto_apply(result, tag_deps)] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_has_existing_tags(self, tag_deps: TagDependencies, batch_vault: Path) -> None:
        assert await has_existing_tags(tag_deps, "fresh.md") is False
        assert await has_existing_tags(tag_deps, "hashtagged.md") is True
        assert await has_existing_tags(tag_deps, "frontmatter.md") is True

    @pytest.mark.asyncio
    async def test_batch_outcomes(self, tag_deps: TagDependencies, batch_vault: Path) -> None:
        """Test processed, skipped and error notes are all counted."""
        generator = fake_generator(suggestions(("a", 0.9), ("b", 0.8), ("c", 0.7), ("d", 0.6)))
        paths = ["fresh.md", "hashtagged.md", "frontmatter.md", "test.md", "missing.md"]

        with patch("autotag.tags.tools.build_generator", return_value=generator):
            result = await batch_process(tag_deps, paths, skip_existing=True)

        assert (result.processed, result.skipped, result.errors) == (1, 3, 1)
        assert [item.status for item in result.items] == [
            "processed",
            "skipped",
            "skipped",
            "skipped",
            "error",
        ]
        assert result.items[0].tags == ["a", "b", "c"]
        assert (batch_vault / "fresh.md").read_text().endswith("#a #b #c")
        assert result.items[3].detail == "content too short"

    @pytest.mark.asyncio
    async def test_batch_without_skip(self, tag_deps: TagDependencies, batch_vault: Path) -> None:
        generator = fake_generator(suggestions(("done", 0.9), ("extra", 0.8)))

        with patch("autotag.tags.tools.build_generator", return_value=generator):
            result = await batch_process(tag_deps, ["hashtagged.md"], skip_existing=False)

        assert result.processed == 1
        assert result.items[0].tags == ["done", "extra"]

    @pytest.mark.asyncio
    async def test_generation_error_counted(
        self, tag_deps: TagDependencies, batch_vault: Path
    ) -> None:
        failed = GenerationResult(provider_id="openai", error="OpenAI returned HTTP 429")
        with patch("autotag.tags.tools.build_generator", return_value=fake_generator(failed)):
            result = await batch_process(tag_deps, ["fresh.md"])

        assert result.errors == 1
        assert result.items[0].detail == "OpenAI returned HTTP 429"

    @pytest.mark.asyncio
    async def test_pacing_between_notes(
        self, tag_deps: TagDependencies, batch_vault: Path, long_note: str
    ) -> None:
        """Test a pause follows each generated note except the last."""
        (batch_vault / "second.md").write_text(long_note)
        tag_deps.settings = tag_deps.settings.model_copy(update={"batch_delay_seconds": 0.5})
        generator = fake_generator(suggestions(("a", 0.9)))

        with (
            patch("autotag.tags.tools.build_generator", return_value=generator),
            patch("autotag.tags.tools.asyncio.sleep", new_callable=AsyncMock) as sleep,
        ):
            await batch_process(tag_deps, ["fresh.md", "hashtagged.md", "second.md"])

        sleep.assert_awaited_once_with(0.5)


# =============================================================================
# Tag History Tests
# =============================================================================


class TestTagHistory:
    """Tests for the in-memory decision history."""

    @pytest.fixture
    def history(self) -> TagHistory:
        history = TagHistory(max_size=3)
        history.add_entry(
            "Projects/python-api.md",
            applied=[TagSuggestion(tag="python", confidence=0.9)],
            rejected=[TagSuggestion(tag="java")],
        )
        history.add_entry(
            "Notes/python-tips.md",
            applied=[
                TagSuggestion(tag="python", confidence=0.8),
                TagSuggestion(tag="tips", confidence=0.6),
            ],
            rejected=[TagSuggestion(tag="tips")],
        )
        return history

    def test_add_entry(self, history: TagHistory) -> None:
        entry = history.entries[0]
        assert entry.file == "Notes/python-tips.md"
        assert entry.confidence == pytest.approx(0.7)
        assert entry.rejected_tags == ["tips"]

    def test_bounded_newest_first(self, history: TagHistory) -> None:
        for name in ("a", "b"):
            history.add_entry(f"{name}.md", applied=[TagSuggestion(tag=name)], rejected=[])

        assert [e.file for e in history.entries] == ["b.md", "a.md", "Notes/python-tips.md"]

    def test_popular_tags(self, history: TagHistory) -> None:
        popular = history.get_popular_tags()
        assert (popular[0].tag, popular[0].count) == ("python", 2)

    def test_performance(self, history: TagHistory) -> None:
        """Test success rates, best first, never-applied tags omitted."""
        performance = {p.tag: p.success_rate for p in history.get_tag_performance()}
        assert performance == {"python": 1.0, "tips": 0.5}

    def test_recommendations(self, history: TagHistory) -> None:
        assert history.get_recommendations("python notes")[0] == "python"
        assert history.get_recommendations("") == []

    def test_export_import(self, history: TagHistory) -> None:
        restored = TagHistory()
        assert restored.import_history(history.export_history()) is True
        assert [e.file for e in restored.entries] == [e.file for e in history.entries]

    def test_import_invalid(self, history: TagHistory) -> None:
        assert history.import_history('{"not": "a list"}') is False
        assert history.import_history("not json") is False
        assert len(history.entries) == 2

    def test_clear(self, history: TagHistory) -> None:
        history.clear()
        assert history.entries == []
