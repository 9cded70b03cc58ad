"""Vault-level tag operations.

This module binds the pure tagging core (generation pipeline, format
codecs, merge engine) to the vault: it reads a note, runs the core on
its text, and writes the result back. Each write follows a fresh read
of the same note, and batch work runs strictly one note at a time.

Example usage by the router:
    result = await generate_tags_for_note(deps, "Projects/API")
    merged = await apply_tags_to_note(deps, "Projects/API", ["api", "design"])
    summary = await batch_process(deps, ["a.md", "b.md"], skip_existing=True)
"""

import asyncio

from autotag.content.tools import normalize_content
from autotag.dependencies import ContentTooShortError, TagDependencies, VaultClient, logger
from autotag.formats.codecs import get_codec
from autotag.generation.generator import TagGenerator
from autotag.merge.models import MergeMode, MergeResult
from autotag.merge.tools import apply_merge
from autotag.providers.models import GenerationResult, TagSuggestion
from autotag.tags.models import BatchItem, BatchResult, ClearResult

# =============================================================================
# Helper Functions
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a note path for consistent handling.

    This function ensures all paths are in a consistent format:
    - Strips leading/trailing whitespace
    - Strips leading/trailing slashes
    - Appends .md extension if not present

    Args:
        path: Raw path input from the caller

    Returns:
        Normalized path with .md extension

    Examples:
        >>> normalize_path("test")
        'test.md'
        >>> normalize_path("/Projects/API Design/")
        'Projects/API Design.md'
        >>> normalize_path("note.md")
        'note.md'
    """
    path = path.strip().strip("/")
    if not path.endswith(".md"):
        path = f"{path}.md"
    return path


async def resolve_note_paths(
    vault: VaultClient, paths: list[str] | None = None, folder: str | None = None
) -> list[str]:
    """Turn an explicit path list or a folder into normalized note paths."""
    if paths:
        return [normalize_path(p) for p in paths]
    return await vault.list_files(folder=(folder or "").strip("/"))


def build_generator(deps: TagDependencies) -> TagGenerator:
    """Create a generator from the request's settings snapshot."""
    return TagGenerator(deps.settings.generation_options())


def select_auto_apply(result: GenerationResult, deps: TagDependencies) -> list[TagSuggestion]:
    """Pick the top suggestions to apply without user review."""
    settings = deps.settings
    limit = min(settings.auto_apply_limit, settings.max_tags)
    eligible = [s for s in result.suggestions if s.confidence >= settings.min_confidence]
    return eligible[:limit]


async def has_existing_tags(deps: TagDependencies, path: str) -> bool:
    """Check the metadata index, then the configured tag syntax, for tags."""
    if await deps.vault.get_known_tags(path):
        return True
    content = await deps.vault.read_file(path)
    return bool(get_codec(deps.settings.tag_format).extract_existing(content))


# =============================================================================
# Operations
# =============================================================================


async def generate_tags_for_note(deps: TagDependencies, path: str) -> GenerationResult:
    """Generate tag suggestions for a vault note.

    Args:
        deps: Request dependencies (vault, settings, trace id)
        path: Vault-relative note path

    Returns:
        GenerationResult from the active provider

    Raises:
        VaultNotFoundError: If the note does not exist
        ContentTooShortError: If the cleaned note is shorter than
            `min_content_length`
    """
    path = normalize_path(path)
    content = await deps.vault.read_file(path)

    if len(normalize_content(content)) < deps.settings.min_content_length:
        raise ContentTooShortError(f"Note content too short for tag generation: {path}")

    result = await build_generator(deps).generate_tags_for_content(content)
    logger.info(
        "note_tags_generated",
        extra={
            "path": path,
            "provider": result.provider_id,
            "count": len(result.suggestions),
            "error": result.error,
            "trace_id": deps.trace_id,
        },
    )
    return result


async def apply_tags_to_note(
    deps: TagDependencies,
    path: str,
    tags: list[str],
    tag_format: str | None = None,
    merge_mode: MergeMode | None = None,
) -> MergeResult:
    """Merge tags into a vault note and write it back if it changed.

    Args:
        deps: Request dependencies
        path: Vault-relative note path
        tags: Approved tag names
        tag_format: Override of the configured tag format
        merge_mode: Override of the configured merge mode

    Returns:
        MergeResult describing the update

    Raises:
        VaultNotFoundError: If the note does not exist
    """
    path = normalize_path(path)
    content = await deps.vault.read_file(path)
    result = apply_merge(
        content,
        tags,
        tag_format or deps.settings.tag_format,
        merge_mode or deps.settings.merge_mode,
    )
    if result.changed:
        await deps.vault.write_file(path, result.content)

    logger.info(
        "tags_applied",
        extra={
            "path": path,
            "format": result.tag_format,
            "mode": result.merge_mode,
            "tags": result.final_tags,
            "changed": result.changed,
            "trace_id": deps.trace_id,
        },
    )
    return result


async def clear_tags_from_note(
    deps: TagDependencies, path: str, tag_format: str | None = None
) -> MergeResult:
    """Remove all tags of the configured syntax from a note."""
    return await apply_tags_to_note(deps, path, [], tag_format=tag_format, merge_mode="replace")


async def clear_tags_from_notes(
    deps: TagDependencies, paths: list[str], tag_format: str | None = None
) -> ClearResult:
    """Clear tags from several notes, counting failures instead of stopping."""
    summary = ClearResult()
    for path in paths:
        try:
            await clear_tags_from_note(deps, path, tag_format=tag_format)
            summary.success += 1
        except Exception as e:
            logger.error(
                "clear_tags_failed",
                extra={"path": path, "error": str(e), "trace_id": deps.trace_id},
                exc_info=True,
            )
            summary.failed += 1
            summary.failed_paths.append(path)
    return summary


async def _process_one(deps: TagDependencies, path: str, skip_existing: bool) -> BatchItem:
    if skip_existing and await has_existing_tags(deps, path):
        return BatchItem(path=path, status="skipped", detail="already tagged")

    try:
        result = await generate_tags_for_note(deps, path)
    except ContentTooShortError:
        return BatchItem(path=path, status="skipped", detail="content too short")

    if result.error:
        return BatchItem(path=path, status="error", detail=result.error)

    selected = select_auto_apply(result, deps)
    if not selected:
        return BatchItem(path=path, status="processed", detail="no high-confidence tags")

    merged = await apply_tags_to_note(deps, path, [s.tag for s in selected])
    return BatchItem(path=path, status="processed", tags=merged.final_tags)


async def batch_process(
    deps: TagDependencies, paths: list[str], skip_existing: bool = True
) -> BatchResult:
    """Generate and auto-apply tags for notes one after another.

    A pause of `batch_delay_seconds` follows each note that reached the
    provider, to stay under backend rate limits. Failures are counted
    per note and never abort the batch.

    Args:
        deps: Request dependencies
        paths: Normalized vault-relative note paths
        skip_existing: Skip notes that already carry tags

    Returns:
        BatchResult with counts and per-note outcomes
    """
    summary = BatchResult()
    delay = deps.settings.batch_delay_seconds

    for index, path in enumerate(paths):
        try:
            item = await _process_one(deps, path, skip_existing)
        except Exception as e:
            logger.error(
                "batch_item_failed",
                extra={"path": path, "error": str(e), "trace_id": deps.trace_id},
                exc_info=True,
            )
            item = BatchItem(path=path, status="error", detail=str(e))

        summary.items.append(item)
        if item.status == "processed":
            summary.processed += 1
        elif item.status == "skipped":
            summary.skipped += 1
        else:
            summary.errors += 1

        reached_provider = item.status != "skipped"
        if reached_provider and delay and index < len(paths) - 1:
            await asyncio.sleep(delay)

    logger.info(
        "batch_complete",
        extra={
            "processed": summary.processed,
            "skipped": summary.skipped,
            "errors": summary.errors,
            "trace_id": deps.trace_id,
        },
    )
    return summary
