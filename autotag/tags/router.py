"""FastAPI router for the /v1/tags endpoints."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from autotag.config import get_settings
from autotag.dependencies import (
    ContentTooShortError,
    TagDependencies,
    VaultClient,
    VaultNotFoundError,
    VaultSecurityError,
    get_vault_client,
    logger,
)
from autotag.generation.generator import TagGenerator
from autotag.merge.models import MergeResult
from autotag.merge.tools import apply_merge
from autotag.providers.models import GenerationResult, TagSuggestion
from autotag.tags.history import tag_history
from autotag.tags.models import (
    ApplyRequest,
    BatchRequest,
    BatchResult,
    ClearRequest,
    ClearResult,
    ErrorDetail,
    ErrorResponse,
    GenerateRequest,
    MergeRequest,
    NoteRequest,
    PopularTag,
    RecommendationRequest,
    TagPerformance,
    tag_names,
)
from autotag.tags.tools import (
    apply_tags_to_note,
    batch_process,
    clear_tags_from_notes,
    generate_tags_for_note,
    normalize_path,
    resolve_note_paths,
)

router = APIRouter(prefix="/v1/tags", tags=["tags"])


def get_trace_id(req: Request) -> str:
    return req.headers.get("X-Trace-Id", str(uuid.uuid4()))


def error_response(status_code: int, message: str, type_: str, code: str) -> HTTPException:
    """Build an HTTPException carrying an ErrorResponse body."""
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(
            error=ErrorDetail(message=message, type=type_, code=code)
        ).model_dump(),
    )


def map_error(e: Exception, trace_id: str, event: str) -> HTTPException:
    """Translate a host-layer exception into an HTTP error.

    Args:
        e: The exception raised by a tag operation
        trace_id: Request trace id for the log record
        event: Log event name used for unexpected failures

    Returns:
        HTTPException to raise from the endpoint
    """
    if isinstance(e, VaultNotFoundError):
        return error_response(
            status.HTTP_404_NOT_FOUND, str(e), "invalid_request_error", "note_not_found"
        )
    if isinstance(e, VaultSecurityError):
        return error_response(
            status.HTTP_403_FORBIDDEN, str(e), "invalid_request_error", "path_forbidden"
        )
    if isinstance(e, ContentTooShortError):
        return error_response(
            status.HTTP_400_BAD_REQUEST, str(e), "invalid_request_error", "content_too_short"
        )

    logger.error(event, extra={"trace_id": trace_id, "error": str(e)}, exc_info=True)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, f"Tagging error: {e!s}", "server_error", "tag_error"
    )


# =============================================================================
# Core endpoints (no vault access)
# =============================================================================


@router.post("/generate", response_model=GenerationResult)
async def generate(request: GenerateRequest, req: Request) -> GenerationResult:
    """Generate tag suggestions for raw note text."""
    trace_id = get_trace_id(req)
    logger.info(
        "generate_request_received",
        extra={"trace_id": trace_id, "chars": len(request.content)},
    )
    generator = TagGenerator(get_settings().generation_options())
    return await generator.generate_tags_for_content(request.content)


@router.post("/merge", response_model=MergeResult)
async def merge(request: MergeRequest) -> MergeResult:
    """Merge tags into note text and return the result without writing."""
    settings = get_settings()
    try:
        return apply_merge(
            request.content,
            request.tags,
            request.tag_format or settings.tag_format,
            request.merge_mode or settings.merge_mode,
        )
    except ValueError as e:
        raise error_response(
            status.HTTP_400_BAD_REQUEST, str(e), "invalid_request_error", "invalid_merge"
        )


# =============================================================================
# Vault note endpoints
# =============================================================================


@router.post("/notes/generate", response_model=GenerationResult)
async def generate_for_note(
    request: NoteRequest,
    req: Request,
    vault: VaultClient = Depends(get_vault_client),
) -> GenerationResult:
    """Generate tag suggestions for a note in the vault.

    Returns 404 when the note is missing and 400 when it is too short.
    """
    deps = TagDependencies(vault=vault, trace_id=get_trace_id(req))
    try:
        return await generate_tags_for_note(deps, request.path)
    except Exception as e:
        raise map_error(e, deps.trace_id, "note_generate_failed")


@router.post("/notes/apply", response_model=MergeResult)
async def apply_to_note(
    request: ApplyRequest,
    req: Request,
    vault: VaultClient = Depends(get_vault_client),
) -> MergeResult:
    """Merge approved tags into a note and record the decision in history."""
    deps = TagDependencies(vault=vault, trace_id=get_trace_id(req))
    try:
        result = await apply_tags_to_note(
            deps,
            request.path,
            tag_names(request.tags),
            tag_format=request.tag_format,
            merge_mode=request.merge_mode,
        )
    except Exception as e:
        raise map_error(e, deps.trace_id, "note_apply_failed")

    tag_history.add_entry(
        normalize_path(request.path),
        applied=_as_suggestions(request.tags),
        rejected=_as_suggestions(request.rejected),
    )
    return result


@router.post("/notes/clear", response_model=ClearResult)
async def clear_notes(
    request: ClearRequest,
    req: Request,
    vault: VaultClient = Depends(get_vault_client),
) -> ClearResult:
    """Remove tags of the configured syntax from each listed note."""
    deps = TagDependencies(vault=vault, trace_id=get_trace_id(req))
    return await clear_tags_from_notes(deps, request.paths, tag_format=request.tag_format)


@router.post("/batch", response_model=BatchResult)
async def batch(
    request: BatchRequest,
    req: Request,
    vault: VaultClient = Depends(get_vault_client),
) -> BatchResult:
    """Generate and auto-apply tags for a list of notes or a folder."""
    deps = TagDependencies(vault=vault, trace_id=get_trace_id(req))
    try:
        paths = await resolve_note_paths(vault, request.paths, request.folder)
    except Exception as e:
        raise map_error(e, deps.trace_id, "batch_resolve_failed")

    logger.info(
        "batch_request_received",
        extra={
            "trace_id": deps.trace_id,
            "notes": len(paths),
            "skip_existing": request.skip_existing,
        },
    )
    return await batch_process(deps, paths, skip_existing=request.skip_existing)


# =============================================================================
# History endpoints
# =============================================================================


@router.get("/history/popular", response_model=list[PopularTag])
async def popular_tags(limit: int = Query(default=20, ge=1, le=100)) -> list[PopularTag]:
    return tag_history.get_popular_tags(limit)


@router.get("/history/performance", response_model=list[TagPerformance])
async def tag_performance() -> list[TagPerformance]:
    return tag_history.get_tag_performance()


@router.post("/history/recommendations", response_model=list[str])
async def recommendations(
    request: RecommendationRequest, limit: int = Query(default=10, ge=1, le=50)
) -> list[str]:
    """Suggest previously applied tags for similar notes."""
    return tag_history.get_recommendations(request.content, limit)


def _as_suggestions(items: list[TagSuggestion | str]) -> list[TagSuggestion]:
    return [
        item if isinstance(item, TagSuggestion) else TagSuggestion(tag=item)
        for item in items
        if isinstance(item, TagSuggestion) or item.strip()
    ]
