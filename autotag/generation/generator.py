"""Tag generation orchestrator.

TagGenerator runs the full pipeline for one piece of note text:

    normalize -> provider request -> parse -> confidence filter -> hierarchy

It is built from a frozen GenerationOptions snapshot. When settings
change, build a new generator rather than mutating this one.

Example:
    generator = TagGenerator(get_settings().generation_options())
    result = await generator.generate_tags_for_content(note_text)
    if result.error:
        ...
"""

import httpx

from autotag.content.tools import analyze_content, normalize_content, truncate_content
from autotag.dependencies import ProviderNotConfiguredError, logger
from autotag.generation.models import GenerationOptions
from autotag.generation.tools import build_hierarchy, filter_by_confidence
from autotag.providers.clients import PROVIDER_CLASSES, BaseTagProvider, get_provider
from autotag.providers.models import GenerationResult


class TagGenerator:
    """Compose the generation pipeline over the configured providers."""

    def __init__(
        self, options: GenerationOptions, client: httpx.AsyncClient | None = None
    ) -> None:
        self.options = options
        self.providers: dict[str, BaseTagProvider] = {
            provider_id: get_provider(
                provider_id, config, timeout=options.request_timeout, client=client
            )
            for provider_id, config in options.providers.items()
            if provider_id in PROVIDER_CLASSES
        }

    def prepare_content(self, raw: str) -> str:
        """Normalize note text and apply the optional length cap."""
        content = normalize_content(raw)
        if self.options.max_content_chars:
            content = truncate_content(content, self.options.max_content_chars)
        return content

    async def generate_tags_for_content(self, raw: str) -> GenerationResult:
        """Generate filtered (and optionally hierarchical) tag suggestions.

        Args:
            raw: Note text as stored; it is normalized before sending

        Returns:
            GenerationResult. Unknown providers, missing credentials and
            backend failures are reported in `error`; nothing is raised.
        """
        provider_id = self.options.active_provider
        provider = self.providers.get(provider_id)
        if provider is None:
            logger.warning("provider_not_found", extra={"provider": provider_id})
            return GenerationResult(
                provider_id=provider_id, error=f"Provider not found: {provider_id}"
            )

        try:
            provider.ensure_configured()
        except ProviderNotConfiguredError as e:
            logger.warning("provider_not_configured", extra={"provider": provider_id})
            return GenerationResult(provider_id=provider_id, error=str(e))

        content = self.prepare_content(raw)
        analysis = analyze_content(content)
        result = await provider.generate_tags(
            content, self.options.prompt_template, self.options.max_tags
        )
        if result.error:
            return result

        suggestions = filter_by_confidence(result.suggestions, self.options.min_confidence)
        if self.options.enable_hierarchy:
            suggestions = build_hierarchy(suggestions)

        logger.info(
            "tags_generated",
            extra={
                "provider": provider_id,
                "returned": len(result.suggestions),
                "kept": len(suggestions),
                "elapsed_ms": result.processing_time_ms,
                "word_count": analysis.word_count,
                "complexity": round(analysis.complexity, 2),
            },
        )
        return result.model_copy(update={"suggestions": suggestions})
