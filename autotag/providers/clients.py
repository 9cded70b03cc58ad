"""HTTP adapters for the supported text-generation backends.

Each adapter speaks one wire protocol and exposes the same coroutine:

    result = await provider.generate_tags(content, prompt_template, max_tags)

The coroutine always resolves to a GenerationResult. Transport errors,
HTTP error statuses and malformed reply payloads are reported through
`GenerationResult.error` so batch callers can keep going.

Example:
    provider = get_provider("ollama", config, timeout=30.0)
    result = await provider.generate_tags(text, "Tag this: {content}", 5)
"""

import time
from typing import Any, ClassVar

import httpx

from autotag.dependencies import ProviderNotConfiguredError, ProviderRequestError, logger
from autotag.providers.models import GenerationResult, ProviderConfig
from autotag.providers.parser import parse_tag_response

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates relevant tags for text content. "
    'Return tags as a JSON array of objects with "tag" and "confidence" fields.'
)
ANTHROPIC_VERSION = "2023-06-01"


def render_prompt(template: str, content: str) -> str:
    """Substitute the note content into the first `{content}` placeholder."""
    return template.replace("{content}", content, 1)


class BaseTagProvider:
    """Shared request/response handling for all backends.

    Subclasses describe their protocol through `endpoint`, `headers`,
    `build_payload` and `extract_text`; everything else (timing, error
    capture, parsing, truncation) lives here.
    """

    provider_id: ClassVar[str] = ""
    requires_api_key: ClassVar[bool] = True
    endpoint_path: ClassVar[str] = ""

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.timeout = timeout
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url}{self.endpoint_path}"

    def ensure_configured(self) -> None:
        """Raise ProviderNotConfiguredError if a required credential is missing."""
        if self.requires_api_key and not self.config.api_key:
            raise ProviderNotConfiguredError(f"API key not configured for {self.provider_id}")

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_payload(self, prompt: str) -> dict[str, Any]:
        raise NotImplementedError

    def extract_text(self, data: Any) -> str:
        raise NotImplementedError

    async def _post(self, payload: dict[str, Any]) -> Any:
        if self._client is not None:
            response = await self._client.post(self.endpoint, headers=self.headers(), json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, headers=self.headers(), json=payload)
        response.raise_for_status()
        return response.json()

    async def _request_text(self, prompt: str) -> str:
        """Send one request and return the backend's reply text.

        Raises:
            ProviderRequestError: On transport, status or payload errors
        """
        try:
            data = await self._post(self.build_payload(prompt))
        except httpx.HTTPStatusError as e:
            raise ProviderRequestError(
                f"{self.config.name} returned HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ProviderRequestError(f"{self.config.name} request failed: {e!s}") from e
        except ValueError as e:
            raise ProviderRequestError(f"{self.config.name} returned invalid JSON") from e

        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestError(f"Unexpected {self.config.name} response shape") from e
        if not isinstance(text, str):
            raise ProviderRequestError(f"Unexpected {self.config.name} response shape")
        return text

    async def generate_tags(
        self, content: str, prompt_template: str, max_tags: int
    ) -> GenerationResult:
        """Ask the backend for tags describing `content`.

        Args:
            content: Normalized note text
            prompt_template: Prompt with a `{content}` placeholder
            max_tags: Maximum number of suggestions to keep

        Returns:
            GenerationResult with suggestions or an error message
        """
        start = time.monotonic()
        try:
            reply = await self._request_text(render_prompt(prompt_template, content))
        except ProviderRequestError as e:
            elapsed = int((time.monotonic() - start) * 1000)
            logger.warning(
                "provider_request_failed",
                extra={"provider": self.provider_id, "error": str(e), "elapsed_ms": elapsed},
            )
            return GenerationResult(
                provider_id=self.provider_id, processing_time_ms=elapsed, error=str(e)
            )

        suggestions = parse_tag_response(reply)[: max(max_tags, 0)]
        elapsed = int((time.monotonic() - start) * 1000)
        logger.info(
            "provider_reply_parsed",
            extra={
                "provider": self.provider_id,
                "count": len(suggestions),
                "elapsed_ms": elapsed,
            },
        )
        return GenerationResult(
            suggestions=suggestions, processing_time_ms=elapsed, provider_id=self.provider_id
        )


class OpenAIProvider(BaseTagProvider):
    """Chat-completion protocol (OpenAI and compatible servers)."""

    provider_id = "openai"
    endpoint_path = "/chat/completions"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "Authorization": f"Bearer {self.config.api_key}"}

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 500,
            "temperature": 0.3,
        }

    def extract_text(self, data: Any) -> str:
        return data["choices"][0]["message"]["content"]


class ClaudeProvider(BaseTagProvider):
    """Anthropic messages protocol."""

    provider_id = "claude"
    endpoint_path = "/v1/messages"

    def headers(self) -> dict[str, str]:
        return {
            **super().headers(),
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "max_tokens": 500,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: Any) -> str:
        return data["content"][0]["text"]


class OllamaProvider(BaseTagProvider):
    """Local Ollama generate protocol; no credential required."""

    provider_id = "ollama"
    requires_api_key = False
    endpoint_path = "/api/generate"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.3, "num_predict": 200},
        }

    def extract_text(self, data: Any) -> str:
        return data["response"]


PROVIDER_CLASSES: dict[str, type[BaseTagProvider]] = {
    OpenAIProvider.provider_id: OpenAIProvider,
    ClaudeProvider.provider_id: ClaudeProvider,
    OllamaProvider.provider_id: OllamaProvider,
}


def get_provider(
    provider_id: str,
    config: ProviderConfig,
    timeout: float = 60.0,
    client: httpx.AsyncClient | None = None,
) -> BaseTagProvider:
    """Instantiate the adapter registered for `provider_id`.

    Raises:
        KeyError: If no adapter is registered under that id
    """
    return PROVIDER_CLASSES[provider_id](config, timeout=timeout, client=client)
