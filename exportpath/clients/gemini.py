"""Client wrapper for interacting with Google Gemini models."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Tuple

import google.generativeai as genai
from google.api_core.exceptions import (
    GoogleAPICallError,
    NotFound,
    ResourceExhausted,
    TooManyRequests,
)
from google.generativeai.types import Tool as SdkTool

from exportpath.core.config import GeminiSettings
from exportpath.core.errors import ConfigurationError, RemoteServiceError


_TEXT_FALLBACKS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
)
_VISION_FALLBACKS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
)
_JSON_MIME_TYPE = "application/json"

logger = logging.getLogger(__name__)


class GeminiModelError(RemoteServiceError):
    """Raised when Gemini cannot fulfill a request."""


class _GoogleSearchTool(SdkTool):
    """Search grounding tool understood by Gemini 2.x models.

    The SDK rebuilds plain ``protos.Tool`` values from the 1.5-era
    ``google_search_retrieval`` field only, dropping ``google_search``, so the
    proto is carried on the SDK wrapper, which is passed through unchanged.
    """

    def __init__(self) -> None:
        super().__init__()
        self._proto = genai.protos.Tool(google_search=genai.protos.Tool.GoogleSearch())


class GeminiClient:
    """Provide helper methods for grounded research and structured generation."""

    def __init__(self, settings: GeminiSettings) -> None:
        if not settings.api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY (or GOOGLE_API_KEY) is not set; it is required "
                "to call Gemini directly."
            )
        self._settings = settings
        # Configure the global client once per process.
        genai.configure(api_key=settings.api_key)

    async def grounded_research(self, prompt: str) -> Tuple[str, List[Dict[str, str]]]:
        """Run a Google Search grounded generation; return text and web sources."""

        def _invoke() -> Any:
            return self._invoke_with_models(
                models=self._text_model_candidates(),
                env_var="GEMINI_MODEL_NAME",
                error_prefix="Gemini grounded research failed",
                call=lambda model: model.generate_content(
                    prompt,
                    tools=[_GoogleSearchTool()],
                    generation_config=genai.GenerationConfig(
                        temperature=self._settings.temperature,
                    ),
                    safety_settings=[],
                    request_options={"timeout": self._settings.request_timeout_seconds},
                ),
            )

        response = await self._run(_invoke, "Gemini grounded research")
        return _response_text(response), _extract_citations(response)

    async def generate_structured(
        self,
        prompt: str,
        *,
        response_schema: Dict[str, Any],
        system_instruction: str | None = None,
        temperature: float | None = None,
        response_mime_type: str | None = None,
    ) -> str:
        """Request schema-constrained JSON and return the raw response text."""
        generation_config = genai.GenerationConfig(
            temperature=(
                self._settings.temperature if temperature is None else temperature
            ),
            response_mime_type=response_mime_type or _JSON_MIME_TYPE,
            response_schema=response_schema,
        )

        def _invoke() -> Any:
            return self._invoke_with_models(
                models=self._text_model_candidates(),
                env_var="GEMINI_MODEL_NAME",
                error_prefix="Gemini structured generate_content failed",
                system_instruction=system_instruction,
                call=lambda model: model.generate_content(
                    prompt,
                    generation_config=generation_config,
                    safety_settings=[],
                    request_options={"timeout": self._settings.request_timeout_seconds},
                ),
            )

        response = await self._run(_invoke, "Gemini structured generation")
        return _response_text(response)

    async def vision_structured(
        self,
        *,
        prompt: str,
        image_base64: str,
        mime_type: str,
        response_schema: Dict[str, Any],
    ) -> str:
        """Describe an image as schema-constrained JSON."""
        generation_config = genai.GenerationConfig(
            temperature=self._settings.temperature,
            response_mime_type=_JSON_MIME_TYPE,
            response_schema=response_schema,
        )

        def _invoke() -> Any:
            return self._invoke_with_models(
                models=self._vision_model_candidates(),
                env_var="GEMINI_VISION_MODEL_NAME",
                error_prefix="Gemini vision generate_content failed",
                call=lambda model: model.generate_content(
                    [
                        {"mime_type": mime_type, "data": image_base64},
                        prompt,
                    ],
                    generation_config=generation_config,
                    safety_settings=[],
                    request_options={"timeout": self._settings.request_timeout_seconds},
                ),
            )

        response = await self._run(_invoke, "Gemini vision analysis")
        return _response_text(response)

    async def _run(self, invoke: Callable[[], Any], label: str) -> Any:
        """Offload a blocking SDK call and bound it by the configured timeout."""
        timeout = self._settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(asyncio.to_thread(invoke), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise GeminiModelError(f"{label} timed out after {timeout:g}s") from exc

    def _invoke_with_models(
        self,
        *,
        models: Iterable[str],
        env_var: str,
        error_prefix: str,
        call: Callable[[genai.GenerativeModel], Any],
        system_instruction: str | None = None,
    ) -> Any:
        """Try the configured model followed by fallbacks when available."""

        model_sequence = list(models)
        last_not_found: NotFound | None = None
        for index, model_name in enumerate(model_sequence):
            generative_model = genai.GenerativeModel(
                model_name, system_instruction=system_instruction
            )
            try:
                return call(generative_model)
            except NotFound as exc:
                last_not_found = exc
                logger.warning(
                    "Gemini model '%s' not found (attempt %d/%d); trying fallback.",
                    model_name,
                    index + 1,
                    len(model_sequence),
                )
                continue
            except (ResourceExhausted, TooManyRequests) as exc:
                raise GeminiModelError(
                    f"{error_prefix}: {exc.message}", rate_limited=True
                ) from exc
            except GoogleAPICallError as exc:  # pragma: no cover - network call
                raise GeminiModelError(f"{error_prefix}: {exc.message}") from exc

        if last_not_found is not None:
            primary = model_sequence[0] if model_sequence else "unknown"
            raise GeminiModelError(
                "Gemini model '"
                f"{primary}"
                "' is not available. Update "
                f"{env_var} to a supported value."
            ) from last_not_found

        raise GeminiModelError(f"{error_prefix}: Unknown error invoking Gemini.")

    def _text_model_candidates(self) -> list[str]:
        return self._collect_candidates(
            self._settings.model_name,
            _TEXT_FALLBACKS,
        )

    def _vision_model_candidates(self) -> list[str]:
        return self._collect_candidates(
            self._settings.vision_model_name,
            _VISION_FALLBACKS,
        )

    @staticmethod
    def _collect_candidates(
        configured: str | None,
        fallbacks: tuple[str, ...],
    ) -> list[str]:
        """Return distinct model names prioritizing the configured value."""
        seen: set[str] = set()
        candidates: list[str] = []
        for name in (configured, *fallbacks):
            if not name:
                continue
            cleaned = name.strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            candidates.append(cleaned)
        return candidates


def _response_text(response: Any) -> str:
    # ``response.text`` raises when the candidate was blocked or has no parts.
    try:
        return response.text or ""
    except ValueError:
        logger.warning("Gemini returned no text parts")
        return ""


def _extract_citations(response: Any) -> List[Dict[str, str]]:
    """Collect web sources from the first candidate's grounding metadata."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations: List[Dict[str, str]] = []
    seen: set[str] = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", "") if web is not None else ""
        if not uri or uri in seen:
            continue
        seen.add(uri)
        citations.append({"title": getattr(web, "title", "") or uri, "uri": uri})
    return citations


__all__ = ["GeminiClient", "GeminiModelError"]
