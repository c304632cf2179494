"""Service that leverages Gemini to seed an analysis request from a product."""

from __future__ import annotations

import base64
import binascii
import logging

from exportpath.clients.gemini import GeminiClient
from exportpath.schemas import ImageAnalysisResult, Language, ProductSuggestion
from exportpath.schemas.contract import (
    IMAGE_ANALYSIS_SCHEMA,
    PRODUCT_SUGGESTION_SCHEMA,
    parse_image_analysis,
    parse_product_suggestion,
)

from .prompts import build_image_prompt, build_suggestion_prompt

logger = logging.getLogger(__name__)


class ImageTooLargeError(ValueError):
    """Raised when a product image exceeds the configured ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Image is {size} bytes; the limit is {limit} bytes.")
        self.size = size
        self.limit = limit


def decoded_size(image_base64: str) -> int:
    """Size in bytes of a base64 payload, validating its encoding."""
    try:
        return len(base64.b64decode(image_base64, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image data is not valid base64.") from exc


class ProductAssistService:
    """Identify products from photos and suggest classification details."""

    def __init__(self, gemini_client: GeminiClient, *, max_image_bytes: int) -> None:
        self._gemini = gemini_client
        self._max_image_bytes = max_image_bytes

    async def describe_image_text(
        self, *, image_base64: str, mime_type: str, prompt: str
    ) -> str:
        size = decoded_size(image_base64)
        if size > self._max_image_bytes:
            raise ImageTooLargeError(size, self._max_image_bytes)
        logger.info("Identifying product from %s image (%d bytes)", mime_type, size)
        return await self._gemini.vision_structured(
            prompt=prompt,
            image_base64=image_base64,
            mime_type=mime_type,
            response_schema=IMAGE_ANALYSIS_SCHEMA,
        )

    async def suggest_text(self, *, prompt: str) -> str:
        return await self._gemini.generate_structured(
            prompt, response_schema=PRODUCT_SUGGESTION_SCHEMA
        )

    async def identify_from_image(
        self, *, image: bytes, mime_type: str, language: Language = "en"
    ) -> ImageAnalysisResult:
        raw = await self.describe_image_text(
            image_base64=base64.b64encode(image).decode("utf-8"),
            mime_type=mime_type,
            prompt=build_image_prompt(language),
        )
        return parse_image_analysis(raw)

    async def suggest_details(
        self, *, product_name: str, currency: str, language: Language = "en"
    ) -> ProductSuggestion:
        raw = await self.suggest_text(
            prompt=build_suggestion_prompt(product_name, currency, language)
        )
        return parse_product_suggestion(raw)


__all__ = [
    "ImageTooLargeError",
    "ProductAssistService",
    "decoded_size",
]
