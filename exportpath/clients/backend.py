"""HTTP client for the ExportPath backend's analysis endpoints."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict

import httpx
from pydantic import ValidationError

from exportpath.core.errors import (
    RATE_LIMIT_MESSAGE,
    RemoteServiceError,
    SchemaViolationError,
)
from exportpath.schemas import (
    AnalysisConfig,
    AnalysisRequest,
    AnalyzeRouteRequest,
    AnalyzeRouteResponse,
    DashboardData,
    ImageAnalysisRequest,
    ImageAnalysisResult,
    Language,
    ProductSuggestion,
    RouteMetadata,
    SuggestionRequest,
)
from exportpath.schemas.contract import (
    DASHBOARD_RESPONSE_SCHEMA,
    SYNTHESIS_SYSTEM_INSTRUCTION,
    parse_dashboard,
    parse_image_analysis,
    parse_product_suggestion,
)
from exportpath.services.prompts import (
    build_analysis_prompt,
    build_image_prompt,
    build_research_query,
    build_suggestion_prompt,
)
from exportpath.services.reconciler import reconcile_dashboard

logger = logging.getLogger(__name__)

DEMO_SECRET_HEADER = "x-demo-secret"


class ExportPathBackendClient:
    """Build prompts locally, run them on the backend, validate what comes back."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 120.0,
        demo_secret: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._demo_secret = demo_secret
        self._transport = transport

    async def analyze_route(self, request: AnalysisRequest) -> DashboardData:
        """Run the two-stage analysis remotely and reconcile the result."""
        payload = AnalyzeRouteRequest(
            use_search=request.use_search,
            research_prompt=build_research_query(request),
            analysis_prompt=build_analysis_prompt(request),
            analysis_config=AnalysisConfig(
                temperature=0.1,
                system_instruction=SYNTHESIS_SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
                response_schema=DASHBOARD_RESPONSE_SCHEMA,
            ),
            metadata=RouteMetadata(
                origin_country=request.origin_country,
                destination_country=request.destination_country,
                hs_code=request.hs_code,
                product_name=request.product_name,
            ),
        )
        body = await self._post("/api/analyze-route", payload.model_dump(by_alias=True))
        try:
            response = AnalyzeRouteResponse.model_validate(body)
        except ValidationError as exc:
            raise SchemaViolationError(
                f"Malformed analyze-route response: {exc.errors()[:3]}"
            ) from exc

        dashboard = parse_dashboard(response.text).model_copy(
            update={"search_sources": response.search_sources}
        )
        return reconcile_dashboard(dashboard)

    async def analyze_product_image(
        self,
        *,
        image: bytes,
        mime_type: str,
        language: Language = "en",
    ) -> ImageAnalysisResult:
        payload = ImageAnalysisRequest(
            base64_data=base64.b64encode(image).decode("utf-8"),
            mime_type=mime_type,
            prompt=build_image_prompt(language),
            language=language,
        )
        body = await self._post("/api/analyze-image", payload.model_dump(by_alias=True))
        return parse_image_analysis(body.get("text"))

    async def suggest_product_details(
        self,
        *,
        product_name: str,
        currency: str,
        language: Language = "en",
    ) -> ProductSuggestion:
        payload = SuggestionRequest(
            prompt=build_suggestion_prompt(product_name, currency, language),
            language=language,
        )
        body = await self._post("/api/suggest", payload.model_dump(by_alias=True))
        return parse_product_suggestion(body.get("text"))

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers: Dict[str, str] = {}
        if self._demo_secret:
            headers[DEMO_SECRET_HEADER] = self._demo_secret

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise RemoteServiceError("Service Error: request timed out") from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"Service Error: {exc}") from exc

        if response.status_code == 429:
            raise RemoteServiceError(RATE_LIMIT_MESSAGE, rate_limited=True)
        if response.is_error:
            raise RemoteServiceError(f"Service Error: {_error_detail(response)}")

        try:
            body = response.json()
        except ValueError as exc:
            raise SchemaViolationError("Backend returned a non-JSON body.") from exc
        if not isinstance(body, dict):
            raise SchemaViolationError("Backend returned an unexpected body.")
        return body


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or str(response.status_code)
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
    return response.reason_phrase or str(response.status_code)


__all__ = ["DEMO_SECRET_HEADER", "ExportPathBackendClient"]
