"""
FastAPI routes for the route analysis backend.
"""

from __future__ import annotations

import hmac
import logging
import math
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from agents.route_analysis.tools import RouteAnalysisTools
from exportpath.api.rate_limit import SlidingWindowRateLimiter
from exportpath.clients.backend import DEMO_SECRET_HEADER
from exportpath.core.config import ServerSettings
from exportpath.core.errors import RATE_LIMIT_MESSAGE, RemoteServiceError
from exportpath.dependencies import (
    get_product_assist_service,
    get_rate_limiter,
    get_route_analysis_tools,
    get_server_settings,
)
from exportpath.schemas import (
    AnalyzeRouteRequest,
    AnalyzeRouteResponse,
    GeneratedTextResponse,
    ImageAnalysisRequest,
    SuggestionRequest,
)
from exportpath.services import ImageTooLargeError, ProductAssistService
from exportpath.services.prompts import compose_synthesis_prompt

router = APIRouter()
logger = logging.getLogger(__name__)


def _is_demo_client(request: Request, settings: ServerSettings) -> bool:
    provided = request.headers.get(DEMO_SECRET_HEADER)
    if not provided or not settings.demo_secret:
        return False
    return hmac.compare_digest(provided.encode(), settings.demo_secret.encode())


async def enforce_rate_limit(
    request: Request,
    settings: Annotated[ServerSettings, Depends(get_server_settings)],
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Reject clients over the per-minute limit unless they hold the demo secret."""
    if _is_demo_client(request, settings):
        return
    client_key = request.client.host if request.client else "anonymous"
    retry_after = limiter.check(client_key)
    if retry_after is not None:
        logger.info("Rate limited client %s for %.1fs", client_key, retry_after)
        raise HTTPException(
            status_code=HTTPStatus.TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again in a minute.",
            headers={"Retry-After": str(math.ceil(retry_after))},
        )


def _upstream_error(exc: RemoteServiceError) -> HTTPException:
    if exc.rate_limited:
        return HTTPException(
            status_code=HTTPStatus.TOO_MANY_REQUESTS, detail=RATE_LIMIT_MESSAGE
        )
    return HTTPException(status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/analyze-route",
    response_model=AnalyzeRouteResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def analyze_route(
    payload: AnalyzeRouteRequest,
    tools: Annotated[RouteAnalysisTools, Depends(get_route_analysis_tools)],
) -> AnalyzeRouteResponse:
    """Run optional grounded research, then schema-constrained synthesis."""
    if payload.use_search and not payload.research_prompt.strip():
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            detail="researchPrompt is required when useSearch is enabled.",
        )

    metadata = payload.metadata
    if metadata is not None:
        logger.info(
            "Analyzing route %s -> %s (HS %s)",
            metadata.origin_country,
            metadata.destination_country,
            metadata.hs_code or "unknown",
        )

    try:
        research = await tools.research(
            payload.research_prompt, use_search=payload.use_search
        )
        prompt = compose_synthesis_prompt(research.narrative, payload.analysis_prompt)
        text = await tools.synthesize_text(prompt, config=payload.analysis_config)
    except RemoteServiceError as exc:
        logger.error("Route analysis failed: %s", exc)
        raise _upstream_error(exc) from exc

    return AnalyzeRouteResponse(text=text, search_sources=list(research.citations))


@router.post(
    "/analyze-image",
    response_model=GeneratedTextResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def analyze_image(
    payload: ImageAnalysisRequest,
    service: Annotated[ProductAssistService, Depends(get_product_assist_service)],
) -> GeneratedTextResponse:
    """Identify a product, its HS code and trading unit from a photo."""
    try:
        text = await service.describe_image_text(
            image_base64=payload.base64_data,
            mime_type=payload.mime_type,
            prompt=payload.prompt,
        )
    except ImageTooLargeError as exc:
        raise HTTPException(
            status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE, detail=str(exc)
        ) from exc
    except RemoteServiceError as exc:
        logger.error("Image analysis failed: %s", exc)
        raise _upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    return GeneratedTextResponse(text=text)


@router.post(
    "/suggest",
    response_model=GeneratedTextResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def suggest_product_details(
    payload: SuggestionRequest,
    service: Annotated[ProductAssistService, Depends(get_product_assist_service)],
) -> GeneratedTextResponse:
    """Suggest HS code, unit and base cost for a named product."""
    try:
        text = await service.suggest_text(prompt=payload.prompt)
    except RemoteServiceError as exc:
        logger.error("Product suggestion failed: %s", exc)
        raise _upstream_error(exc) from exc
    return GeneratedTextResponse(text=text)


__all__ = ["router"]
