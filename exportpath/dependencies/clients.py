"""
Factory functions to provide shared clients and services as FastAPI dependencies
and to the command-line client.
"""

from functools import lru_cache

from agents.route_analysis.pipeline import RouteAnalysisPipeline
from agents.route_analysis.tools import RouteAnalysisTools
from exportpath.api.rate_limit import SlidingWindowRateLimiter
from exportpath.clients import ExportPathBackendClient, GeminiClient
from exportpath.core.config import get_settings
from exportpath.services import (
    ProductAssistService,
    QuotaAdmin,
    QuotaGate,
    SQLiteQuotaStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Provide Gemini client instance."""
    settings = _settings()
    return GeminiClient(settings.gemini)


def get_route_analysis_tools() -> RouteAnalysisTools:
    """Build the research and synthesis stages over the shared Gemini client."""
    return RouteAnalysisTools(get_gemini_client())


def get_route_analysis_pipeline() -> RouteAnalysisPipeline:
    """Build an in-process pipeline for local analysis runs."""
    return RouteAnalysisPipeline(get_route_analysis_tools())


def get_product_assist_service() -> ProductAssistService:
    """Build the product identification and suggestion service."""
    settings = _settings()
    return ProductAssistService(
        get_gemini_client(),
        max_image_bytes=settings.server.max_image_bytes,
    )


@lru_cache()
def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Provide the process-wide request limiter."""
    settings = _settings()
    return SlidingWindowRateLimiter(limit=settings.server.rate_limit_per_minute)


def get_backend_client() -> ExportPathBackendClient:
    """Provide an HTTP client for a remote analysis backend."""
    settings = _settings()
    return ExportPathBackendClient(
        base_url=str(settings.backend_base_url),
        timeout=settings.gemini.request_timeout_seconds * 2,
        demo_secret=settings.server.demo_secret,
    )


@lru_cache()
def get_quota_store() -> SQLiteQuotaStore:
    """Provide the per-installation quota store."""
    settings = _settings()
    return SQLiteQuotaStore(settings.quota.db_path)


def get_quota_gate() -> QuotaGate:
    settings = _settings()
    return QuotaGate(get_quota_store(), daily_limit=settings.quota.daily_limit)


def get_quota_admin() -> QuotaAdmin:
    settings = _settings()
    return QuotaAdmin(get_quota_store(), admin_secret=settings.quota.admin_secret)


__all__ = [
    "get_backend_client",
    "get_gemini_client",
    "get_product_assist_service",
    "get_quota_admin",
    "get_quota_gate",
    "get_quota_store",
    "get_rate_limiter",
    "get_route_analysis_pipeline",
    "get_route_analysis_tools",
]
