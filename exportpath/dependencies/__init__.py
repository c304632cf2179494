"""Expose dependency helpers for FastAPI routers and the CLI."""

from .clients import (
    get_backend_client,
    get_gemini_client,
    get_product_assist_service,
    get_quota_admin,
    get_quota_gate,
    get_quota_store,
    get_rate_limiter,
    get_route_analysis_pipeline,
    get_route_analysis_tools,
)
from .config import SettingsDependency, get_app_settings, get_server_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_backend_client",
    "get_gemini_client",
    "get_product_assist_service",
    "get_quota_admin",
    "get_quota_gate",
    "get_quota_store",
    "get_rate_limiter",
    "get_route_analysis_pipeline",
    "get_route_analysis_tools",
    "get_server_settings",
]
