"""Service layer exports."""

from .lifecycle import (
    AnalysisStatus,
    RequestLifecycleController,
    RunHandle,
    SessionState,
)
from .product_assist import ImageTooLargeError, ProductAssistService
from .quota import (
    InMemoryQuotaStore,
    QuotaAdmin,
    QuotaGate,
    QuotaState,
    SQLiteQuotaStore,
)
from .reconciler import reconcile_dashboard, reconcile_figures

__all__ = [
    "AnalysisStatus",
    "ImageTooLargeError",
    "InMemoryQuotaStore",
    "ProductAssistService",
    "QuotaAdmin",
    "QuotaGate",
    "QuotaState",
    "RequestLifecycleController",
    "RunHandle",
    "SQLiteQuotaStore",
    "SessionState",
    "reconcile_dashboard",
    "reconcile_figures",
]
