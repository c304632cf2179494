"""Public schema exports."""

from .api import (
    AnalysisConfig,
    AnalyzeRouteRequest,
    AnalyzeRouteResponse,
    GeneratedTextResponse,
    ImageAnalysisRequest,
    RouteMetadata,
    SuggestionRequest,
)
from .route import (
    AnalysisRequest,
    CostBreakdown,
    DashboardData,
    ImageAnalysisResult,
    Language,
    MarketAnalysis,
    MarketIntelligence,
    OptimizationStrategy,
    ProductSuggestion,
    ReconciledFigures,
    ResearchResult,
    SourceCitation,
)

__all__ = [
    "AnalysisConfig",
    "AnalysisRequest",
    "AnalyzeRouteRequest",
    "AnalyzeRouteResponse",
    "CostBreakdown",
    "DashboardData",
    "GeneratedTextResponse",
    "ImageAnalysisRequest",
    "ImageAnalysisResult",
    "Language",
    "MarketAnalysis",
    "MarketIntelligence",
    "OptimizationStrategy",
    "ProductSuggestion",
    "ReconciledFigures",
    "ResearchResult",
    "RouteMetadata",
    "SourceCitation",
    "SuggestionRequest",
]
