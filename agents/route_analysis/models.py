"""
State shared between the nodes of the route analysis graph.
"""

from __future__ import annotations

from typing import TypedDict

from exportpath.schemas import AnalysisRequest, DashboardData, ResearchResult


class RouteAnalysisState(TypedDict, total=False):
    """State tracked inside the LangGraph workflow."""

    request: AnalysisRequest
    research_query: str
    research: ResearchResult
    synthesis_instruction: str
    dashboard: DashboardData


__all__ = ["RouteAnalysisState"]
