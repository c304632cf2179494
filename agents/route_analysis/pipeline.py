"""
In-process route analysis: runs the LangGraph workflow for one request.
"""

from __future__ import annotations

import logging

from agents.route_analysis.graph import create_route_analysis_graph
from agents.route_analysis.tools import RouteAnalysisTools
from exportpath.schemas import AnalysisRequest, DashboardData

logger = logging.getLogger(__name__)


class RouteAnalysisPipeline:
    """Research, synthesize and reconcile one analysis request."""

    def __init__(self, tools: RouteAnalysisTools) -> None:
        self._graph = create_route_analysis_graph(tools)

    async def analyze(self, request: AnalysisRequest) -> DashboardData:
        logger.info(
            "Analyzing %s from %s to %s",
            request.product_name,
            request.origin_country,
            request.destination_country,
        )
        final_state = await self._graph.ainvoke({"request": request})
        return final_state["dashboard"]


__all__ = ["RouteAnalysisPipeline"]
