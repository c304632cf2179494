"""
LangGraph workflow definition for the route analysis pipeline.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, START, StateGraph

from agents.route_analysis.models import RouteAnalysisState
from agents.route_analysis.tools import RouteAnalysisTools
from exportpath.services.prompts import (
    build_research_query,
    build_synthesis_instruction,
)
from exportpath.services.reconciler import reconcile_dashboard


async def _build_query(state: RouteAnalysisState) -> RouteAnalysisState:
    """Derive the research query from the request."""
    return {"research_query": build_research_query(state["request"])}


async def _research(
    state: RouteAnalysisState, tools: RouteAnalysisTools
) -> RouteAnalysisState:
    """Run the optional grounded research stage."""
    request = state["request"]
    research = await tools.research(
        state["research_query"], use_search=request.use_search
    )
    return {
        "research": research,
        "synthesis_instruction": build_synthesis_instruction(request, research),
    }


async def _synthesize(
    state: RouteAnalysisState, tools: RouteAnalysisTools
) -> RouteAnalysisState:
    """Produce the schema-validated dashboard from research and instructions."""
    dashboard = await tools.synthesize(
        state["synthesis_instruction"], state["research"]
    )
    return {"dashboard": dashboard}


async def _reconcile(state: RouteAnalysisState) -> RouteAnalysisState:
    """Replace model arithmetic with totals recomputed from the breakdown."""
    return {"dashboard": reconcile_dashboard(state["dashboard"])}


def create_route_analysis_graph(tools: RouteAnalysisTools) -> Any:
    """Compile and return the route analysis LangGraph workflow."""
    graph = StateGraph(RouteAnalysisState)

    async def research_node(state: RouteAnalysisState) -> RouteAnalysisState:
        return await _research(state, tools)

    async def synthesize_node(state: RouteAnalysisState) -> RouteAnalysisState:
        return await _synthesize(state, tools)

    graph.add_node("build_query", _build_query)
    graph.add_node("research", research_node)
    graph.add_node("synthesize", synthesize_node)
    graph.add_node("reconcile", _reconcile)

    graph.add_edge(START, "build_query")
    graph.add_edge("build_query", "research")
    graph.add_edge("research", "synthesize")
    graph.add_edge("synthesize", "reconcile")
    graph.add_edge("reconcile", END)
    return graph.compile()


__all__ = ["create_route_analysis_graph"]
