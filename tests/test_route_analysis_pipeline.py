try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import pytest

from agents.route_analysis import RouteAnalysisPipeline
from agents.route_analysis.tools import RouteAnalysisTools
from exportpath.core.errors import RemoteServiceError, SchemaViolationError
from exportpath.schemas.contract import (
    DASHBOARD_RESPONSE_SCHEMA,
    SYNTHESIS_SYSTEM_INSTRUCTION,
)
from exportpath.services.prompts import NO_SEARCH_PLACEHOLDER


class StubGeminiClient:
    def __init__(self, structured_text: str) -> None:
        self.structured_text = structured_text
        self.research_prompts: list[str] = []
        self.structured_calls: list[dict] = []
        self.research_error: Exception | None = None

    async def grounded_research(self, prompt: str):
        self.research_prompts.append(prompt)
        if self.research_error is not None:
            raise self.research_error
        return (
            "The EU applies 0% MFN duty on HS 940161. No AD duties on Chinese chairs.",
            [
                {"title": "TARIC", "uri": "https://ec.europa.eu/taric"},
                {"title": "Reuters", "uri": "https://www.reuters.com/trade"},
            ],
        )

    async def generate_structured(self, prompt: str, **options):
        self.structured_calls.append({"prompt": prompt, **options})
        return self.structured_text


@pytest.fixture
def gemini(dashboard_payload):
    return StubGeminiClient(json.dumps(dashboard_payload()))


@pytest.mark.asyncio
async def test_grounded_run_attaches_citations_and_reconciles(
    gemini, analysis_request
) -> None:
    pipeline = RouteAnalysisPipeline(RouteAnalysisTools(gemini))

    dashboard = await pipeline.analyze(analysis_request)

    assert len(gemini.research_prompts) == 1
    assert "Oak dining chair" in gemini.research_prompts[0]
    assert [source.uri for source in dashboard.search_sources] == [
        "https://ec.europa.eu/taric",
        "https://www.reuters.com/trade",
    ]
    call = gemini.structured_calls[0]
    assert call["prompt"].startswith("RESEARCH CONTEXT:\nThe EU applies 0% MFN duty")
    assert call["response_schema"] == DASHBOARD_RESPONSE_SCHEMA
    assert call["system_instruction"] == SYNTHESIS_SYSTEM_INSTRUCTION

    primary = dashboard.primary_analysis
    assert primary.reconciled.total_landed_cost == 190
    assert primary.reconciled.net_profit == 60
    assert dashboard.alternatives[0].reconciled is not None


@pytest.mark.asyncio
async def test_internal_knowledge_mode_skips_research(gemini, analysis_request) -> None:
    pipeline = RouteAnalysisPipeline(RouteAnalysisTools(gemini))
    request = analysis_request.model_copy(update={"use_search": False})

    dashboard = await pipeline.analyze(request)

    assert gemini.research_prompts == []
    assert dashboard.search_sources == []
    assert NO_SEARCH_PLACEHOLDER in gemini.structured_calls[0]["prompt"]


@pytest.mark.asyncio
async def test_research_failure_stops_before_synthesis(gemini, analysis_request) -> None:
    gemini.research_error = RemoteServiceError("Gemini grounded research failed")
    pipeline = RouteAnalysisPipeline(RouteAnalysisTools(gemini))

    with pytest.raises(RemoteServiceError):
        await pipeline.analyze(analysis_request)

    assert gemini.structured_calls == []


@pytest.mark.asyncio
async def test_contract_violation_propagates(gemini, analysis_request) -> None:
    gemini.structured_text = json.dumps({"primaryAnalysis": {"country": "Germany"}})
    pipeline = RouteAnalysisPipeline(RouteAnalysisTools(gemini))

    with pytest.raises(SchemaViolationError):
        await pipeline.analyze(analysis_request)
