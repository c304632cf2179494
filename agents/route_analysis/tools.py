"""Research and synthesis stages, expressed over the Gemini client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from exportpath.clients import GeminiClient
from exportpath.schemas import (
    AnalysisConfig,
    DashboardData,
    ResearchResult,
    SourceCitation,
)
from exportpath.schemas.contract import (
    DASHBOARD_RESPONSE_SCHEMA,
    SYNTHESIS_SYSTEM_INSTRUCTION,
    parse_dashboard,
)
from exportpath.services.prompts import NO_SEARCH_PLACEHOLDER

logger = logging.getLogger(__name__)


class RouteAnalysisTools:
    """Facade over the two external calls a route analysis makes."""

    def __init__(self, gemini_client: GeminiClient) -> None:
        self._gemini = gemini_client

    async def research(self, query: str, *, use_search: bool) -> ResearchResult:
        """Gather grounded context, or substitute the placeholder when disabled.

        Exactly one Gemini call is made in grounded mode and failures propagate
        unchanged; nothing here retries.
        """
        if not use_search:
            return ResearchResult(narrative=NO_SEARCH_PLACEHOLDER, grounded=False)

        logger.info("Starting grounded research")
        narrative, sources = await self._gemini.grounded_research(query)
        citations = [
            SourceCitation(title=source["title"], uri=source["uri"])
            for source in sources
        ]
        logger.info("Research returned %d sources", len(citations))
        return ResearchResult(narrative=narrative, citations=citations, grounded=True)

    async def synthesize_text(
        self,
        instruction: str,
        *,
        config: Optional[AnalysisConfig] = None,
    ) -> str:
        """Run the schema-constrained synthesis call and return its raw text."""
        options: Dict[str, Any] = {
            "response_schema": DASHBOARD_RESPONSE_SCHEMA,
            "system_instruction": SYNTHESIS_SYSTEM_INSTRUCTION,
        }
        if config is not None:
            if config.response_schema:
                options["response_schema"] = config.response_schema
            if config.system_instruction:
                options["system_instruction"] = config.system_instruction
            if config.temperature is not None:
                options["temperature"] = config.temperature
            if config.response_mime_type:
                options["response_mime_type"] = config.response_mime_type

        logger.info("Starting synthesis")
        return await self._gemini.generate_structured(instruction, **options)

    async def synthesize(
        self, instruction: str, research: ResearchResult
    ) -> DashboardData:
        """Synthesize and strictly parse a dashboard, attaching the citations."""
        raw = await self.synthesize_text(instruction)
        dashboard = parse_dashboard(raw)
        return dashboard.model_copy(
            update={"search_sources": list(research.citations)}
        )


__all__ = ["RouteAnalysisTools"]
