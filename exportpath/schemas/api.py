"""
Pydantic models for the backend's HTTP request and response bodies.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .route import Language, SourceCitation


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RouteMetadata(_ApiModel):
    """Identifies the route an analysis was run for."""

    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    hs_code: Optional[str] = None
    product_name: Optional[str] = None


class AnalysisConfig(_ApiModel):
    """Generation overrides a client may send with the synthesis prompt."""

    temperature: Optional[float] = Field(None, ge=0, le=2)
    system_instruction: Optional[str] = None
    response_mime_type: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = Field(
        None,
        description="Gemini response schema; the built-in dashboard schema is used when omitted.",
    )


class AnalyzeRouteRequest(_ApiModel):
    use_search: bool = Field(
        False, description="Run the grounded research stage before synthesis."
    )
    research_prompt: str = Field("", description="Query for the research stage.")
    analysis_prompt: str = Field(..., min_length=1)
    analysis_config: Optional[AnalysisConfig] = None
    metadata: Optional[RouteMetadata] = None


class AnalyzeRouteResponse(_ApiModel):
    text: str = Field(..., description="JSON-encoded dashboard without citations.")
    search_sources: List[SourceCitation] = Field(default_factory=list)
    source: str = "LIVE_AI"


class ImageAnalysisRequest(_ApiModel):
    base64_data: str = Field(..., min_length=1)
    mime_type: str = Field("image/jpeg")
    prompt: str = Field(..., min_length=1)
    language: Language = "en"


class SuggestionRequest(_ApiModel):
    prompt: str = Field(..., min_length=1)
    language: Language = "en"


class GeneratedTextResponse(_ApiModel):
    text: str


__all__ = [
    "AnalysisConfig",
    "AnalyzeRouteRequest",
    "AnalyzeRouteResponse",
    "GeneratedTextResponse",
    "ImageAnalysisRequest",
    "RouteMetadata",
    "SuggestionRequest",
]
