"""
Pydantic models describing a route analysis request and the structured report
the synthesis stage must return.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON the model is asked to produce.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Language = Literal["en", "zh", "tw", "fr", "de", "es"]
ComplianceRisk = Literal["Low", "Medium", "High"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ContractModel(_WireModel):
    """Base for payloads produced by the model; coercion from strings is refused."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="ignore",
    )


class AnalysisRequest(_WireModel):
    """User-described product and trade route, frozen once submitted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    product_name: str = Field(..., min_length=1)
    origin_country: str = Field(..., min_length=1)
    destination_country: str = Field(..., min_length=1)
    base_cost: float = Field(..., ge=0, description="Unit cost at origin.")
    currency: str = Field(..., min_length=3, max_length=3)
    hs_code: Optional[str] = Field(None, description="Harmonized System code.")
    hs_code_description: Optional[str] = Field(
        None, description="Official short description of the HS code."
    )
    unit: str = Field("pcs", min_length=1)
    notes: Optional[str] = Field(
        None, description="Free-form product description supplied by the user."
    )
    benchmark_price: Optional[float] = Field(
        None,
        gt=0,
        description="Retail price used to guide the wholesale estimate.",
    )
    use_search: bool = Field(
        True, description="Ground the research stage with live web search."
    )
    language: Language = Field("en", description="Language of the generated report.")

    def retarget(self, destination_country: str) -> "AnalysisRequest":
        """Return a new request for the same product shipped elsewhere."""
        return self.model_copy(update={"destination_country": destination_country})


class SourceCitation(_WireModel):
    """A web source the research stage grounded its narrative on."""

    title: str
    uri: str


class ResearchResult(_WireModel):
    """Output of the research stage, consumed by the synthesis prompt."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    narrative: str
    citations: List[SourceCitation] = Field(default_factory=list)
    grounded: bool = False


class CostBreakdown(_ContractModel):
    base_cost: float
    shipping: float
    tariffs: float
    vat: float
    compliance: float


class TaxStrategy(_ContractModel):
    title: str
    details: List[str] = Field(default_factory=list)
    potential_savings: str


class VatHandling(_ContractModel):
    rate: str
    mechanism: str
    advice: str


class ComplianceDeepDive(_ContractModel):
    certifications_required: List[str] = Field(default_factory=list)
    legal_pitfalls: List[str] = Field(default_factory=list)


class LogisticsStrategy(_ContractModel):
    best_route: str
    alternative_route: str
    estimated_transit_time: str


class OptimizationStrategy(_ContractModel):
    country: Optional[str] = None
    tax_strategy: TaxStrategy
    vat_handling: VatHandling
    compliance_deep_dive: ComplianceDeepDive
    logistics_strategy: LogisticsStrategy


class StrategyHints(_ContractModel):
    tax: str
    logistics: str
    legal: str


class ReconciledFigures(_WireModel):
    """Totals recomputed locally from the itemized cost breakdown."""

    total_landed_cost: float
    net_profit: float
    roi_percent: Optional[float] = Field(
        None, description="Undefined when the landed cost is zero."
    )


class MarketAnalysis(_ContractModel):
    """Feasibility of selling into one destination country."""

    country: str
    iso_code: str
    currency: str
    local_market_price: float
    breakdown: CostBreakdown
    tariff_rate: float
    tariff_note: Optional[str] = None
    vat_rate: float
    compliance_risk: ComplianceRisk
    compliance_notes: str
    trade_barriers: str = Field(..., alias="tradebarriers")
    reasoning: str = ""
    optimization_strategy: OptimizationStrategy
    strategy_hints: Optional[StrategyHints] = None
    # Advisory only; see services.reconciler.
    landed_cost: Optional[float] = None
    profit_margin: Optional[float] = None
    roi_percentage: Optional[float] = None
    reconciled: Optional[ReconciledFigures] = None


class Competitor(_ContractModel):
    name: str
    price: float
    features: str = ""
    url: Optional[str] = None
    platform: Optional[str] = None


class PriceRange(_ContractModel):
    min: float
    max: float
    average: float


class MarketIntelligence(_ContractModel):
    competitors: List[Competitor] = Field(default_factory=list)
    price_range: PriceRange
    currency: str
    unit: str
    description_used: str


class DashboardData(_ContractModel):
    """Everything a completed run hands to the presentation layer."""

    primary_analysis: MarketAnalysis
    market_intelligence: MarketIntelligence
    alternatives: List[MarketAnalysis] = Field(default_factory=list)
    search_sources: List[SourceCitation] = Field(default_factory=list)


class ImageAnalysisResult(_ContractModel):
    """Product identification derived from a photo."""

    detected_name: str
    hs_code: str
    hs_code_description: str
    unit: str
    visual_description: str


class ProductSuggestion(_ContractModel):
    """Suggested classification and cost for a product name."""

    hs_code: str
    hs_code_description: str
    estimated_base_cost: float
    unit: str
    description: str


__all__ = [
    "AnalysisRequest",
    "ComplianceDeepDive",
    "ComplianceRisk",
    "Competitor",
    "CostBreakdown",
    "DashboardData",
    "ImageAnalysisResult",
    "Language",
    "LogisticsStrategy",
    "MarketAnalysis",
    "MarketIntelligence",
    "OptimizationStrategy",
    "PriceRange",
    "ProductSuggestion",
    "ReconciledFigures",
    "ResearchResult",
    "SourceCitation",
    "StrategyHints",
    "TaxStrategy",
    "VatHandling",
]
