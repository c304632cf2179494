"""
Response schemas handed to Gemini and the strict parser applied to its output.

Gemini is asked for schema-constrained JSON, but the constraint is advisory on
the model side, so every payload is re-validated with the pydantic models in
``exportpath.schemas.route`` before anything downstream sees it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from exportpath.core.errors import SchemaViolationError

from .route import DashboardData, ImageAnalysisResult, ProductSuggestion

ModelT = TypeVar("ModelT", bound=BaseModel)

COMPLIANCE_RISK_LEVELS: tuple[str, ...] = ("Low", "Medium", "High")


def _string(description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


def _number(description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "NUMBER"}
    if description:
        schema["description"] = description
    return schema


def _strings() -> Dict[str, Any]:
    return {"type": "ARRAY", "items": {"type": "STRING"}}


def _object(
    properties: Dict[str, Any], required: List[str] | None = None
) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "OBJECT", "properties": properties}
    schema["required"] = list(properties) if required is None else required
    return schema


_BREAKDOWN_SCHEMA = _object(
    {
        "baseCost": _number(),
        "shipping": _number("Freight and insurance per unit."),
        "tariffs": _number("Import duty per unit, including punitive measures."),
        "vat": _number("Import VAT per unit."),
        "compliance": _number("Certification and inspection cost per unit."),
    }
)

_OPTIMIZATION_SCHEMA = _object(
    {
        "country": _string(),
        "taxStrategy": _object(
            {
                "title": _string(),
                "details": _strings(),
                "potentialSavings": _string(),
            }
        ),
        "vatHandling": _object(
            {"rate": _string(), "mechanism": _string(), "advice": _string()}
        ),
        "complianceDeepDive": _object(
            {"certificationsRequired": _strings(), "legalPitfalls": _strings()}
        ),
        "logisticsStrategy": _object(
            {
                "bestRoute": _string(),
                "alternativeRoute": _string(),
                "estimatedTransitTime": _string(),
            }
        ),
    },
    required=["taxStrategy", "vatHandling", "complianceDeepDive", "logisticsStrategy"],
)

MARKET_ANALYSIS_SCHEMA = _object(
    {
        "country": _string(),
        "isoCode": _string("ISO 3166-1 alpha-2 code."),
        "localMarketPrice": _number("Wholesale price per unit, never zero."),
        "currency": _string(),
        "landedCost": _number(),
        "profitMargin": _number(),
        "roiPercentage": _number(),
        "tariffRate": _number("Decimal fraction, e.g. 0.25 for 25%."),
        "tariffNote": _string("Short justification, e.g. 'MFN 0% + Sec 301 25%'."),
        "vatRate": _number("Decimal fraction, e.g. 0.19 for 19%."),
        "complianceRisk": {
            "type": "STRING",
            "format": "enum",
            "enum": list(COMPLIANCE_RISK_LEVELS),
        },
        "complianceNotes": _string(),
        "tradebarriers": _string(),
        "reasoning": _string(),
        "breakdown": _BREAKDOWN_SCHEMA,
        "optimizationStrategy": _OPTIMIZATION_SCHEMA,
        "strategyHints": _object(
            {"tax": _string(), "logistics": _string(), "legal": _string()}
        ),
    },
    required=[
        "country",
        "isoCode",
        "localMarketPrice",
        "currency",
        "tariffRate",
        "vatRate",
        "complianceRisk",
        "complianceNotes",
        "tradebarriers",
        "breakdown",
        "optimizationStrategy",
    ],
)

DASHBOARD_RESPONSE_SCHEMA = _object(
    {
        "marketIntelligence": _object(
            {
                "competitors": {
                    "type": "ARRAY",
                    "items": _object(
                        {
                            "name": _string(),
                            "price": _number(),
                            "features": _string(),
                            "url": _string(),
                            "platform": _string(),
                        },
                        required=["name", "price"],
                    ),
                },
                "priceRange": _object(
                    {"min": _number(), "max": _number(), "average": _number()}
                ),
                "currency": _string(),
                "unit": _string(),
                "descriptionUsed": _string(),
            }
        ),
        "primaryAnalysis": MARKET_ANALYSIS_SCHEMA,
        "alternatives": {"type": "ARRAY", "items": MARKET_ANALYSIS_SCHEMA},
    },
    required=["marketIntelligence", "primaryAnalysis", "alternatives"],
)

IMAGE_ANALYSIS_SCHEMA = _object(
    {
        "detectedName": _string("Product name identified from image"),
        "hsCode": _string("6-digit HS Code"),
        "hsCodeDescription": _string("Official short description of HS Code"),
        "unit": _string("Standard trading unit (e.g., pcs, kg, set)"),
        "visualDescription": _string("Detailed product description from image"),
    }
)

PRODUCT_SUGGESTION_SCHEMA = _object(
    {
        "hsCode": _string("6-digit HS Code"),
        "hsCodeDescription": _string("Official short description of HS Code"),
        "estimatedBaseCost": _number("Estimated base cost in specified currency"),
        "unit": _string("Standard trading unit (e.g., pcs, kg, set)"),
        "description": _string("Product description"),
    }
)

SYNTHESIS_SYSTEM_INSTRUCTION = (
    "Trade expert. Estimate prices if missing. Return JSON."
)


def parse_contract(model: Type[ModelT], payload: str | None) -> ModelT:
    """Validate ``payload`` against ``model`` or raise ``SchemaViolationError``."""
    text = (payload or "").strip()
    if not text:
        raise SchemaViolationError("The model returned an empty response.")
    try:
        return model.model_validate_json(text)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: "
            f"{error['msg']}"
            for error in exc.errors()[:5]
        )
        raise SchemaViolationError(
            f"Response does not match the {model.__name__} contract: {problems}"
        ) from exc


def parse_dashboard(payload: str | None) -> DashboardData:
    return parse_contract(DashboardData, payload)


def parse_image_analysis(payload: str | None) -> ImageAnalysisResult:
    return parse_contract(ImageAnalysisResult, payload)


def parse_product_suggestion(payload: str | None) -> ProductSuggestion:
    return parse_contract(ProductSuggestion, payload)


__all__ = [
    "COMPLIANCE_RISK_LEVELS",
    "DASHBOARD_RESPONSE_SCHEMA",
    "IMAGE_ANALYSIS_SCHEMA",
    "MARKET_ANALYSIS_SCHEMA",
    "PRODUCT_SUGGESTION_SCHEMA",
    "SYNTHESIS_SYSTEM_INSTRUCTION",
    "parse_contract",
    "parse_dashboard",
    "parse_image_analysis",
    "parse_product_suggestion",
]
