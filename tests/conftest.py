"""Pytest configuration and payload factories shared across the suite."""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict

import pytest

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for rootdir-less execution
    import _bootstrap  # type: ignore # noqa: F401

from exportpath.schemas import AnalysisRequest


def _market_analysis(country: str, iso_code: str) -> Dict[str, Any]:
    return {
        "country": country,
        "isoCode": iso_code,
        "localMarketPrice": 250,
        "currency": "EUR",
        "landedCost": 180,
        "profitMargin": 70,
        "roiPercentage": 38.9,
        "tariffRate": 0.2,
        "tariffNote": "MFN 0% + AD 20%",
        "vatRate": 0.19,
        "complianceRisk": "Medium",
        "complianceNotes": "CE marking and EUDR due diligence required.",
        "tradebarriers": "Anti-dumping duty on origin.",
        "reasoning": "Healthy margin despite punitive duty.",
        "breakdown": {
            "baseCost": 100,
            "shipping": 50,
            "tariffs": 20,
            "vat": 15,
            "compliance": 5,
        },
        "optimizationStrategy": {
            "country": country,
            "taxStrategy": {
                "title": "Bonded warehouse",
                "details": ["Defer duty until release"],
                "potentialSavings": "3%",
            },
            "vatHandling": {
                "rate": "19%",
                "mechanism": "Import VAT deferment",
                "advice": "Register for postponed accounting.",
            },
            "complianceDeepDive": {
                "certificationsRequired": ["CE"],
                "legalPitfalls": ["EUDR traceability"],
            },
            "logisticsStrategy": {
                "bestRoute": "Sea freight via Hamburg",
                "alternativeRoute": "Rail via Duisburg",
                "estimatedTransitTime": "35 days",
            },
        },
    }


_DASHBOARD: Dict[str, Any] = {
    "marketIntelligence": {
        "competitors": [
            {"name": "Chair A", "price": 299, "features": "Solid oak", "platform": "Amazon"},
            {"name": "Chair B", "price": 259, "features": "Veneer"},
            {"name": "Chair C", "price": 349, "features": "Designer"},
        ],
        "priceRange": {"min": 259, "max": 349, "average": 302.3},
        "currency": "EUR",
        "unit": "pcs",
        "descriptionUsed": "Solid oak dining chair",
    },
    "primaryAnalysis": _market_analysis("Germany", "DE"),
    "alternatives": [_market_analysis("France", "FR")],
}


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def dashboard_payload() -> Callable[[], Dict[str, Any]]:
    """Return a factory producing a fresh, contract-conforming dashboard dict."""

    def _factory() -> Dict[str, Any]:
        return copy.deepcopy(_DASHBOARD)

    return _factory


@pytest.fixture
def analysis_request() -> AnalysisRequest:
    return AnalysisRequest(
        product_name="Oak dining chair",
        origin_country="China",
        destination_country="Germany",
        base_cost=100,
        currency="EUR",
        hs_code="940161",
        unit="pcs",
        notes="Solid oak, upholstered seat",
        benchmark_price=299,
        use_search=True,
        language="en",
    )
