"""
Recompute landed cost, profit and ROI from the itemized cost breakdown.

The model is asked for totals as well, but those numbers are never used: only
the five breakdown components and the local market price are trusted.
"""

from __future__ import annotations

import logging

from exportpath.schemas import (
    CostBreakdown,
    DashboardData,
    MarketAnalysis,
    ReconciledFigures,
)

logger = logging.getLogger(__name__)

_LANDED_COST_TOLERANCE = 0.01


def total_landed_cost(breakdown: CostBreakdown) -> float:
    return (
        breakdown.base_cost
        + breakdown.shipping
        + breakdown.tariffs
        + breakdown.vat
        + breakdown.compliance
    )


def reconcile_figures(
    breakdown: CostBreakdown, local_market_price: float
) -> ReconciledFigures:
    """Derive the authoritative totals for one market."""
    total = total_landed_cost(breakdown)
    net_profit = local_market_price - total
    roi_percent = None if total == 0 else net_profit / total * 100
    return ReconciledFigures(
        total_landed_cost=total,
        net_profit=net_profit,
        roi_percent=roi_percent,
    )


def reconcile_analysis(analysis: MarketAnalysis) -> MarketAnalysis:
    figures = reconcile_figures(analysis.breakdown, analysis.local_market_price)
    reported = analysis.landed_cost
    if reported is not None and figures.total_landed_cost:
        drift = abs(reported - figures.total_landed_cost) / figures.total_landed_cost
        if drift > _LANDED_COST_TOLERANCE:
            logger.warning(
                "Model-reported landed cost for %s differs from breakdown total "
                "(reported=%.2f, computed=%.2f)",
                analysis.country,
                reported,
                figures.total_landed_cost,
            )
    return analysis.model_copy(update={"reconciled": figures})


def reconcile_dashboard(data: DashboardData) -> DashboardData:
    """Attach recomputed figures to the primary analysis and every alternative."""
    return data.model_copy(
        update={
            "primary_analysis": reconcile_analysis(data.primary_analysis),
            "alternatives": [reconcile_analysis(item) for item in data.alternatives],
        }
    )


__all__ = [
    "reconcile_analysis",
    "reconcile_dashboard",
    "reconcile_figures",
    "total_landed_cost",
]
