import json

import pytest

from exportpath.schemas import CostBreakdown
from exportpath.schemas.contract import parse_dashboard
from exportpath.services.reconciler import (
    reconcile_dashboard,
    reconcile_figures,
    total_landed_cost,
)


def _breakdown(**overrides: float) -> CostBreakdown:
    values = {
        "base_cost": 100,
        "shipping": 50,
        "tariffs": 20,
        "vat": 15,
        "compliance": 5,
    }
    values.update(overrides)
    return CostBreakdown(**values)


def test_reconcile_figures_recomputes_totals() -> None:
    figures = reconcile_figures(_breakdown(), 250)

    assert figures.total_landed_cost == 190
    assert figures.net_profit == 60
    assert figures.roi_percent == pytest.approx(31.5789, rel=1e-4)


def test_reconcile_figures_is_idempotent() -> None:
    breakdown = _breakdown()

    first = reconcile_figures(breakdown, 250)
    second = reconcile_figures(breakdown, 250)

    assert first == second


def test_zero_landed_cost_leaves_roi_undefined() -> None:
    figures = reconcile_figures(
        _breakdown(base_cost=0, shipping=0, tariffs=0, vat=0, compliance=0), 40
    )

    assert figures.total_landed_cost == 0
    assert figures.net_profit == 40
    assert figures.roi_percent is None


def test_reconcile_dashboard_ignores_model_reported_totals(dashboard_payload) -> None:
    payload = dashboard_payload()
    payload["primaryAnalysis"]["landedCost"] = 999
    payload["primaryAnalysis"]["roiPercentage"] = 500
    data = parse_dashboard(json.dumps(payload))

    reconciled = reconcile_dashboard(data)

    primary = reconciled.primary_analysis
    assert primary.reconciled is not None
    assert primary.reconciled.total_landed_cost == total_landed_cost(primary.breakdown) == 190
    assert primary.reconciled.net_profit == 60
    assert all(alt.reconciled is not None for alt in reconciled.alternatives)
    assert reconcile_dashboard(reconciled) == reconciled
    # Input object untouched.
    assert data.primary_analysis.reconciled is None


def test_reconcile_logs_landed_cost_drift(dashboard_payload, caplog) -> None:
    payload = dashboard_payload()
    payload["primaryAnalysis"]["landedCost"] = 150
    data = parse_dashboard(json.dumps(payload))

    with caplog.at_level("WARNING"):
        reconcile_dashboard(data)

    assert "differs from breakdown total" in caplog.text
