"""Render a completed analysis as Markdown."""

from __future__ import annotations

from typing import List

from exportpath.schemas import DashboardData, MarketAnalysis
from exportpath.utils.formatting import format_money, format_percent, source_credibility


def _figures_lines(analysis: MarketAnalysis) -> List[str]:
    currency = analysis.currency
    figures = analysis.reconciled
    breakdown = analysis.breakdown
    lines = [
        f"- Local market price: {format_money(analysis.local_market_price, currency)}",
    ]
    if figures is not None:
        roi = (
            f"{figures.roi_percent:.2f}%" if figures.roi_percent is not None else "n/a"
        )
        lines.extend(
            [
                f"- Total landed cost: {format_money(figures.total_landed_cost, currency)}",
                f"- Net profit per unit: {format_money(figures.net_profit, currency)}",
                f"- ROI: {roi}",
            ]
        )
    tariff_line = (
        f"- Tariffs ({format_percent(analysis.tariff_rate)}): "
        f"{format_money(breakdown.tariffs, currency)}"
    )
    if analysis.tariff_note:
        tariff_line += f" ({analysis.tariff_note})"
    lines.extend(
        [
            f"- Base cost: {format_money(breakdown.base_cost, currency)}",
            f"- Shipping: {format_money(breakdown.shipping, currency)}",
            tariff_line,
            f"- VAT ({format_percent(analysis.vat_rate)}): "
            + format_money(breakdown.vat, currency),
            f"- Compliance: {format_money(breakdown.compliance, currency)}",
        ]
    )
    return lines


def render_markdown(data: DashboardData) -> str:
    primary = data.primary_analysis
    lines = [f"# Export Feasibility: {primary.country} ({primary.iso_code})"]
    if primary.reasoning:
        lines.append(primary.reasoning)

    lines.append("\n## Landed Cost & Profit")
    lines.extend(_figures_lines(primary))

    lines.append(f"\n## Compliance ({primary.compliance_risk} risk)")
    lines.append(primary.compliance_notes)
    if primary.trade_barriers:
        lines.append(f"Trade barriers: {primary.trade_barriers}")

    strategy = primary.optimization_strategy
    lines.append("\n## Optimization Strategy")
    tax = strategy.tax_strategy
    lines.append(f"**{tax.title}** (savings: {tax.potential_savings})")
    lines.extend(f"- {detail}" for detail in tax.details)
    vat = strategy.vat_handling
    lines.append(f"- VAT {vat.rate} via {vat.mechanism}: {vat.advice}")
    deep_dive = strategy.compliance_deep_dive
    if deep_dive.certifications_required:
        lines.append(
            "- Certifications: " + ", ".join(deep_dive.certifications_required)
        )
    lines.extend(f"- Pitfall: {pitfall}" for pitfall in deep_dive.legal_pitfalls)
    logistics = strategy.logistics_strategy
    lines.append(
        f"- Logistics: {logistics.best_route} ({logistics.estimated_transit_time}); "
        f"alternative: {logistics.alternative_route}"
    )

    intelligence = data.market_intelligence
    lines.append("\n## Competitors")
    price_range = intelligence.price_range
    lines.append(
        f"Price range per {intelligence.unit}: "
        f"{format_money(price_range.min, intelligence.currency)} - "
        f"{format_money(price_range.max, intelligence.currency)} "
        f"(avg {format_money(price_range.average, intelligence.currency)})"
    )
    for competitor in intelligence.competitors:
        where = f" [{competitor.platform}]" if competitor.platform else ""
        lines.append(
            f"- {competitor.name}{where}: "
            f"{format_money(competitor.price, intelligence.currency)}"
        )

    if data.alternatives:
        lines.append("\n## Alternative Markets")
        for alternative in data.alternatives:
            figures = alternative.reconciled
            roi = (
                f"{figures.roi_percent:.1f}% ROI"
                if figures is not None and figures.roi_percent is not None
                else "ROI n/a"
            )
            lines.append(
                f"- {alternative.country}: {roi}, "
                f"{alternative.compliance_risk} compliance risk"
            )

    if data.search_sources:
        lines.append("\n## Sources")
        for source in data.search_sources:
            lines.append(
                f"- [{source_credibility(source.uri)}] [{source.title}]({source.uri})"
            )

    return "\n".join(lines)


__all__ = ["render_markdown"]
