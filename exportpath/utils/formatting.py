"""Display helpers shared by the report renderer and the CLI."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

_OFFICIAL_MARKERS: tuple[str, ...] = (
    ".gov",
    "europa.eu",
    "wto.org",
    "un.org",
    "worldbank.org",
    "oecd.org",
    "customs",
    "ministry",
)
_TRUSTED_MARKERS: tuple[str, ...] = (
    "reuters.com",
    "bloomberg.com",
    "ft.com",
    "flexport",
    "freightos",
    "statista",
    "mckinsey",
    "deloitte",
)


def format_percent(value: Optional[float]) -> str:
    """Render a tariff or VAT rate that may be a fraction or a whole percentage.

    Values above 1 are taken to already be percentages, so a genuine rate above
    100% expressed as a fraction (e.g. 1.5) renders as "1.5%".
    """
    if value is None:
        return "n/a"
    if value == 0:
        return "0%"
    if value > 1:
        return f"{value:.1f}%"
    return f"{value * 100:.1f}%"


def format_money(amount: Optional[float], currency: str) -> str:
    if amount is None:
        return "n/a"
    return f"{amount:,.2f} {currency}"


def source_credibility(uri: str) -> str:
    """Classify a citation as Official, Trusted, Web, or Link when unparseable."""
    try:
        hostname = (urlparse(uri).hostname or "").lower()
    except ValueError:
        return "Link"
    if not hostname:
        return "Link"
    if any(marker in hostname for marker in _OFFICIAL_MARKERS):
        return "Official"
    if any(marker in hostname for marker in _TRUSTED_MARKERS):
        return "Trusted"
    return "Web"


__all__ = ["format_money", "format_percent", "source_credibility"]
