"""
Prompt construction for the research and synthesis stages.

Everything here is a pure function of its arguments so prompts can be asserted
on directly in tests. No timestamps or random salts are embedded.
"""

from __future__ import annotations

from typing import Dict, Optional

from exportpath.schemas import AnalysisRequest, Language, ResearchResult

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "zh": "Simplified Chinese",
    "tw": "Traditional Chinese",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
}

NO_SEARCH_PLACEHOLDER = (
    "(INTERNAL KNOWLEDGE MODE - NO SEARCH) No live search was performed. "
    "Use internal estimation based on your training knowledge."
)

# HS prefixes whose MFN duty is zero in most markets. Longest prefix wins.
DUTY_FREE_SECTORS: Dict[str, str] = {
    "94": "furniture, bedding and lighting (HS chapter 94)",
    "4901": "printed books and brochures (HS 4901)",
    "8471": "computers and data-processing machines (HS 8471, ITA)",
    "8517": "telephones and network equipment (HS 8517, ITA)",
}


def language_name(language: Language) -> str:
    return LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["en"])


def _normalize_hs(hs_code: Optional[str]) -> str:
    return "".join(ch for ch in (hs_code or "") if ch.isdigit())


def duty_free_sector(hs_code: Optional[str]) -> Optional[str]:
    """Return the duty-free sector label an HS code falls under, if any."""
    digits = _normalize_hs(hs_code)
    if not digits:
        return None
    for prefix in sorted(DUTY_FREE_SECTORS, key=len, reverse=True):
        if digits.startswith(prefix):
            return DUTY_FREE_SECTORS[prefix]
    return None


def build_research_query(request: AnalysisRequest) -> str:
    """Instructions for the grounded research call."""
    hs_code = request.hs_code or "unknown"
    origin = request.origin_country
    destination = request.destination_country
    lines = [
        "Act as an international trade researcher.",
        (
            f'Find SPECIFIC current import duty data for "{request.product_name}" '
            f"(HS Code: {hs_code}) shipped from {origin} to {destination}."
        ),
        "",
        "Instructions:",
        f'1. Search the "Third Country Duty" / "MFN Tariff" applied by {destination}.',
        (
            f"2. Search Anti-Dumping (AD), Countervailing (CVD) and Safeguard duties "
            f"on this product from {origin}."
        ),
        (
            f"3. Search bilateral trade-war or retaliatory tariffs between {origin} "
            f"and {destination} (e.g. Section 301 lists)."
        ),
        "4. Search Non-Tariff Barriers (fees such as MPF/HMF, licensing, standards).",
        f"5. Find the standard VAT / GST rate applied at import in {destination}.",
        (
            f"6. Find at least 3 competitor products with current prices in "
            f"{destination}."
        ),
        "",
        "Source Hierarchy: Prioritize .gov, .org and official customs sites. Ignore blogs.",
    ]
    return "\n".join(lines)


def build_analysis_prompt(request: AnalysisRequest) -> str:
    """Synthesis rules and product input, without the research context."""
    hs_code = request.hs_code or "unknown"
    details = request.notes or request.hs_code_description or "N/A"
    benchmark = (
        f"{request.benchmark_price:g} {request.currency}"
        if request.benchmark_price is not None
        else "N/A"
    )
    sectors = "; ".join(label for _, label in sorted(DUTY_FREE_SECTORS.items()))

    lines = [
        "Act as a senior International Trade Consultant.",
        "Perform a feasibility study based on the provided RESEARCH CONTEXT.",
        "",
        "INPUT:",
        (
            f'Product: "{request.product_name}", HS: "{hs_code}", '
            f'Origin: "{request.origin_country}", '
            f'Dest: "{request.destination_country}", '
            f"Cost: {request.base_cost:g} {request.currency} per {request.unit}."
        ),
        f"Retail Benchmark: {benchmark}.",
        f"Details: {details}.",
        "",
        "RULES:",
        (
            "1. Tariff Stability: Use 0% MFN tariffRate for duty-free sectors "
            f"({sectors}) unless the research context explicitly reports "
            "Anti-Dumping, Countervailing, Safeguard or trade-war duties. "
            "Do not invent a nonzero tariff from missing data."
        ),
        (
            "2. Punitive Tariffs: When the research context mentions Anti-Dumping, "
            "Countervailing, Safeguard, Section 301 or other retaliatory duties for "
            "this origin, you MUST add them to tariffRate and explain them in tariffNote."
        ),
        (
            "3. Prices: Estimate the B2B wholesale localMarketPrice from the retail "
            "context. Never return 0 for any price; estimate realistically instead."
        ),
        (
            "4. Rates: tariffRate and vatRate are decimal fractions (0.19 means 19%). "
            "breakdown amounts are per unit in the same currency as the base cost."
        ),
        (
            "5. Strategy: Include Tax, Legal (e.g. UFLPA, EUDR) and Logistics "
            "strategies, and propose alternative destination countries."
        ),
    ]

    sector = duty_free_sector(request.hs_code)
    if sector:
        lines.append(
            f"6. This product falls under {sector}: tariffRate MUST be 0 unless "
            "the research context names a punitive measure against this origin."
        )

    lines.extend(
        [
            "",
            f"IMPORTANT: Respond in {language_name(request.language)} language.",
            "Return strict JSON.",
        ]
    )
    return "\n".join(lines)


def compose_synthesis_prompt(research_narrative: str, analysis_prompt: str) -> str:
    """Prefix the analysis prompt with the research stage output."""
    context = research_narrative.strip() or NO_SEARCH_PLACEHOLDER
    return f"RESEARCH CONTEXT:\n{context}\n\n{analysis_prompt}"


def build_synthesis_instruction(
    request: AnalysisRequest, research: ResearchResult
) -> str:
    """Full synthesis prompt for a request and its research result."""
    return compose_synthesis_prompt(research.narrative, build_analysis_prompt(request))


def build_image_prompt(language: Language) -> str:
    lines = [
        "Analyze this product image for export purposes.",
        "1. Identify the Product Name clearly.",
        "2. Determine the most accurate HS Code (6 digits).",
        "3. Provide the official Short Description for this HS Code.",
        "4. Identify the standard trading Unit.",
        '5. Write a detailed "Product Description".',
        f"IMPORTANT: Respond in {language_name(language)} language.",
        "Return strict JSON.",
    ]
    return "\n".join(lines)


def build_suggestion_prompt(
    product_name: str, currency: str, language: Language
) -> str:
    lines = [
        f'I am planning to export a product named "{product_name}".',
        (
            "Please act as a trade assistant and suggest: HS Code, Description, "
            f"Base Cost in {currency}, Unit, Standard Description."
        ),
        f"IMPORTANT: Respond in {language_name(language)} language.",
        "Return strict JSON.",
    ]
    return "\n".join(lines)


__all__ = [
    "DUTY_FREE_SECTORS",
    "LANGUAGE_NAMES",
    "NO_SEARCH_PLACEHOLDER",
    "build_analysis_prompt",
    "build_image_prompt",
    "build_research_query",
    "build_suggestion_prompt",
    "build_synthesis_instruction",
    "compose_synthesis_prompt",
    "duty_free_sector",
    "language_name",
]
