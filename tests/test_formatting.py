import pytest

from exportpath.utils.formatting import format_money, format_percent, source_credibility


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.19, "19.0%"),
        (19, "19.0%"),
        (0, "0%"),
        (1, "100.0%"),
        (0.025, "2.5%"),
        (None, "n/a"),
    ],
)
def test_format_percent_disambiguates_fractions(value, expected) -> None:
    assert format_percent(value) == expected


def test_format_money() -> None:
    assert format_money(1234.5, "EUR") == "1,234.50 EUR"
    assert format_money(None, "EUR") == "n/a"


@pytest.mark.parametrize(
    ("uri", "tier"),
    [
        ("https://hts.usitc.gov/search", "Official"),
        ("https://taxation-customs.ec.europa.eu/tariff", "Official"),
        ("https://www.reuters.com/markets/", "Trusted"),
        ("https://www.flexport.com/blog", "Trusted"),
        ("https://someblog.example.com/post", "Web"),
        ("not a url", "Link"),
    ],
)
def test_source_credibility_tiers(uri, tier) -> None:
    assert source_credibility(uri) == tier
