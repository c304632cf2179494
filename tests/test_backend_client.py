try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest

from exportpath.clients import ExportPathBackendClient
from exportpath.core.errors import (
    RATE_LIMIT_MESSAGE,
    RemoteServiceError,
    SchemaViolationError,
)


def _client(handler, **kwargs) -> ExportPathBackendClient:
    return ExportPathBackendClient(
        base_url="http://backend.test/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_analyze_route_posts_prompts_and_reconciles(
    analysis_request, dashboard_payload
) -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "text": json.dumps(dashboard_payload()),
                "searchSources": [{"title": "TARIC", "uri": "https://ec.europa.eu/taric"}],
                "source": "LIVE_AI",
            },
        )

    client = _client(handler, demo_secret="demo")
    dashboard = await client.analyze_route(analysis_request)

    assert captured["path"] == "/api/analyze-route"
    assert captured["headers"]["x-demo-secret"] == "demo"
    body = captured["body"]
    assert body["useSearch"] is True
    assert "from China to Germany" in body["researchPrompt"]
    assert "RULES:" in body["analysisPrompt"]
    assert body["analysisConfig"]["responseMimeType"] == "application/json"
    assert body["metadata"]["hsCode"] == "940161"

    assert dashboard.search_sources[0].title == "TARIC"
    assert dashboard.primary_analysis.reconciled.total_landed_cost == 190


@pytest.mark.asyncio
async def test_backend_rate_limit_is_flagged(analysis_request) -> None:
    client = _client(lambda request: httpx.Response(429, json={"detail": "slow down"}))

    with pytest.raises(RemoteServiceError) as excinfo:
        await client.analyze_route(analysis_request)

    assert excinfo.value.rate_limited is True
    assert excinfo.value.user_message == RATE_LIMIT_MESSAGE


@pytest.mark.asyncio
async def test_backend_error_detail_is_surfaced(analysis_request) -> None:
    client = _client(
        lambda request: httpx.Response(500, json={"detail": "Gemini unavailable"})
    )

    with pytest.raises(RemoteServiceError) as excinfo:
        await client.analyze_route(analysis_request)

    assert excinfo.value.rate_limited is False
    assert str(excinfo.value) == "Service Error: Gemini unavailable"


@pytest.mark.asyncio
async def test_transport_failure_becomes_remote_error(analysis_request) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(RemoteServiceError, match="Service Error"):
        await client.analyze_route(analysis_request)


@pytest.mark.asyncio
async def test_invalid_dashboard_text_is_schema_violation(analysis_request) -> None:
    client = _client(
        lambda request: httpx.Response(200, json={"text": "{}", "searchSources": []})
    )

    with pytest.raises(SchemaViolationError):
        await client.analyze_route(analysis_request)


@pytest.mark.asyncio
async def test_suggest_product_details() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/suggest"
        assert "Base Cost in EUR" in json.loads(request.content)["prompt"]
        return httpx.Response(
            200,
            json={
                "text": json.dumps(
                    {
                        "hsCode": "940161",
                        "hsCodeDescription": "Upholstered wooden seats",
                        "estimatedBaseCost": 42.5,
                        "unit": "pcs",
                        "description": "Oak dining chair",
                    }
                )
            },
        )

    suggestion = await _client(handler).suggest_product_details(
        product_name="Oak chair", currency="EUR"
    )

    assert suggestion.estimated_base_cost == 42.5
