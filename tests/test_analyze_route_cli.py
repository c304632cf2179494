try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import json
from datetime import date

import pytest

from exportpath.core import config as config_module
from exportpath.dependencies import clients as clients_module
from exportpath.dependencies import config as dependency_config
from exportpath.core.errors import RemoteServiceError
from exportpath.schemas.contract import parse_dashboard
from exportpath.services import (
    InMemoryQuotaStore,
    QuotaGate,
    RequestLifecycleController,
)
from exportpath.services.reconciler import reconcile_dashboard
from scripts import analyze_route


@pytest.mark.asyncio
async def test_run_analysis_prints_report(analysis_request, dashboard_payload, capsys):
    dashboard = reconcile_dashboard(parse_dashboard(json.dumps(dashboard_payload())))

    async def analyzer(request):
        return dashboard

    exit_code = await analyze_route.run_analysis(
        analysis_request, RequestLifecycleController(analyzer)
    )

    assert exit_code == analyze_route.EXIT_OK
    captured = capsys.readouterr()
    assert "# Export Feasibility: Germany (DE)" in captured.out
    assert "Analyzing Oak dining chair: China -> Germany (live search)" in captured.err


@pytest.mark.asyncio
async def test_run_analysis_reports_rate_limit(analysis_request, capsys):
    async def analyzer(request):
        raise RemoteServiceError("429", rate_limited=True)

    exit_code = await analyze_route.run_analysis(
        analysis_request, RequestLifecycleController(analyzer)
    )

    assert exit_code == analyze_route.EXIT_RATE_LIMITED
    assert "API Rate Limit Exceeded" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_run_analysis_respects_quota(analysis_request, capsys):
    calls = []

    async def analyzer(request):
        calls.append(request)

    gate = QuotaGate(
        InMemoryQuotaStore({"date": "2024-01-01", "count": "3"}),
        today=lambda: date(2024, 1, 1),
    )

    exit_code = await analyze_route.run_analysis(
        analysis_request, RequestLifecycleController(analyzer, quota_gate=gate)
    )

    assert exit_code == analyze_route.EXIT_QUOTA
    assert calls == []
    assert "free analysis credits" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_run_analysis_can_be_cancelled(analysis_request, capsys):
    never = asyncio.get_running_loop().create_future()

    async def analyzer(request):
        return await never

    controller = RequestLifecycleController(analyzer)
    asyncio.get_running_loop().call_soon(controller.cancel)

    exit_code = await analyze_route.run_analysis(analysis_request, controller)

    assert exit_code == analyze_route.EXIT_CANCELLED
    assert "Analysis cancelled." in capsys.readouterr().err


def test_main_requires_route_arguments():
    with pytest.raises(SystemExit) as excinfo:
        analyze_route.main(["--product", "Oak chair", "--origin", "China"])

    assert excinfo.value.code == 2


def _clear_cached_settings() -> None:
    config_module.get_settings.cache_clear()
    dependency_config._settings_singleton.cache_clear()
    clients_module._settings.cache_clear()
    clients_module.get_gemini_client.cache_clear()
    clients_module.get_quota_store.cache_clear()


@pytest.fixture
def without_api_key(monkeypatch, tmp_path):
    for key in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.setenv("QUOTA_DB_PATH", str(tmp_path / "quota.db"))
    _clear_cached_settings()
    yield
    _clear_cached_settings()


def test_quota_works_without_api_key(without_api_key, capsys):
    exit_code = analyze_route.main(["--quota"])

    assert exit_code == analyze_route.EXIT_OK
    assert "3 analyses left today" in capsys.readouterr().out


def test_in_process_run_without_api_key_is_a_usage_error(without_api_key, capsys):
    exit_code = analyze_route.main(
        [
            "--product",
            "Oak chair",
            "--origin",
            "China",
            "--destination",
            "Germany",
            "--cost",
            "42",
        ]
    )

    assert exit_code == analyze_route.EXIT_USAGE
    err = capsys.readouterr().err
    assert "GEMINI_API_KEY" in err
    assert "--remote" in err


@pytest.mark.asyncio
async def test_cancelled_in_process_run_says_it_waits_for_gemini(monkeypatch, capsys):
    async def cancelled_run(request, controller):
        return analyze_route.EXIT_CANCELLED

    async def analyzer(request):
        raise AssertionError("not started")

    monkeypatch.setattr(analyze_route, "run_analysis", cancelled_run)
    monkeypatch.setattr(analyze_route, "_resolve_analyzer", lambda remote: analyzer)
    argv = ["--product", "Oak chair", "--origin", "China"]
    argv += ["--destination", "Germany", "--cost", "42"]

    local = await analyze_route._main_async(analyze_route._build_parser().parse_args(argv))
    assert local == analyze_route.EXIT_CANCELLED
    assert "Waiting up to" in capsys.readouterr().err

    remote = await analyze_route._main_async(
        analyze_route._build_parser().parse_args(argv + ["--remote"])
    )
    assert remote == analyze_route.EXIT_CANCELLED
    assert "Waiting up to" not in capsys.readouterr().err
