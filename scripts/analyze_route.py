#!/usr/bin/env python
"""Command-line client for export route feasibility analysis.

Runs the research and synthesis pipeline either in-process (requires
``GEMINI_API_KEY``) or against a running backend (``--remote``), subject to the
local daily quota. Press Ctrl-C while an analysis is running to cancel it; an
in-process run then exits once the pending Gemini call returns or times out
(``GEMINI_REQUEST_TIMEOUT``).

Example usages::

    python -m scripts.analyze_route --product "Oak dining chair" \
        --origin China --destination Germany --cost 42 --currency EUR \
        --hs-code 940161

    python -m scripts.analyze_route --image chair.jpg --origin Vietnam \
        --destination "United States" --cost 35 --currency USD --remote
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import signal
import sys
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from exportpath.core.config import get_settings  # noqa: E402
from exportpath.core.errors import (  # noqa: E402
    ConfigurationError,
    ExportPathError,
    QuotaExceededError,
)
from exportpath.core.logging import configure_logging  # noqa: E402
from exportpath.schemas import AnalysisRequest, ImageAnalysisResult  # noqa: E402
from exportpath.services import (  # noqa: E402
    AnalysisStatus,
    RequestLifecycleController,
    SessionState,
)
from exportpath.services.lifecycle import Analyzer  # noqa: E402
from exportpath.services.report import render_markdown  # noqa: E402

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_QUOTA = 3
EXIT_RATE_LIMITED = 4
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate landed cost, margin and compliance risk for an export route."
    )
    parser.add_argument("--product", help="Product name.")
    parser.add_argument("--origin", help="Origin country name.")
    parser.add_argument("--destination", help="Destination country name.")
    parser.add_argument("--cost", type=float, help="Base unit cost at origin.")
    parser.add_argument("--currency", default="USD", help="ISO currency code.")
    parser.add_argument("--hs-code", dest="hs_code", help="Harmonized System code.")
    parser.add_argument("--unit", default=None, help="Trading unit (default: pcs).")
    parser.add_argument("--notes", default=None, help="Product description.")
    parser.add_argument(
        "--benchmark",
        type=float,
        default=None,
        help="Retail price benchmark used to guide the wholesale estimate.",
    )
    parser.add_argument(
        "--no-search",
        dest="use_search",
        action="store_false",
        help="Skip grounded research and rely on internal model knowledge.",
    )
    parser.add_argument(
        "--language",
        default="en",
        choices=["en", "zh", "tw", "fr", "de", "es"],
        help="Language of the generated report.",
    )
    parser.add_argument(
        "--image",
        type=Path,
        default=None,
        help="Product photo used to fill in name, HS code and unit.",
    )
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Send the analysis to BACKEND_BASE_URL instead of calling Gemini directly.",
    )
    parser.add_argument(
        "--unlock",
        metavar="SECRET",
        default=None,
        help="Lift the local daily quota using the admin secret, then exit.",
    )
    parser.add_argument(
        "--quota",
        action="store_true",
        help="Print the remaining analyses for today and exit.",
    )
    return parser


async def _identify_image(args: argparse.Namespace) -> ImageAnalysisResult:
    from exportpath.dependencies import get_backend_client, get_product_assist_service

    image_path: Path = args.image
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
    image = image_path.read_bytes()
    if args.remote:
        return await get_backend_client().analyze_product_image(
            image=image, mime_type=mime_type, language=args.language
        )
    return await get_product_assist_service().identify_from_image(
        image=image, mime_type=mime_type, language=args.language
    )


def _build_request(
    args: argparse.Namespace, seed: ImageAnalysisResult | None
) -> AnalysisRequest:
    fields: Dict[str, Any] = {
        "product_name": args.product or (seed.detected_name if seed else None),
        "origin_country": args.origin,
        "destination_country": args.destination,
        "base_cost": args.cost,
        "currency": args.currency.upper(),
        "hs_code": args.hs_code or (seed.hs_code if seed else None),
        "hs_code_description": seed.hs_code_description if seed else None,
        "unit": args.unit or (seed.unit if seed else "pcs"),
        "notes": args.notes or (seed.visual_description if seed else None),
        "benchmark_price": args.benchmark,
        "use_search": args.use_search,
        "language": args.language,
    }
    return AnalysisRequest(**fields)


def _resolve_analyzer(remote: bool) -> Analyzer:
    from exportpath.dependencies import (
        get_backend_client,
        get_route_analysis_pipeline,
    )

    if remote:
        return get_backend_client().analyze_route
    return get_route_analysis_pipeline().analyze


def _describe(state: SessionState) -> None:
    if state.status is AnalysisStatus.RUNNING and state.request is not None:
        mode = "live search" if state.request.use_search else "internal knowledge"
        print(
            f"Analyzing {state.request.product_name}: "
            f"{state.request.origin_country} -> {state.request.destination_country} "
            f"({mode})... press Ctrl-C to cancel",
            file=sys.stderr,
        )


async def run_analysis(
    request: AnalysisRequest, controller: RequestLifecycleController
) -> int:
    """Start one run and wait until it succeeds, fails, or is cancelled."""
    settled = asyncio.Event()

    def _on_change(state: SessionState) -> None:
        _describe(state)
        if state.status is not AnalysisStatus.RUNNING:
            settled.set()

    unsubscribe = controller.subscribe(_on_change)
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.cancel)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows
        handles_sigint = False

    try:
        controller.start(request)
        await settled.wait()
    except QuotaExceededError as exc:
        print(f"{exc} Unlock unlimited analyses with --unlock.", file=sys.stderr)
        return EXIT_QUOTA
    finally:
        unsubscribe()
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    state = controller.state
    if state.status is AnalysisStatus.SUCCESS and state.data is not None:
        print(render_markdown(state.data))
        return EXIT_OK
    if state.status is AnalysisStatus.ERROR:
        print(f"Analysis failed: {state.error}", file=sys.stderr)
        return EXIT_RATE_LIMITED if state.rate_limited else EXIT_FAILED
    print("Analysis cancelled.", file=sys.stderr)
    return EXIT_CANCELLED


async def _main_async(args: argparse.Namespace) -> int:
    from exportpath.dependencies import get_quota_gate

    seed = await _identify_image(args) if args.image else None
    try:
        request = _build_request(args, seed)
    except ValidationError as exc:
        print(f"Invalid analysis request: {exc}", file=sys.stderr)
        return EXIT_USAGE

    controller = RequestLifecycleController(
        _resolve_analyzer(args.remote), quota_gate=get_quota_gate()
    )
    exit_code = await run_analysis(request, controller)
    if exit_code == EXIT_CANCELLED and not args.remote:
        # The blocking SDK call keeps its worker thread until it returns.
        timeout = get_settings().gemini.request_timeout_seconds
        print(
            f"Waiting up to {timeout:g}s for the in-flight Gemini call to return...",
            file=sys.stderr,
        )
    return exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_USAGE
    configure_logging(settings.log_level)

    from exportpath.dependencies import get_quota_admin, get_quota_gate

    if args.unlock is not None:
        if get_quota_admin().enable_unlimited(args.unlock):
            print("Unlimited analysis mode enabled for this installation.")
            return EXIT_OK
        print("Invalid admin secret.", file=sys.stderr)
        return EXIT_USAGE

    if args.quota:
        remaining = get_quota_gate().remaining()
        print("unlimited" if remaining is None else f"{remaining} analyses left today")
        return EXIT_OK

    missing = [
        flag
        for flag, value in (
            ("--origin", args.origin),
            ("--destination", args.destination),
            ("--cost", args.cost),
        )
        if value is None
    ]
    if not args.product and not args.image:
        missing.insert(0, "--product or --image")
    if missing:
        parser.error(f"missing required arguments: {', '.join(missing)}")

    try:
        return asyncio.run(_main_async(args))
    except ConfigurationError as exc:
        print(
            f"Configuration error: {exc} Use --remote to analyze through the backend.",
            file=sys.stderr,
        )
        return EXIT_USAGE
    except ExportPathError as exc:
        print(f"Analysis failed: {exc}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
