"""Pre-flight check for an ExportPath deployment's ``.env`` file.

``check`` loads the file, reports anything that would stop the backend or an
in-process analysis from working, and prints the non-secret settings.
``record`` stores a SHA256 fingerprint of the file once it passes, and
``verify`` compares the file against that fingerprint so a silently rotated
``DEMO_SECRET`` or ``QUOTA_ADMIN_SECRET`` is noticed before the next restart.

Example usages::

    python -m scripts.check_env check --env-file .env
    python -m scripts.check_env record --env-file /srv/exportpath/.env \
        --hash-file /srv/exportpath/.env.sha256
    python -m scripts.check_env verify --env-file /srv/exportpath/.env \
        --hash-file /srv/exportpath/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from exportpath.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _fingerprint(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _readiness_issues(settings: AppSettings) -> List[str]:
    """Settings that parse but leave the backend unable to analyze routes."""
    issues = []
    if not settings.gemini.api_key:
        issues.append(
            "GEMINI_API_KEY (or GOOGLE_API_KEY) is empty; the backend and "
            "in-process runs cannot reach Gemini."
        )
    return issues


def _show(args: argparse.Namespace, settings: AppSettings) -> int:
    gemini, quota, server = settings.gemini, settings.quota, settings.server
    rows = [
        ("Gemini model", f"{gemini.model_name} (vision: {gemini.vision_model_name})"),
        ("Request timeout", f"{gemini.request_timeout_seconds:g}s"),
        ("Daily quota", f"{quota.daily_limit} runs ({quota.db_path})"),
        ("Quota admin secret", "set" if quota.admin_secret else "not set"),
        ("Backend URL", str(settings.backend_base_url)),
        ("Requests per minute", str(server.rate_limit_per_minute)),
        ("Demo secret", "set" if server.demo_secret else "not set"),
    ]
    width = max(len(label) for label, _ in rows) + 2
    for label, value in rows:
        print(f"{label + ':':<{width}}{value}")
    return EXIT_OK


def _record(args: argparse.Namespace, settings: AppSettings) -> int:
    digest = _fingerprint(args.env_file)
    args.hash_file.write_text(digest + "\n", encoding="utf-8")
    print(f"{args.env_file} fingerprint saved to {args.hash_file}: {digest}")
    return EXIT_OK


def _verify(args: argparse.Namespace, settings: AppSettings) -> int:
    if not args.hash_file.exists():
        print(
            f"No fingerprint at {args.hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    saved = args.hash_file.read_text(encoding="utf-8").strip()
    current = _fingerprint(args.env_file)
    if saved != current:
        print(
            f"{args.env_file} changed since its fingerprint was recorded "
            f"(saved {saved}, now {current}).",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print(f"{args.env_file} matches its recorded fingerprint.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check an ExportPath .env file and track changes to it."
    )
    env_file = argparse.ArgumentParser(add_help=False)
    env_file.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file to load (default: ./.env).",
    )
    hash_file = argparse.ArgumentParser(add_help=False)
    hash_file.add_argument(
        "--hash-file",
        type=Path,
        required=True,
        help="File holding the recorded SHA256 fingerprint.",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser(
        "check", parents=[env_file], help="Report problems and print settings."
    ).set_defaults(handler=_show)
    commands.add_parser(
        "record", parents=[env_file, hash_file], help="Save the file's fingerprint."
    ).set_defaults(handler=_record)
    commands.add_parser(
        "verify",
        parents=[env_file, hash_file],
        help="Compare the file with its saved fingerprint.",
    ).set_defaults(handler=_verify)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if not args.env_file.is_file():
        print(f"{args.env_file} not found.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    _load_env_file(str(args.env_file))
    try:
        settings = AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        print(f"{args.env_file} has invalid values:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    issues = _readiness_issues(settings)
    if issues:
        for issue in issues:
            print(f"{args.env_file}: {issue}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    return args.handler(args, settings)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
