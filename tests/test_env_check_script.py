"""Tests for the environment drift detection script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "API_RATE_LIMIT_PER_MINUTE",
    "DEMO_SECRET",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Values loaded from the env file land in os.environ; registering every key
    # with monkeypatch first makes teardown remove them again.
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(
        env_file,
        GEMINI_API_KEY="gemini-key",
        DEMO_SECRET="demo",
        API_RATE_LIMIT_PER_MINUTE="20",
    )

    exit_code = check_env.main(
        [
            "record",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_OK
    baseline = hash_file.read_text(encoding="utf-8").strip()
    assert baseline

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        [
            "verify",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_OK

    _write_env(
        env_file,
        GEMINI_API_KEY="gemini-key",
        DEMO_SECRET="rotated",
        API_RATE_LIMIT_PER_MINUTE="20",
    )

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        [
            "verify",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_CHECKSUM_ERROR


def test_google_api_key_is_accepted(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, GOOGLE_API_KEY="gemini-key", DEMO_SECRET="demo")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    output = capsys.readouterr().out
    assert "Daily quota:" in output
    demo_line = next(
        line for line in output.splitlines() if line.startswith("Demo secret:")
    )
    assert demo_line.endswith(" set") and "not set" not in demo_line
    assert "gemini-key" not in output


def test_validation_failure_for_missing_api_key(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(env_file, DEMO_SECRET="demo")

    exit_code = check_env.main(
        [
            "record",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    assert not hash_file.exists()


def test_validation_failure_for_invalid_rate_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, GEMINI_API_KEY="gemini-key", API_RATE_LIMIT_PER_MINUTE="0")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_check_reports_missing_api_key(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, DEMO_SECRET="demo")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    captured = capsys.readouterr()
    assert "GEMINI_API_KEY" in captured.err
    assert "Daily quota:" not in captured.out
