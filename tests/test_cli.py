from __future__ import annotations

from pathlib import Path

import pytest

from logsync.cli import build_parser, main
from logsync.config import ENV_FIELDS


def test_diff_prints_new_lines(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    old = tmp_path / "old.log"
    new = tmp_path / "new.log"
    old.write_text("a\nb\nc\n", encoding="utf-8")
    new.write_text("a\nb\nc\nd\ne\n", encoding="utf-8")

    assert main(["diff", str(old), str(new)]) == 0
    assert capsys.readouterr().out == "d\ne\n"


def test_diff_prints_nothing_when_unchanged(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "app.log"
    log.write_text("a\nb\n", encoding="utf-8")

    assert main(["diff", str(log), str(log)]) == 0
    assert capsys.readouterr().out == ""


def test_run_without_configuration_fails(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    for name in list(ENV_FIELDS) + ["STP_CONFIG"]:
        monkeypatch.delenv(name, raising=False)

    assert main(["run"]) == 1
    assert "STP_SFTP_HOST" in capsys.readouterr().err


def test_schedule_interval_and_cron_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["schedule", "--interval", "60", "--cron", "* * * * *"])


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_schedule_with_invalid_cron_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    for name in list(ENV_FIELDS) + ["STP_CONFIG"]:
        monkeypatch.delenv(name, raising=False)
    for name, value in {
        "STP_SFTP_HOST": "sftp.example.com",
        "STP_SFTP_USERNAME": "logs",
        "STP_SFTP_PASSWORD": "secret",
        "STP_SFTP_PATH": "/var/log/app.log",
        "STP_SNAPSHOT_BACKEND": "file",
        "STP_SNAPSHOT_DIR": str(tmp_path),
        "STP_PAPERTRAIL_HOST": "logs.example.com",
        "STP_PAPERTRAIL_PORT": "514",
    }.items():
        monkeypatch.setenv(name, value)

    assert main(["schedule", "--cron", "not a cron"]) == 1
    assert "Invalid schedule" in capsys.readouterr().err
