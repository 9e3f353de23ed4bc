"""Tests for the command-line entry point."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from notify_slack import __version__, cli
from notify_slack.core import RunReport
from notify_slack.errors import DeliveryError, InputError


@pytest.fixture
def no_config_file(monkeypatch):
    monkeypatch.setattr(cli, "find_config_file", lambda explicit=None: Path(explicit) if explicit else None)


def _run(argv, stdin: bytes = b""):
    stderr = io.StringIO()
    stdout = io.BytesIO()
    code = cli.main(argv, stdin=io.BytesIO(stdin), stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


def test_version_flag_prints_version() -> None:
    code, _, err = _run(["--version"])

    assert code == 0
    assert err.strip() == f"notify_slack version v{__version__}"


def test_missing_slack_url_fails(no_config_file) -> None:
    code, _, err = _run([], stdin=b"text\n")

    assert code == 1
    assert "must specify Slack URL" in err


def test_invalid_interval_is_a_parse_error(no_config_file, capsys) -> None:
    code, _, err = _run(["--interval", "soon"])

    assert code == 1
    assert "usage: notify_slack" in err
    assert "invalid interval" in err
    assert capsys.readouterr().err == ""


def test_stream_mode_builds_config_and_returns_report_code(no_config_file, monkeypatch) -> None:
    runtime = Mock()
    runtime.stream = AsyncMock(return_value=RunReport(final_error=DeliveryError("final post failed")))
    factory = Mock(return_value=runtime)
    monkeypatch.setattr(cli, "NotifySlackRuntime", factory)

    code, _, err = _run(
        ["--slack-url", "https://hooks.slack.test/x", "--channel", "#ops", "--interval", "500ms"]
    )

    assert code == 1
    assert "final post failed" in err
    config = factory.call_args.args[0]
    assert config.slack_url == "https://hooks.slack.test/x"
    assert config.primary_channel == "#ops"
    assert config.interval == pytest.approx(0.5)
    runtime.stream.assert_awaited_once()


def test_stream_mode_reports_input_failure(no_config_file, monkeypatch) -> None:
    runtime = Mock()
    runtime.stream = AsyncMock(return_value=RunReport(input_error=InputError("failed to read input")))
    monkeypatch.setattr(cli, "NotifySlackRuntime", Mock(return_value=runtime))

    code, _, err = _run(["--slack-url", "https://hooks.slack.test/x"])

    assert code == 1
    assert "failed to read input" in err


def test_upload_mode_calls_runtime(no_config_file, monkeypatch) -> None:
    runtime = Mock()
    monkeypatch.setattr(cli, "NotifySlackRuntime", Mock(return_value=runtime))

    code, _, _ = _run(["--token", "xoxb", "--filename", "shown.txt", "--filetype", "text", "data.txt"])

    assert code == 0
    runtime.upload_snippet.assert_called_once_with("data.txt", "shown.txt", "text")
    runtime.stream.assert_not_called()


def test_upload_failure_exits_non_zero(no_config_file, monkeypatch) -> None:
    runtime = Mock()
    runtime.upload_snippet.side_effect = DeliveryError("failed to upload data.txt: invalid_auth")
    monkeypatch.setattr(cli, "NotifySlackRuntime", Mock(return_value=runtime))

    code, _, err = _run(["--token", "xoxb", "data.txt"])

    assert code == 1
    assert "invalid_auth" in err


def test_config_file_values_fill_missing_flags(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "custom.toml"
    path.write_text(
        '[slack]\nurl = "https://hooks.slack.test/file"\nchannel = "#file"\ninterval = "3s"\n',
        encoding="utf-8",
    )
    args = cli.build_parser().parse_args(["-c", str(path), "--channel", "#flag"])

    config = cli.config_from_args(args)

    assert config.slack_url == "https://hooks.slack.test/file"
    assert config.primary_channel == "#flag"
    assert config.channel == "#file"
    assert config.stream_channel() == "#flag"
    assert config.interval == 3.0


def test_missing_explicit_config_file_fails(tmp_path: Path) -> None:
    code, _, err = _run(["-c", str(tmp_path / "absent.toml"), "--slack-url", "https://hooks.slack.test/x"])

    assert code == 1
    assert "unable to read config file" in err


def test_log_flags_configure_json_file_and_stderr(no_config_file, monkeypatch, tmp_path: Path) -> None:
    runtime = Mock()
    runtime.stream = AsyncMock(return_value=RunReport())
    monkeypatch.setattr(cli, "NotifySlackRuntime", Mock(return_value=runtime))

    code, out, err = _run(
        [
            "--slack-url",
            "https://hooks.slack.test/x",
            "--token",
            "xoxb-secret",
            "--log-level",
            "DEBUG",
            "--no-color",
            "--log-dir",
            str(tmp_path),
            "--log-json",
            "--log-file-level",
            "DEBUG",
        ]
    )
    logger = cli.NotifySlackRuntime.call_args.args[1]
    for handler in logger.handlers:
        handler.flush()

    assert code == 0
    assert out == b""
    assert "notify_slack: DEBUG Effective configuration" in err
    assert "\033[" not in err
    records = [json.loads(line) for line in (tmp_path / "notify_slack.log").read_text(encoding="utf-8").splitlines()]
    effective = [r for r in records if r["message"].startswith("Effective configuration")]
    assert effective and "xoxb-secret" not in effective[0]["message"]
    assert logger.name == "notify_slack"


def test_log_file_level_is_honoured(no_config_file, monkeypatch, tmp_path: Path) -> None:
    runtime = Mock()
    runtime.stream = AsyncMock(return_value=RunReport())
    monkeypatch.setattr(cli, "NotifySlackRuntime", Mock(return_value=runtime))

    code, _, _ = _run(
        ["--slack-url", "https://hooks.slack.test/x", "--log-dir", str(tmp_path), "--log-file-level", "ERROR"]
    )
    for handler in cli.NotifySlackRuntime.call_args.args[1].handlers:
        handler.flush()

    assert code == 0
    assert (tmp_path / "notify_slack.log").read_text(encoding="utf-8") == ""
