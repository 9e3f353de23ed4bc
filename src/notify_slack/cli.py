"""Command-line entry point for notify_slack."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from contextlib import redirect_stderr
from typing import Sequence, TextIO

from . import __version__
from .config import Config, find_config_file, parse_duration
from .errors import ConfigurationError, NotifySlackError
from .logging_utils import configure_logging
from .runtime import NotifySlackRuntime

EXIT_OK = 0
EXIT_PARSE_ERROR = 1
EXIT_FAIL = 1

ENV_LOG_LEVEL = "NOTIFY_SLACK_LOG_LEVEL"
ENV_LOG_DIR = "NOTIFY_SLACK_LOG_DIR"


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notify_slack",
        description="Post standard input to Slack in periodic batches, or upload a file as a snippet.",
    )
    parser.add_argument("file", nargs="?", help="file to upload as a snippet instead of reading stdin")
    parser.add_argument("--channel", default="", help="specify channel")
    parser.add_argument("--slack-url", default="", help="slack url")
    parser.add_argument("--token", default="", help="token (for uploading to snippet)")
    parser.add_argument("--username", default="", help="specify username")
    parser.add_argument("--icon-emoji", default="", help="specify icon emoji")
    parser.add_argument("--interval", type=_duration, default=None, help="flush interval, e.g. 1s or 500ms")
    parser.add_argument("-c", dest="config_file", default="", help="config file name")
    parser.add_argument("--filename", default="", help="specify a file name (for uploading to snippet)")
    parser.add_argument("--filetype", default="", help="specify a filetype (for uploading to snippet)")
    parser.add_argument(
        "--log-level",
        default=os.getenv(ENV_LOG_LEVEL, "WARNING"),
        help="diagnostic log level written to stderr",
    )
    parser.add_argument(
        "--log-dir",
        default=os.getenv(ENV_LOG_DIR) or None,
        help="also write rotating log files (notify_slack.log) here",
    )
    parser.add_argument("--log-file-level", default="DEBUG", help="level of the log file under --log-dir")
    parser.add_argument("--log-json", action="store_true", help="write the log file as JSON lines")
    parser.add_argument("--no-color", dest="color", action="store_false", help="never colour stderr diagnostics")
    parser.add_argument("--version", action="store_true", help="Print version information and quit")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    config = Config(
        slack_url=args.slack_url,
        primary_channel=args.channel,
        token=args.token,
        username=args.username,
        icon_emoji=args.icon_emoji,
        interval=args.interval,
    )
    toml_file = find_config_file(args.config_file or None)
    if toml_file is not None:
        config.load_toml(toml_file)
    return config


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin=None,
    stdout=None,
    stderr: TextIO | None = None,
) -> int:
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer
    stderr = stderr if stderr is not None else sys.stderr

    parser = build_parser()
    try:
        with redirect_stderr(stderr):
            args = parser.parse_args(argv)
    except SystemExit as exc:
        return EXIT_OK if not exc.code else EXIT_PARSE_ERROR

    if args.version:
        print(f"notify_slack version v{__version__}", file=stderr)
        return EXIT_OK

    logger = configure_logging(
        {
            "console_level": args.log_level,
            "color": args.color,
            "log_dir": args.log_dir,
            "file_level": args.log_file_level,
            "json_logs": args.log_json,
        },
        stream=stderr,
    )

    try:
        config = config_from_args(args)
        logger.debug("Effective configuration: %s", config.as_dict())

        runtime = NotifySlackRuntime(config, logger)
        if args.file:
            runtime.upload_snippet(args.file, args.filename, args.filetype)
            return EXIT_OK

        report = asyncio.run(runtime.stream(stdin, stdout))
    except NotifySlackError as exc:
        print(exc, file=stderr)
        return EXIT_FAIL
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        logger.warning("Interrupted by user.")
        return EXIT_FAIL

    if report.input_error is not None:
        print(report.input_error, file=stderr)
    if report.final_error is not None:
        print(report.final_error, file=stderr)
    return report.exit_code


__all__ = ["build_parser", "config_from_args", "main"]
