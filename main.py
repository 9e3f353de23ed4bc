"""Command-line entry point for notify_slack."""

from __future__ import annotations

import sys

from notify_slack.cli import main


if __name__ == "__main__":
    sys.exit(main())
