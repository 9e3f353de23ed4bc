"""Configuration loading for notify_slack.

Settings come from two layers: command-line flags and an optional TOML file.
Flags always win; the file only fills in values that are still empty.
"""

from __future__ import annotations

import math
import os
import re
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping

from .errors import ConfigurationError

ENV_CONFIG_VARIABLE = "NOTIFY_SLACK_CONFIG"
CONFIG_FILENAME = "notify_slack.toml"
SYSTEM_CONFIG_PATH = Path("/etc") / CONFIG_FILENAME
DEFAULT_INTERVAL = 1.0

# TOML key -> Config attribute
_TOML_KEYS: Dict[str, str] = {
    "url": "slack_url",
    "channel": "channel",
    "snippet_channel": "snippet_channel",
    "token": "token",
    "username": "username",
    "icon_emoji": "icon_emoji",
}

_DURATION_UNITS = {"ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


@dataclass
class Config:
    slack_url: str = ""
    channel: str = ""
    primary_channel: str = ""
    snippet_channel: str = ""
    token: str = ""
    username: str = ""
    icon_emoji: str = ""
    interval: float | None = None

    def merge_toml(self, data: Mapping[str, Any]) -> None:
        """Fill empty fields from the ``[slack]`` table of a parsed TOML file."""

        slack = data.get("slack")
        if slack is None:
            return
        if not isinstance(slack, Mapping):
            raise ConfigurationError("[slack] must be a table")
        for key, attr in _TOML_KEYS.items():
            value = slack.get(key)
            if isinstance(value, str) and not getattr(self, attr):
                setattr(self, attr, value)
        if self.interval is None and "interval" in slack:
            self.interval = coerce_interval(slack["interval"])

    def load_toml(self, path: str | Path) -> None:
        self.merge_toml(read_toml(path))

    @property
    def effective_interval(self) -> float:
        return self.interval if self.interval is not None else DEFAULT_INTERVAL

    def stream_channel(self) -> str:
        return self.primary_channel or self.channel

    def snippet_target(self) -> str:
        channel = self.primary_channel or self.snippet_channel or self.channel
        if not channel:
            raise ConfigurationError("must specify channel for uploading to snippet")
        return channel

    def as_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data["token"]:
            data["token"] = "***"
        return data


def read_toml(path: str | Path) -> Dict[str, Any]:
    target = Path(path)
    try:
        with target.open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise ConfigurationError(f"unable to read config file {target}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid TOML in {target}: {exc}") from exc


def _search_paths() -> Iterator[Path]:
    env_path = os.getenv(ENV_CONFIG_VARIABLE)
    if env_path:
        yield Path(env_path).expanduser()
    yield Path.home() / "etc" / CONFIG_FILENAME
    yield SYSTEM_CONFIG_PATH


def find_config_file(explicit: str | None = None) -> Path | None:
    """Return the TOML file to load, or ``None`` when there is nothing to load.

    An explicit path is returned as-is so a missing file is reported later.
    """

    if explicit:
        return Path(explicit).expanduser()
    for candidate in _search_paths():
        if candidate.is_file():
            return candidate
    return None


def parse_duration(value: str) -> float:
    """Parse ``"1s"``, ``"500ms"``, ``"1m30s"`` or a bare number of seconds."""

    text = value.strip()
    if not text:
        raise ConfigurationError("empty interval")
    try:
        seconds = float(text)
    except ValueError:
        seconds = 0.0
        position = 0
        for match in _DURATION_PART.finditer(text):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            position = match.end()
        if position != len(text):
            raise ConfigurationError(f"invalid interval: {value!r}") from None
    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigurationError(f"interval must be positive: {value!r}")
    return seconds


def coerce_interval(value: object) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"invalid interval: {value!r}")
    if isinstance(value, (int, float)):
        if value <= 0:
            raise ConfigurationError(f"interval must be positive: {value!r}")
        return float(value)
    if isinstance(value, str):
        return parse_duration(value)
    raise ConfigurationError(f"invalid interval: {value!r}")


__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "DEFAULT_INTERVAL",
    "ENV_CONFIG_VARIABLE",
    "coerce_interval",
    "find_config_file",
    "parse_duration",
    "read_toml",
]
