from __future__ import annotations

import asyncio
import queue
from typing import List

import pytest

from notify_slack.errors import DeliveryError


class ScriptedSource:
    """Binary source whose ``readline`` blocks until the test feeds a line."""

    def __init__(self, *lines: bytes) -> None:
        self._lines: "queue.Queue[object]" = queue.Queue()
        self.feed(*lines)

    def feed(self, *lines: bytes) -> None:
        for line in lines:
            self._lines.put(line)

    def close(self) -> None:
        self._lines.put(b"")

    def fail(self, exc: BaseException) -> None:
        self._lines.put(exc)

    def readline(self) -> bytes:
        item = self._lines.get()
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingDeliverer:
    """Deliverer double that records every payload it receives."""

    def __init__(self, *, fail_on: tuple[int, ...] = (), delay: float = 0.0) -> None:
        self.calls: List[str] = []
        self.finished = 0
        self.fail_on = set(fail_on)
        self.delay = delay

    async def deliver(self, content: str) -> None:
        index = len(self.calls)
        self.calls.append(content)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if index in self.fail_on:
                raise DeliveryError(f"delivery {index} failed")
        finally:
            self.finished += 1

    async def wait_for_calls(self, count: int, timeout: float = 5.0) -> None:
        async def _poll() -> None:
            while len(self.calls) < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def make_source():
    return ScriptedSource


@pytest.fixture
def make_deliverer():
    return RecordingDeliverer
