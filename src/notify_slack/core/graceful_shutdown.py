"""Signal-aware interruption source."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Iterable, List

logger = logging.getLogger(__name__)


class GracefulShutdown:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._installed: List[int] = []
        self.received: int | None = None

    def install(self, signals: Iterable[int] | None = None) -> None:
        loop = asyncio.get_running_loop()
        targets = list(signals) if signals is not None else [signal.SIGINT, signal.SIGTERM]
        for sig in targets:
            try:
                loop.add_signal_handler(sig, self.trigger, sig)
            except NotImplementedError:  # pragma: no cover - windows fallback
                signal.signal(sig, lambda signum, _frame: loop.call_soon_threadsafe(self.trigger, signum))
            self._installed.append(sig)

    def uninstall(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed:
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:  # pragma: no cover - windows fallback
                signal.signal(sig, signal.SIG_DFL)
        self._installed.clear()

    def trigger(self, signum: int | None = None) -> None:
        if self._event.is_set():
            return
        self.received = signum
        if signum is not None:
            logger.warning("Received %s; flushing buffered input before exit", signal.Signals(signum).name)
        self._event.set()

    @property
    def event(self) -> asyncio.Event:
        return self._event

    def is_triggered(self) -> bool:
        return self._event.is_set()


__all__ = ["GracefulShutdown"]
