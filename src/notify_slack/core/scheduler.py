"""Throttled flush engine: accumulate input lines and deliver them on a timer."""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum
from typing import List, Protocol

from ..errors import DeliveryError, InputError
from .accumulator import BatchAccumulator
from .completion import Completion, CompletionOutcome
from .tee import EchoTee

logger = logging.getLogger(__name__)

_EOF = object()
_CANCELLED = object()


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class Deliverer(Protocol):
    """Anything able to hand a batch of text to the downstream sink."""

    async def deliver(self, content: str) -> None:
        """Deliver ``content`` or raise :class:`DeliveryError`."""


class FlushScheduler:
    """Read from an :class:`EchoTee` and flush accumulated text periodically.

    A daemon thread performs the blocking reads and hands each decoded line to
    the control task through a queue. The control task alone owns the
    accumulator: it appends lines, drains on every tick and, once the stream
    ends or cancellation is requested, performs exactly one terminal delivery
    before firing :attr:`completion`.
    """

    def __init__(self, tee: EchoTee, *, encoding: str = "utf-8") -> None:
        self.tee = tee
        self.encoding = encoding
        self.state = RunState.IDLE
        self.completion = Completion()
        self.flush_errors: List[DeliveryError] = []
        self.flush_count = 0
        self._accumulator = BatchAccumulator()
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._terminated = asyncio.Event()
        self._stop_reading = threading.Event()
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    def start(
        self,
        cancel: asyncio.Event,
        interval: float,
        flush: Deliverer,
        done: Deliverer,
    ) -> asyncio.Task[None]:
        """Begin reading and ticking; return the control task."""

        if self.state is not RunState.IDLE:
            raise RuntimeError("FlushScheduler can only be started once")
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")

        loop = asyncio.get_running_loop()
        self.state = RunState.RUNNING
        reader = threading.Thread(
            target=self._read_lines,
            args=(loop,),
            name="notify-slack-reader",
            daemon=True,
        )
        reader.start()
        self._task = loop.create_task(
            self._run(cancel, interval, flush, done), name="flush-scheduler"
        )
        logger.debug("Flush scheduler started with a %.3fs interval", interval)
        return self._task

    async def wait(self) -> None:
        """Return once reading stops on its own: end of file or an input failure."""

        await self._terminated.wait()

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    # ------------------------------------------------------------------
    def _read_lines(self, loop: asyncio.AbstractEventLoop) -> None:
        while not self._stop_reading.is_set():
            try:
                line = self.tee.readline()
            except InputError as exc:
                self._post(loop, exc)
                return
            if not line:
                self._post(loop, _EOF)
                return
            self._post(loop, line.decode(self.encoding, errors="replace"))

    def _post(self, loop: asyncio.AbstractEventLoop, item: object) -> None:
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Event loop already closed: the run is over and nothing consumes input.
            logger.debug("Discarding input read after shutdown")
            self._stop_reading.set()

    async def _relay_cancel(self, cancel: asyncio.Event) -> None:
        await cancel.wait()
        self._stop_reading.set()
        self._queue.put_nowait(_CANCELLED)

    # ------------------------------------------------------------------
    async def _run(
        self,
        cancel: asyncio.Event,
        interval: float,
        flush: Deliverer,
        done: Deliverer,
    ) -> None:
        input_error: InputError | None = None
        final_error: DeliveryError | None = None
        try:
            input_error = await self._accumulate(cancel, interval, flush)
            self.state = RunState.DRAINING
            content = self._accumulator.drain()
            logger.debug("Final flush of %d character(s)", len(content))
            try:
                await done.deliver(content)
            except DeliveryError as exc:
                final_error = exc
                logger.error("Final flush failed: %s", exc)
        finally:
            self._stop_reading.set()
            self._terminated.set()
            self.state = RunState.STOPPED
            self.completion.fire(
                CompletionOutcome(final_error=final_error, input_error=input_error)
            )

    async def _accumulate(
        self, cancel: asyncio.Event, interval: float, flush: Deliverer
    ) -> InputError | None:
        loop = asyncio.get_running_loop()
        relay = loop.create_task(self._relay_cancel(cancel))
        getter: asyncio.Task[object] | None = None
        deadline = loop.time() + interval
        try:
            while True:
                if getter is None:
                    getter = loop.create_task(self._queue.get())
                timeout = deadline - loop.time()
                if timeout > 0:
                    await asyncio.wait({getter}, timeout=timeout)

                if getter.done():
                    item = getter.result()
                    getter = None
                    if item is _EOF:
                        logger.debug("Input stream reached end of file")
                        self._terminated.set()
                        return None
                    if item is _CANCELLED:
                        logger.debug("Cancellation requested; no longer accepting input")
                        return None
                    if isinstance(item, InputError):
                        logger.error("Input failed: %s", item)
                        self._terminated.set()
                        return item
                    self._accumulator.append(item)

                now = loop.time()
                if now >= deadline:
                    await self._tick(flush)
                    while deadline <= now:
                        deadline += interval
        finally:
            if getter is not None:
                getter.cancel()
            relay.cancel()
            await asyncio.gather(relay, *([getter] if getter else []), return_exceptions=True)

    async def _tick(self, flush: Deliverer) -> None:
        if not self._accumulator:
            return
        content = self._accumulator.drain()
        self.flush_count += 1
        try:
            await flush.deliver(content)
        except DeliveryError as exc:
            self.flush_errors.append(exc)
            logger.warning(
                "Dropping batch of %d character(s) after failed delivery: %s",
                len(content),
                exc,
            )


__all__ = ["Deliverer", "FlushScheduler", "RunState"]
