"""Race operator interruption against end of input, then wait for the last flush."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from ..errors import DeliveryError, InputError
from .graceful_shutdown import GracefulShutdown
from .scheduler import Deliverer, FlushScheduler

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    flush_errors: List[DeliveryError] = field(default_factory=list)
    final_error: DeliveryError | None = None
    input_error: InputError | None = None
    interrupted: bool = False
    flush_count: int = 0

    @property
    def exit_code(self) -> int:
        if self.input_error is not None or self.final_error is not None:
            return 1
        return 0


class ShutdownCoordinator:
    """Drive one :class:`FlushScheduler` run from start to a safe exit.

    Whichever comes first, an interruption or the end of input, sets the
    cancellation token. The coordinator then always waits for the scheduler's
    completion signal, so the terminal flush finishes before :meth:`run`
    returns even when the operator interrupted the run.
    """

    def __init__(self, scheduler: FlushScheduler, interruption: GracefulShutdown) -> None:
        self.scheduler = scheduler
        self.interruption = interruption

    async def run(self, interval: float, flush: Deliverer, done: Deliverer) -> RunReport:
        cancel = asyncio.Event()
        task = self.scheduler.start(cancel, interval, flush, done)

        interrupted = await self._first_of(self.interruption.event.wait(), self.scheduler.wait())
        if interrupted:
            logger.info("Interrupted; waiting for the final flush")
        cancel.set()

        outcome = await self.scheduler.completion.wait()
        await task
        return RunReport(
            flush_errors=list(self.scheduler.flush_errors),
            final_error=outcome.final_error,
            input_error=outcome.input_error,
            interrupted=interrupted,
            flush_count=self.scheduler.flush_count,
        )

    async def _first_of(self, interrupt_wait, eof_wait) -> bool:
        """Wait for either event; return True when the interruption won."""

        interrupt_task = asyncio.ensure_future(interrupt_wait)
        eof_task = asyncio.ensure_future(eof_wait)
        pending = {interrupt_task, eof_task}
        try:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in pending:
                waiter.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        return interrupt_task in done and eof_task not in done


__all__ = ["RunReport", "ShutdownCoordinator"]
