"""One-shot signal raised once the terminal flush has returned."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ..errors import DeliveryError, InputError


@dataclass(frozen=True)
class CompletionOutcome:
    final_error: DeliveryError | None = None
    input_error: InputError | None = None


class Completion:
    """Single-writer, single-waiter completion marker backed by a future."""

    def __init__(self) -> None:
        self._future: asyncio.Future[CompletionOutcome] | None = None
        self._waited = False

    def _ensure_future(self) -> asyncio.Future[CompletionOutcome]:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def fire(self, outcome: CompletionOutcome) -> None:
        future = self._ensure_future()
        if future.done():
            raise RuntimeError("completion signal already fired")
        future.set_result(outcome)

    def is_fired(self) -> bool:
        return self._future is not None and self._future.done()

    async def wait(self) -> CompletionOutcome:
        if self._waited:
            raise RuntimeError("completion signal already has a waiter")
        self._waited = True
        return await self._ensure_future()


__all__ = ["Completion", "CompletionOutcome"]
