"""Append-only text buffer drained by the flush scheduler."""

from __future__ import annotations

from typing import List


class BatchAccumulator:
    """Collect text between two flush points.

    The scheduler's control task is the only caller of both :meth:`append`
    and :meth:`drain`, so the buffer is never touched by two tasks at once.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._size = 0

    def append(self, text: str) -> None:
        if not text:
            return
        self._parts.append(text)
        self._size += len(text)

    def drain(self) -> str:
        """Return the whole batch and reset the buffer to empty."""

        content = "".join(self._parts)
        self._parts = []
        self._size = 0
        return content

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0


__all__ = ["BatchAccumulator"]
