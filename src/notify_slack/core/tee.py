"""Line reader that mirrors everything it reads to a passthrough stream."""

from __future__ import annotations

import os
from typing import BinaryIO

from ..errors import InputError

CHUNK_SIZE = 64 * 1024


def _fileno(stream: object) -> int | None:
    """Return the OS descriptor behind ``stream``, or ``None`` for in-memory streams."""

    try:
        return stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


class EchoTee:
    """Read lines from ``source`` and copy each one, byte for byte, to ``sink``.

    Streams backed by a file descriptor are read and written with ``os.read``
    and ``os.write`` directly. The reader runs on a daemon thread, and a
    thread parked inside ``BufferedReader.readline`` holds the buffer lock,
    which makes interpreter shutdown abort while stdin is still open.
    Objects without a descriptor (``io.BytesIO``, test doubles) go through
    their own ``readline``/``write``.
    """

    def __init__(self, source: BinaryIO, sink: BinaryIO, *, chunk_size: int = CHUNK_SIZE) -> None:
        self.source = source
        self.sink = sink
        self.chunk_size = chunk_size
        self._source_fd = _fileno(source)
        self._sink_fd = _fileno(sink)
        self._pending = bytearray()
        self._eof = False

    def readline(self) -> bytes:
        """Return the next line (``b""`` at end of stream) after echoing it."""

        line = self._next_line()
        if not line:
            return b""
        try:
            self._echo(line)
        except (OSError, ValueError) as exc:
            raise InputError(f"failed to echo input: {exc}") from exc
        return line

    def _next_line(self) -> bytes:
        try:
            if self._source_fd is None:
                return self.source.readline()
            while True:
                end = self._pending.find(b"\n")
                if end >= 0:
                    line = bytes(self._pending[: end + 1])
                    del self._pending[: end + 1]
                    return line
                if self._eof:
                    # Final unterminated fragment, then b"" on the next call.
                    line = bytes(self._pending)
                    self._pending.clear()
                    return line
                chunk = os.read(self._source_fd, self.chunk_size)
                if chunk:
                    self._pending += chunk
                else:
                    self._eof = True
        except (OSError, ValueError) as exc:
            raise InputError(f"failed to read input: {exc}") from exc

    def _echo(self, line: bytes) -> None:
        if self._sink_fd is None:
            self.sink.write(line)
            self.sink.flush()
            return
        view = memoryview(line)
        while view:
            written = os.write(self._sink_fd, view)
            view = view[written:]


__all__ = ["EchoTee"]
