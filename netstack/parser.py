"""Big-endian parsing and serialization over lists of byte buffers."""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Union

BytesLike = Union[bytes, bytearray, memoryview]


class Parser:
    """Reads big-endian fields from a sequence of buffers, recording errors."""

    def __init__(self, buffers: Iterable[BytesLike]) -> None:
        self._buffers: deque[bytes] = deque(bytes(b) for b in buffers if len(b))
        self._skip = 0
        self._size = sum(len(b) for b in self._buffers)
        self._error = False

    def __len__(self) -> int:
        return self._size

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front of the input."""
        while n and self._buffers:
            front = self._buffers[0]
            take = min(n, len(front) - self._skip)
            self._skip += take
            n -= take
            self._size -= take
            if self._skip == len(front):
                self._buffers.popleft()
                self._skip = 0

    def _take(self, n: int) -> bytes:
        chunks = []
        while n:
            front = self._buffers[0]
            piece = front[self._skip:self._skip + n]
            chunks.append(piece)
            self.remove_prefix(len(piece))
            n -= len(piece)
        return b"".join(chunks)

    def _check_size(self, size: int) -> bool:
        if size > self._size:
            self._error = True
        return not self._error

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes (0 on error)."""
        if not self._check_size(size):
            return 0
        return int.from_bytes(self._take(size), "big")

    def string(self, length: int) -> bytes:
        """Read exactly ``length`` raw bytes (empty on error)."""
        if not self._check_size(length):
            return b""
        return self._take(length)

    def all_remaining(self) -> list[bytes]:
        """Consume and return every remaining buffer."""
        out = self.buffer()
        self._buffers.clear()
        self._skip = 0
        self._size = 0
        return out

    def all_remaining_bytes(self) -> bytes:
        """Consume the remaining input and return it as one bytes object."""
        return b"".join(self.all_remaining())

    def buffer(self) -> list[bytes]:
        """The remaining input, without consuming it."""
        if not self._buffers:
            return []
        first, *rest = self._buffers
        return [first[self._skip:], *rest]


class Serializer:
    """Accumulates big-endian fields and whole buffers into a list of buffers."""

    def __init__(self, initial: BytesLike = b"") -> None:
        self._output: list[bytes] = []
        self._buffer = bytearray(initial)

    def integer(self, value: int, size: int) -> None:
        """Append the low ``size`` bytes of ``value`` in big-endian order."""
        mask = (1 << (8 * size)) - 1
        self._buffer += (value & mask).to_bytes(size, "big")

    def buffer(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Append a buffer, or each buffer of an iterable; empty ones are skipped."""
        if isinstance(data, str):
            raise TypeError("Serializer.buffer() takes bytes, not str")
        if isinstance(data, (bytes, bytearray, memoryview)):
            self.flush()
            if len(data):
                self._output.append(bytes(data))
            return
        for item in data:
            self.buffer(item)

    def flush(self) -> None:
        if self._buffer:
            self._output.append(bytes(self._buffer))
            self._buffer = bytearray()

    def output(self) -> list[bytes]:
        self.flush()
        return list(self._output)


def serialize(obj: Any) -> list[bytes]:
    """Serialize any object that has a ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.output()


def parse(obj: Any, buffers: Iterable[BytesLike], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return True if no error occurred."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()