"""The Internet (one's-complement) checksum."""

from __future__ import annotations

from typing import Iterable, Union

BytesLike = Union[bytes, bytearray, memoryview]


class InternetChecksum:
    """Incrementally computes the 16-bit Internet checksum."""

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum
        self._odd = False

    def add(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Add a buffer, or each buffer of an iterable, to the running sum."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            for byte in bytes(data):
                self._sum += byte if self._odd else byte << 8
                self._odd = not self._odd
            return
        for item in data:
            self.add(item)

    def value(self) -> int:
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF