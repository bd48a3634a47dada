"""Reference-counted handles on kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from typing import Any, Callable, Iterable, Union

from .errors import UnixError

BytesLike = Union[bytes, bytearray, memoryview]

_WOULD_BLOCK = frozenset({errno.EAGAIN, errno.EWOULDBLOCK, errno.EINPROGRESS})


class _FDWrapper:
    """The shared state of one kernel file descriptor; closes it when dropped."""

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        try:
            blocking = os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno or 0) from exc
        self.fd = fd
        self.non_blocking = not blocking
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno or 0) from exc
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except UnixError as exc:
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share the descriptor and its counters.

    The descriptor is closed when the last handle on it is dropped, or by close().
    """

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._wrapper = _FDWrapper(fd)

    def _share(self, other: FileDescriptor) -> None:
        self._wrapper = other._wrapper

    def _system_call(
        self, attempt: str, func: Callable[..., Any], *args: Any, default: Any = 0
    ) -> Any:
        """Run ``func``; a would-block error on a non-blocking fd yields ``default``."""
        try:
            return func(*args)
        except OSError as exc:
            if self._wrapper.non_blocking and exc.errno in _WOULD_BLOCK:
                return default
            raise UnixError(attempt, exc.errno or 0) from exc

    def _set_eof(self) -> None:
        self._wrapper.eof = True

    def _register_read(self) -> None:
        self._wrapper.read_count += 1

    def _register_write(self) -> None:
        self._wrapper.write_count += 1

    def read(self, size: int | None = None) -> bytes:
        """Read up to ``size`` bytes (a default-sized buffer if not given).

        Returns b"" at end of file, or when a non-blocking read would block.
        """
        if not size:
            size = self.READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num(), size)
        except OSError as exc:
            if self._wrapper.non_blocking and exc.errno in _WOULD_BLOCK:
                return b""
            raise UnixError("read", exc.errno or 0) from exc
        self._register_read()
        if not data:
            self._set_eof()
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        return data

    def read_vectored(self, sizes: Iterable[int]) -> list[bytes]:
        """Scatter one read across buffers of the given sizes.

        The last buffer is always given the default read size. Each returned
        buffer is trimmed to what was filled; a non-blocking read that would
        block returns an empty list.
        """
        sizes = list(sizes)
        if not sizes:
            return []
        sizes[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        try:
            bytes_read = os.readv(self.fd_num(), buffers)
        except OSError as exc:
            if self._wrapper.non_blocking and exc.errno in _WOULD_BLOCK:
                return []
            raise UnixError("read", exc.errno or 0) from exc
        self._register_read()
        if bytes_read > sum(sizes):
            raise RuntimeError("read() read more than requested")

        result = []
        remaining = bytes_read
        for buf in buffers:
            if remaining >= len(buf):
                remaining -= len(buf)
                result.append(bytes(buf))
            else:
                result.append(bytes(buf[:remaining]))
                remaining = 0
        return result

    def write(self, data: BytesLike | Iterable[BytesLike]) -> int:
        """Write one buffer or several (gathered); return the number of bytes written."""
        if isinstance(data, str):
            raise TypeError("write() takes bytes, not str")
        if isinstance(data, (bytes, bytearray, memoryview)):
            buffers = [data]
        else:
            buffers = list(data)
        total = sum(len(b) for b in buffers)

        written = self._system_call("writev", os.writev, self.fd_num(), buffers)
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        self._wrapper.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        copy = FileDescriptor.__new__(FileDescriptor)
        copy._share(self)
        return copy

    def set_blocking(self, blocking: bool) -> None:
        self._system_call("fcntl", os.set_blocking, self.fd_num(), blocking)
        self._wrapper.non_blocking = not blocking

    def fd_num(self) -> int:
        return self._wrapper.fd

    def fileno(self) -> int:
        return self._wrapper.fd

    def eof(self) -> bool:
        return self._wrapper.eof

    def closed(self) -> bool:
        return self._wrapper.closed

    def read_count(self) -> int:
        return self._wrapper.read_count

    def write_count(self) -> int:
        return self._wrapper.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed():
            self.close()