"""An event loop that polls file descriptors and runs callbacks."""

from __future__ import annotations

import enum
import errno
import os
import select
import socket
import sys
import weakref
from typing import Callable, Union

from .errors import UnixError
from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

_MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class Result(enum.Enum):
    """The outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = enum.auto()
    TIMEOUT = enum.auto()
    EXIT = enum.auto()


class _BasicRule:
    def __init__(self, category_id: int, interest: Interest, callback: Callback) -> None:
        self.category_id = category_id
        self.interest = interest
        self.callback = callback
        self.cancel_requested = False


class _FDRule(_BasicRule):
    def __init__(
        self,
        category_id: int,
        interest: Interest,
        callback: Callback,
        fd: FileDescriptor,
        direction: Direction,
        on_cancel: Callback,
        on_error: Callback,
    ) -> None:
        super().__init__(category_id, interest, callback)
        self.fd = fd
        self.direction = direction
        self.on_cancel = on_cancel
        self.on_error = on_error

    def service_count(self) -> int:
        """How often the descriptor has been read or written, per the direction."""
        if self.direction == Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class RuleHandle:
    """A handle that can cancel a rule without keeping it alive."""

    def __init__(self, rule: _BasicRule) -> None:
        self._ref = weakref.ref(rule)

    def cancel(self) -> None:
        rule = self._ref()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a rule category and return its id."""
        if len(self._categories) >= _MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Interest = _always,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` while ``interest()`` holds.

        ``category`` is a category id, or a name for a new category.
        """
        rule = _BasicRule(self._category_id(category), interest, callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Callback = _nothing,
        error: Callback = _nothing,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``."""
        rule = _FDRule(
            self._category_id(category),
            interest,
            callback,
            fd.duplicate(),
            Direction(direction),
            cancel,
            error,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule) -> str:
        return self._categories[rule.category_id]

    def _run_non_fd_rules(self) -> bool:
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                iterations += 1
                if iterations > _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}"'
                        f" is still interested after {iterations} iterations"
                    )
                fired = True
                rule.callback()
            if fired:
                return True
        return False

    def _report_poll_error(self, rule: _FDRule, fd_num: int) -> None:
        try:
            sock = socket.socket(fileno=fd_num)
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                print(
                    f'error on polled file descriptor for rule "{self._name(rule)}"',
                    file=sys.stderr,
                )
                return
            raise UnixError("getsockopt", exc.errno or 0) from exc
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno or 0) from exc
        finally:
            sock.detach()
        if socket_error:
            print(
                f'error on polled socket for rule "{self._name(rule)}": '
                f"{os.strerror(socket_error)}",
                file=sys.stderr,
            )

    def _drop(self, rule: _FDRule, notify: bool) -> None:
        if notify:
            rule.on_cancel()
        self._fd_rules.remove(rule)

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._run_non_fd_rules():
            return Result.SUCCESS

        watched: list[tuple[_FDRule, int, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False

        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._drop(rule, notify=False)
                continue
            if rule.direction == Direction.IN and rule.fd.eof():
                self._drop(rule, notify=True)
                continue
            if rule.fd.closed():
                self._drop(rule, notify=True)
                continue
            fd_num = rule.fd.fd_num()
            events = int(rule.direction) if rule.interest() else 0
            something_to_poll = something_to_poll or bool(events)
            masks[fd_num] = masks.get(fd_num, 0) | events
            watched.append((rule, fd_num, events))

        if not something_to_poll:
            return Result.EXIT

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno or 0) from exc
        if not ready:
            return Result.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, fd_num, events in watched:
            revents = revents_by_fd.get(fd_num, 0)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_poll_error(rule, fd_num)
                rule.on_error()
                self._drop(rule, notify=True)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction == Direction.OUT):
                self._drop(rule, notify=True)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}"'
                        " did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS