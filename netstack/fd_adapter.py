"""Base datagram adapter and a wrapper that drops datagrams at random."""

from __future__ import annotations

import random
from typing import Any, Optional

from .random_engine import get_random_engine
from .tcp_config import FdAdapterConfig
from .tcp_message import TCPMessage


class FdAdapterBase:
    """State shared by adapters: their configuration and a listening flag."""

    def __init__(self) -> None:
        self.config = FdAdapterConfig()
        self.listening = False

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; the base adapter has nothing to do."""


class LossyFdAdapter:
    """Wraps an adapter and drops reads and writes according to its loss rates."""

    def __init__(self, adapter: Any, rng: Optional[random.Random] = None) -> None:
        self._adapter = adapter
        self._rng = rng if rng is not None else get_random_engine()

    def _should_drop(self, uplink: bool) -> bool:
        cfg = self._adapter.config
        loss = cfg.loss_rate_up if uplink else cfg.loss_rate_dn
        return loss != 0 and self._rng.getrandbits(16) < loss

    def fd(self) -> Any:
        return self._adapter.fd()

    def read(self) -> Optional[TCPMessage]:
        """Read from the wrapped adapter; None if nothing was read or it was dropped."""
        message = self._adapter.read()
        if self._should_drop(False):
            return None
        return message

    def write(self, message: TCPMessage) -> None:
        """Write through the wrapped adapter unless the message is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(message)

    def set_listening(self, listening: bool) -> None:
        self._adapter.listening = listening

    @property
    def config(self) -> FdAdapterConfig:
        return self._adapter.config

    @config.setter
    def config(self, value: FdAdapterConfig) -> None:
        self._adapter.config = value

    def tick(self, ms_since_last_tick: int) -> None:
        self._adapter.tick(ms_since_last_tick)