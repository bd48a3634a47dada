"""Configuration for TCP peers and datagram adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .address import Address


def _any_address() -> Address:
    return Address.from_ipv4_numeric(0)


@dataclass
class TCPConfig:
    """Settings for a TCP sender and receiver."""

    DEFAULT_CAPACITY: ClassVar[int] = 64000
    MAX_PAYLOAD_SIZE: ClassVar[int] = 1000
    TIMEOUT_DFLT: ClassVar[int] = 1000
    MAX_RETX_ATTEMPTS: ClassVar[int] = 8

    rt_timeout: int = 1000
    recv_capacity: int = 64000
    send_capacity: int = 64000
    isn: int = 137


@dataclass
class FdAdapterConfig:
    """Addresses and loss rates used by datagram adapters.

    Loss rates are out of 65536: a rate of ``n`` drops a datagram with
    probability ``n / 65536``.
    """

    source: Address = field(default_factory=_any_address)
    destination: Address = field(default_factory=_any_address)
    loss_rate_dn: int = 0
    loss_rate_up: int = 0