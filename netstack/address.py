"""Socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any

from .errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _getaddrinfo(node: str, service: str, flags: int) -> Any:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        code = exc.args[0] if exc.args else 0
        message = exc.args[1] if len(exc.args) > 1 else str(exc)
        raise TaggedError(f"getaddrinfo({node}, {service})", code, message) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _, _, _, sockaddr = results[0]
    return family, sockaddr


class Address:
    """An immutable socket address, usually IPv4 address and port."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a numeric IPv4 address string and a port; no lookup is done."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        family, sockaddr = _getaddrinfo(
            ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )
        self._set(family, sockaddr)

    def _set(self, family: int, sockaddr: Any) -> None:
        if family == socket.AF_INET:
            sockaddr = (str(sockaddr[0]), int(sockaddr[1]))
        elif family == socket.AF_INET6:
            sockaddr = tuple(sockaddr)
        self._family = family
        self._sockaddr = sockaddr

    @classmethod
    def _make(cls, family: int, sockaddr: Any) -> Address:
        address = cls.__new__(cls)
        address._set(family, sockaddr)
        return address

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and service name (or numeric port) to an IPv4 address."""
        family, sockaddr = _getaddrinfo(hostname, service, getattr(socket, "AI_ALL", 0))
        return cls._make(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> Address:
        """Wrap an address as returned by the socket module for ``family``."""
        return cls._make(family, sockaddr)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build an address (port 0) from a 32-bit host-order IPv4 number."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"IPv4 address out of range: {ip_address}")
        return cls._make(socket.AF_INET, (str(ipaddress.IPv4Address(ip_address)), 0))

    @property
    def family(self) -> int:
        return self._family

    def sockaddr(self) -> Any:
        """The address in the form the socket module accepts."""
        return self._sockaddr

    def ip_port(self) -> tuple[str, int]:
        if self._family not in _INTERNET_FAMILIES:
            raise RuntimeError("ip_port() called on non-Internet address")
        return self._sockaddr[0], int(self._sockaddr[1])

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as a host-order integer."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))

    def __str__(self) -> str:
        if self._family in _INTERNET_FAMILIES:
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self) -> str:
        return f"Address({self})"