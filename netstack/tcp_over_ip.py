"""Conversion between TCP messages and IPv4 datagrams."""

from __future__ import annotations

import ipaddress
from typing import Optional

from .address import Address
from .fd_adapter import FdAdapterBase
from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .tcp_message import TCPMessage, TCPSegment

_TCP_HEADER_LENGTH = 20


def _dotted_quad(value: int) -> str:
    return str(ipaddress.IPv4Address(value & 0xFFFFFFFF))


class TCPOverIPv4Adapter(FdAdapterBase):
    """Wraps TCP messages in IPv4 datagrams and filters incoming ones."""

    def unwrap_tcp_in_ip(self, datagram: IPv4Datagram) -> Optional[TCPMessage]:
        """Extract the TCP message if the datagram belongs to this connection.

        While listening, a SYN (without RST) addressed to our port fixes the
        connection's addresses and ends listening.
        """
        header = datagram.header
        cfg = self.config
        if not self.listening and header.dst != cfg.source.ipv4_numeric():
            return None
        if not self.listening and header.src != cfg.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, datagram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != cfg.source.port():
            return None

        if self.listening:
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            cfg.source = Address(_dotted_quad(header.dst), cfg.source.port())
            cfg.destination = Address(_dotted_quad(header.src), segment.udinfo.src_port)
            self.listening = False

        if segment.udinfo.src_port != cfg.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, message: TCPMessage) -> IPv4Datagram:
        """Build an IPv4 datagram carrying ``message`` with ports and checksums set."""
        cfg = self.config
        segment = TCPSegment(message=message)
        segment.udinfo.src_port = cfg.source.port()
        segment.udinfo.dst_port = cfg.destination.port()

        datagram = IPv4Datagram()
        header = datagram.header
        header.src = cfg.source.ipv4_numeric()
        header.dst = cfg.destination.ipv4_numeric()
        header.len = (
            header.hlen * 4 + _TCP_HEADER_LENGTH + len(message.sender.payload)
        ) & 0xFFFF

        segment.compute_checksum(header.pseudo_checksum())
        header.compute_checksum()
        datagram.payload = serialize(segment)
        return datagram