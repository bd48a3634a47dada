"""A TCP adapter that exchanges IPv4 datagrams through a TUN device."""

from __future__ import annotations

from typing import Optional

from .file_descriptor import FileDescriptor
from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .tcp_message import TCPMessage
from .tcp_over_ip import TCPOverIPv4Adapter


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes TCP-in-IPv4 datagrams on a TUN file descriptor."""

    def __init__(self, tun: FileDescriptor) -> None:
        super().__init__()
        self._tun = tun

    def read(self) -> Optional[TCPMessage]:
        """Read one datagram; return its TCP message if it is valid and ours."""
        buffers = self._tun.read_vectored([IPv4Header.LENGTH, 0])
        datagram = IPv4Datagram()
        if parse(datagram, buffers):
            return self.unwrap_tcp_in_ip(datagram)
        return None

    def write(self, message: TCPMessage) -> None:
        """Wrap ``message`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(message)))

    def fd(self) -> FileDescriptor:
        return self._tun