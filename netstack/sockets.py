"""Socket wrappers built on FileDescriptor."""

from __future__ import annotations

import socket
import struct
from contextlib import contextmanager
from typing import Iterator, TypeVar

from .address import Address
from .errors import UnixError
from .file_descriptor import FileDescriptor

_AF_PACKET = getattr(socket, "AF_PACKET", 17)
_SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
_SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)
_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_SOL_PACKET = getattr(socket, "SOL_PACKET", 263)
_PACKET_ADD_MEMBERSHIP = getattr(socket, "PACKET_ADD_MEMBERSHIP", 1)
_PACKET_MR_PROMISC = getattr(socket, "PACKET_MR_PROMISC", 1)

S = TypeVar("S", bound="Socket")


class Socket(FileDescriptor):
    """Base class for network sockets."""

    def __init__(self, domain: int, type: int, protocol: int = 0) -> None:
        try:
            fd = socket.socket(domain, type, protocol).detach()
        except OSError as exc:
            raise UnixError("socket", exc.errno or 0) from exc
        super().__init__(fd)

    @classmethod
    def _from_fd(
        cls: type[S], fd: FileDescriptor, domain: int, type: int, protocol: int = 0
    ) -> S:
        sock = cls.__new__(cls)
        sock._adopt(fd, domain, type, protocol)
        return sock

    def _adopt(self, fd: FileDescriptor, domain: int, type: int, protocol: int = 0) -> None:
        """Take over ``fd``, checking that it is a socket of the expected kind."""
        self._share(fd)
        if self._getsockopt(socket.SOL_SOCKET, _SO_DOMAIN) != domain:
            raise RuntimeError("socket domain mismatch")
        if self._getsockopt(socket.SOL_SOCKET, socket.SO_TYPE) != type:
            raise RuntimeError("socket type mismatch")
        if self._getsockopt(socket.SOL_SOCKET, _SO_PROTOCOL) != protocol:
            raise RuntimeError("socket protocol mismatch")

    @contextmanager
    def _view(self) -> Iterator[socket.socket]:
        """A temporary socket object over our descriptor that never closes it."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError("socket", exc.errno or 0) from exc
        try:
            yield sock
        finally:
            sock.detach()

    def _getsockopt(self, level: int, option: int) -> int:
        with self._view() as sock:
            return self._system_call("getsockopt", sock.getsockopt, level, option)

    def _setsockopt(self, level: int, option: int, value: int | bytes) -> None:
        with self._view() as sock:
            self._system_call("setsockopt", sock.setsockopt, level, option, value)

    def _get_address(self, name_of_function: str, local: bool) -> Address:
        with self._view() as sock:
            family = int(sock.family)
            function = sock.getsockname if local else sock.getpeername
            sockaddr = self._system_call(name_of_function, function)
        return Address.from_sockaddr(family, sockaddr)

    def bind(self, address: Address) -> None:
        with self._view() as sock:
            self._system_call("bind", sock.bind, address.sockaddr())

    def bind_to_device(self, device_name: str) -> None:
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        with self._view() as sock:
            self._system_call("connect", sock.connect, address.sockaddr())

    def shutdown(self, how: int) -> None:
        with self._view() as sock:
            self._system_call("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        return self._get_address("getsockname", local=True)

    def peer_address(self) -> Address:
        return self._get_address("getpeername", local=False)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner, at some cost in robustness."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def throw_if_error(self) -> None:
        """Raise UnixError if the socket has a pending error."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Address | None, bytes]:
        """Receive one datagram; return its sender and payload.

        On a non-blocking socket with nothing to read, returns (None, b"").
        """
        buf = bytearray(self.READ_BUFFER_SIZE)
        with self._view() as sock:
            family = int(sock.family)
            result = self._system_call(
                "recvfrom", sock.recvfrom_into, buf, len(buf), socket.MSG_TRUNC, default=None
            )
        if result is None:
            self._register_read()
            return None, b""
        length, source = result
        if length > len(buf):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), bytes(buf[:length])

    def sendto(self, destination: Address, payload: bytes) -> None:
        with self._view() as sock:
            self._system_call("sendto", sock.sendto, payload, destination.sockaddr())
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send to the connected peer (connect() must have been called)."""
        with self._view() as sock:
            self._system_call("send", sock.send, payload)
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An unbound, unconnected TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        with self._view() as sock:
            self._system_call("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Wait for and accept a new connection."""
        self._register_read()
        with self._view() as sock:
            connection, _ = self._system_call("accept", sock.accept)
        fd = FileDescriptor(connection.detach())
        return TCPSocket._from_fd(fd, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type: int, protocol: int) -> None:
        super().__init__(_AF_PACKET, type, protocol)

    def set_promiscuous(self) -> None:
        address = self.local_address()
        if address.family != _AF_PACKET:
            raise RuntimeError("Address::as() conversion failure")
        ifname = address.sockaddr()[0]
        ifindex = socket.if_nametoindex(ifname) if ifname else 0
        request = struct.pack("iHH8s", ifindex, _PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, request)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket built from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        self._adopt(fd, socket.AF_UNIX, socket.SOCK_STREAM)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)


def socket_pair(socket_type: type[S]) -> tuple[S, S]:
    """Create a connected pair of Unix-domain stream sockets of ``socket_type``.

    ``socket_type`` is constructed from a FileDescriptor, as LocalStreamSocket is.
    """
    try:
        first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    except OSError as exc:
        raise UnixError("socketpair", exc.errno or 0) from exc
    return (
        socket_type(FileDescriptor(first.detach())),
        socket_type(FileDescriptor(second.detach())),
    )