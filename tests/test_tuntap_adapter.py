import socket

import pytest

from netstack.address import Address
from netstack.file_descriptor import FileDescriptor
from netstack.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage
from netstack.tuntap_adapter import TCPOverIPv4OverTunFdAdapter


@pytest.fixture
def fd_pair():
    first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    left = FileDescriptor(first.detach())
    right = FileDescriptor(second.detach())
    yield left, right
    for fd in (left, right):
        if not fd.closed():
            fd.close()


def configure(adapter, src, sport, dst, dport):
    adapter.config.source = Address(src, sport)
    adapter.config.destination = Address(dst, dport)
    return adapter


def sample_message():
    return TCPMessage(
        sender=TCPSenderMessage(seqno=42, payload=b"payload data", fin=True),
        receiver=TCPReceiverMessage(ackno=7, window_size=1000),
    )


def test_write_then_read_round_trip(fd_pair):
    left, right = fd_pair
    sender = configure(TCPOverIPv4OverTunFdAdapter(left), "10.0.0.1", 1000, "10.0.0.2", 2000)
    receiver = configure(TCPOverIPv4OverTunFdAdapter(right), "10.0.0.2", 2000, "10.0.0.1", 1000)
    message = sample_message()
    sender.write(message)
    assert receiver.read() == message
    assert left.write_count() == 1
    assert right.read_count() == 1


def test_garbage_is_ignored(fd_pair):
    left, right = fd_pair
    right.write(b"not an ip datagram")
    adapter = configure(TCPOverIPv4OverTunFdAdapter(left), "10.0.0.2", 2000, "10.0.0.1", 1000)
    assert adapter.read() is None


def test_unrelated_datagram_is_ignored(fd_pair):
    left, right = fd_pair
    sender = configure(TCPOverIPv4OverTunFdAdapter(left), "10.0.0.1", 1000, "10.0.0.9", 2000)
    receiver = configure(TCPOverIPv4OverTunFdAdapter(right), "10.0.0.2", 2000, "10.0.0.1", 1000)
    sender.write(sample_message())
    assert receiver.read() is None


def test_fd_returns_underlying_descriptor(fd_pair):
    left, _ = fd_pair
    adapter = TCPOverIPv4OverTunFdAdapter(left)
    assert adapter.fd().fd_num() == left.fd_num()
    assert adapter.listening is False