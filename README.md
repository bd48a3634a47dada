# netstack

Building blocks for a user-space network stack on Linux:

- **Wire formats** (`netstack.ethernet`, `netstack.arp`, `netstack.ipv4`,
  `netstack.tcp_message`): Ethernet headers and frames, ARP messages, IPv4
  headers and datagrams, and TCP segments. Each parses from and serializes to
  a list of byte buffers.
- **Parsing helpers** (`netstack.parser`): `Parser`, `Serializer`, and the
  `parse` / `serialize` functions.
- **Checksums** (`netstack.checksum`): the Internet checksum, usable with the
  IPv4 pseudo-header contribution from `IPv4Header.pseudo_checksum()`.
- **Addresses and descriptors** (`netstack.address`, `netstack.file_descriptor`,
  `netstack.sockets`): IPv4 addresses, file descriptors that count their reads
  and writes, and UDP, TCP, packet and Unix-domain socket wrappers.
- **An event loop** (`netstack.eventloop`): a poll-based loop that runs
  callbacks for interested rules and ready descriptors, and detects busy waiting.
- **Adapters** (`netstack.tcp_over_ip`, `netstack.tuntap_adapter`,
  `netstack.fd_adapter`, `netstack.tun`): TCP carried in IPv4, read from and
  written to a Linux TUN device, optionally with random loss.

Failed system calls raise `netstack.errors.UnixError`, a `TaggedError` that
records the attempted call and its errno.

## Installation

```
pip install .
```

Run the test suite with:

```
pip install ".[test]"
pytest
```

## Parsing and serializing

`parse` fills an object from a list of buffers and returns `False` when the
input is truncated or malformed (for IPv4 headers, also when the checksum is
wrong). `serialize` returns the list of buffers for an object.

```python
from netstack.parser import parse, serialize
from netstack.ipv4 import IPv4Datagram

dgram = IPv4Datagram()
dgram.header.src = 0x0A000002
dgram.header.dst = 0x0A000001
dgram.payload = [b"hello"]
dgram.header.len = dgram.header.hlen * 4 + 5
dgram.header.compute_checksum()

wire = serialize(dgram)

copy = IPv4Datagram()
assert parse(copy, wire)
assert copy.header.dst == dgram.header.dst
print(copy.header)   # IPv4 len=25 protocol=6 ttl=128 src=10.0.0.2 dst=10.0.0.1
```

`Parser` and `Serializer` read and write big-endian integers of a given byte
size:

```python
from netstack.parser import Parser, Serializer

s = Serializer()
s.integer(0x0800, 2)
s.buffer(b"payload")

p = Parser(s.output())
assert p.integer(2) == 0x0800
assert p.all_remaining_bytes() == b"payload"
```

Ethernet addresses are six-byte `bytes` values:

```python
from netstack.ethernet import ethernet_address_to_string

print(ethernet_address_to_string(b"\x02\x00\x00\x00\x00\x01"))  # 02:00:00:00:00:01
```

## Checksums

```python
from netstack.checksum import InternetChecksum

check = InternetChecksum()
check.add(b"\x45\x00\x00\x1c")
print(hex(check.value()))
```

## Addresses

```python
from netstack.address import Address

a = Address("10.0.0.1", 80)
print(str(a))            # 10.0.0.1:80
print(a.ipv4_numeric())  # 167772161
assert Address.from_ipv4_numeric(a.ipv4_numeric()).ip() == "10.0.0.1"
```

`Address.resolve(hostname, service)` looks up a host and service name.

## The event loop

```python
from netstack.eventloop import EventLoop, Result

loop = EventLoop()
pending = [1, 2, 3]
category = loop.add_category("drain list")
loop.add_rule(category, lambda: pending.pop(), lambda: bool(pending))

while loop.wait_next_event(10) is not Result.EXIT:
    pass
```

`EventLoop.add_fd_rule` watches a `FileDescriptor` for reading
(`Direction.IN`) or writing (`Direction.OUT`), with optional cancel and error
callbacks. Each call to `wait_next_event` serves at most one rule and returns
`Result.SUCCESS`, `Result.TIMEOUT` or `Result.EXIT` (nothing left to poll).

## TCP over IPv4

`TCPOverIPv4Adapter` wraps a `TCPMessage` in a checksummed IPv4 datagram and
unwraps incoming datagrams that belong to the configured connection:

```python
from netstack.address import Address
from netstack.tcp_message import TCPMessage
from netstack.tcp_over_ip import TCPOverIPv4Adapter

client = TCPOverIPv4Adapter()
client.config.source = Address("10.0.0.2", 5000)
client.config.destination = Address("10.0.0.1", 80)

server = TCPOverIPv4Adapter()
server.config.source = Address("10.0.0.1", 80)
server.config.destination = Address("10.0.0.2", 5000)

message = TCPMessage()
message.sender.syn = True
received = server.unwrap_tcp_in_ip(client.wrap_tcp_in_ip(message))
assert received is not None and received.sender.syn
```

`TCPOverIPv4OverTunFdAdapter` does the same over a `TunFD`. `LossyFdAdapter`
wraps such an adapter and drops reads and writes with probability
`loss_rate_dn / 65536` and `loss_rate_up / 65536` from its `FdAdapterConfig`.
Opening a TUN or TAP device requires a persistent device created beforehand by
an administrator.

## What this package does not do

It provides the pieces a TCP implementation is built from, not the TCP
implementation itself: there is no sender, receiver, reassembler or byte
stream, and no socket-like object that runs a TCP connection over a TUN
device. `TCPConfig` only holds settings for such a peer. There is no
command-line program.