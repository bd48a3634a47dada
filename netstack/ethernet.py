"""Ethernet addresses, headers and frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .parser import Parser, Serializer

ETHERNET_ADDRESS_LENGTH = 6
ETHERNET_BROADCAST = b"\xff" * ETHERNET_ADDRESS_LENGTH


def ethernet_address_to_string(address: bytes) -> str:
    """Format an Ethernet address as colon-separated hex, e.g. ``02:00:00:00:00:01``."""
    return ":".join(f"{byte:02x}" for byte in address)


def _parse_address(parser: Parser) -> bytes:
    return bytes(parser.integer(1) for _ in range(ETHERNET_ADDRESS_LENGTH))


def _serialize_address(serializer: Serializer, address: bytes) -> None:
    for byte in address:
        serializer.integer(byte, 1)


@dataclass
class EthernetHeader:
    """Ethernet frame header: destination, source and frame type."""

    LENGTH: ClassVar[int] = 14
    TYPE_IPV4: ClassVar[int] = 0x800
    TYPE_ARP: ClassVar[int] = 0x806

    dst: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    src: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    type: int = 0

    def parse(self, parser: Parser) -> None:
        self.dst = _parse_address(parser)
        self.src = _parse_address(parser)
        self.type = parser.integer(2)

    def serialize(self, serializer: Serializer) -> None:
        _serialize_address(serializer, self.dst)
        _serialize_address(serializer, self.src)
        serializer.integer(self.type, 2)

    def __str__(self) -> str:
        if self.type == self.TYPE_IPV4:
            type_name = "IPv4"
        elif self.type == self.TYPE_ARP:
            type_name = "ARP"
        else:
            type_name = f"[unknown type {self.type:x}!]"
        return (
            f"dst={ethernet_address_to_string(self.dst)}"
            f" src={ethernet_address_to_string(self.src)}"
            f" type={type_name}"
        )


@dataclass
class EthernetFrame:
    """An Ethernet header followed by its payload buffers."""

    header: EthernetHeader = field(default_factory=EthernetHeader)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        self.header.parse(parser)
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)