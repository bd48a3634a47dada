"""ARP messages for Ethernet/IPv4."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import ClassVar

from .ethernet import (
    ETHERNET_ADDRESS_LENGTH,
    EthernetHeader,
    _parse_address,
    _serialize_address,
    ethernet_address_to_string,
)
from .parser import Parser, Serializer

IPV4_ADDRESS_LENGTH = 4


@dataclass
class ARPMessage:
    """An ARP request or reply mapping IPv4 addresses to Ethernet addresses."""

    LENGTH: ClassVar[int] = 28
    TYPE_ETHERNET: ClassVar[int] = 1
    OPCODE_REQUEST: ClassVar[int] = 1
    OPCODE_REPLY: ClassVar[int] = 2

    hardware_type: int = 1
    protocol_type: int = EthernetHeader.TYPE_IPV4
    hardware_address_size: int = ETHERNET_ADDRESS_LENGTH
    protocol_address_size: int = IPV4_ADDRESS_LENGTH
    opcode: int = 0

    sender_ethernet_address: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    sender_ip_address: int = 0

    target_ethernet_address: bytes = bytes(ETHERNET_ADDRESS_LENGTH)
    target_ip_address: int = 0

    def supported(self) -> bool:
        """Whether this is an Ethernet/IPv4 request or reply."""
        return (
            self.hardware_type == self.TYPE_ETHERNET
            and self.protocol_type == EthernetHeader.TYPE_IPV4
            and self.hardware_address_size == ETHERNET_ADDRESS_LENGTH
            and self.protocol_address_size == IPV4_ADDRESS_LENGTH
            and self.opcode in (self.OPCODE_REQUEST, self.OPCODE_REPLY)
        )

    def parse(self, parser: Parser) -> None:
        self.hardware_type = parser.integer(2)
        self.protocol_type = parser.integer(2)
        self.hardware_address_size = parser.integer(1)
        self.protocol_address_size = parser.integer(1)
        self.opcode = parser.integer(2)

        if not self.supported():
            parser.set_error()
            return

        self.sender_ethernet_address = _parse_address(parser)
        self.sender_ip_address = parser.integer(4)
        self.target_ethernet_address = _parse_address(parser)
        self.target_ip_address = parser.integer(4)

    def serialize(self, serializer: Serializer) -> None:
        if not self.supported():
            raise ValueError(
                "ARPMessage: unsupported field combination "
                "(must be Ethernet/IP, and request or reply)"
            )
        serializer.integer(self.hardware_type, 2)
        serializer.integer(self.protocol_type, 2)
        serializer.integer(self.hardware_address_size, 1)
        serializer.integer(self.protocol_address_size, 1)
        serializer.integer(self.opcode, 2)
        _serialize_address(serializer, self.sender_ethernet_address)
        serializer.integer(self.sender_ip_address, 4)
        _serialize_address(serializer, self.target_ethernet_address)
        serializer.integer(self.target_ip_address, 4)

    def __str__(self) -> str:
        if self.opcode == self.OPCODE_REQUEST:
            opcode_name = "REQUEST"
        elif self.opcode == self.OPCODE_REPLY:
            opcode_name = "REPLY"
        else:
            opcode_name = "(unknown type)"
        sender_ip = ipaddress.IPv4Address(self.sender_ip_address & 0xFFFFFFFF)
        target_ip = ipaddress.IPv4Address(self.target_ip_address & 0xFFFFFFFF)
        return (
            f"opcode={opcode_name}"
            f", sender={ethernet_address_to_string(self.sender_ethernet_address)}/{sender_ip}"
            f", target={ethernet_address_to_string(self.target_ethernet_address)}/{target_ip}"
        )