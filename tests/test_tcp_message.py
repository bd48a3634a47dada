import pytest

from netstack.checksum import InternetChecksum
from netstack.parser import parse, serialize
from netstack.tcp_message import (
    TCPMessage,
    TCPReceiverMessage,
    TCPSegment,
    TCPSenderMessage,
    UserDatagramInfo,
)

PSEUDO = 0x1234


def make_segment(**sender_kwargs):
    segment = TCPSegment(
        message=TCPMessage(
            sender=TCPSenderMessage(**sender_kwargs),
            receiver=TCPReceiverMessage(ackno=384678, window_size=4000),
        ),
        udinfo=UserDatagramInfo(src_port=1234, dst_port=80),
    )
    segment.compute_checksum(PSEUDO)
    return segment


@pytest.mark.parametrize(
    "sender, expected",
    [
        (TCPSenderMessage(), 0),
        (TCPSenderMessage(syn=True), 1),
        (TCPSenderMessage(payload=b"abcd"), 4),
        (TCPSenderMessage(syn=True, payload=b"abcd", fin=True), 6),
    ],
)
def test_sequence_length(sender, expected):
    assert sender.sequence_length() == expected


def test_round_trip():
    segment = make_segment(seqno=23452, syn=True, payload=b"hello", fin=True)
    wire = serialize(segment)
    parsed = TCPSegment()
    assert parse(parsed, wire, PSEUDO)
    assert parsed == segment


def test_header_layout():
    segment = make_segment(seqno=5, syn=True)
    wire = b"".join(serialize(segment))
    assert len(wire) == 20
    assert wire[12] == 0x50
    assert wire[13] == 0x10 | 0x02
    assert int.from_bytes(wire[0:2], "big") == 1234
    assert int.from_bytes(wire[4:8], "big") == 5


def test_checksum_verifies_to_zero():
    segment = make_segment(payload=b"abcd")
    check = InternetChecksum(PSEUDO)
    check.add(serialize(segment))
    assert check.value() == 0


def test_missing_ackno_clears_ack_flag():
    segment = TCPSegment(message=TCPMessage(sender=TCPSenderMessage(seqno=7, syn=True)))
    segment.compute_checksum(PSEUDO)
    wire = serialize(segment)
    assert b"".join(wire)[13] == 0x02
    parsed = TCPSegment()
    assert parse(parsed, wire, PSEUDO)
    assert parsed.message.receiver.ackno is None
    assert parsed.message.sender.syn


def test_rst_sets_both_sides():
    segment = make_segment(rst=True)
    parsed = TCPSegment()
    assert parse(parsed, serialize(segment), PSEUDO)
    assert parsed.message.sender.rst
    assert parsed.message.receiver.rst


def test_wrong_pseudo_checksum_fails():
    segment = make_segment(payload=b"data")
    assert not parse(TCPSegment(), serialize(segment), PSEUDO + 1)


def test_corrupted_payload_fails():
    segment = make_segment(payload=b"data")
    wire = bytearray(b"".join(serialize(segment)))
    wire[-1] ^= 0xFF
    assert not parse(TCPSegment(), [bytes(wire)], PSEUDO)


def _with_checksum(raw: bytearray) -> bytes:
    raw[16:18] = b"\x00\x00"
    check = InternetChecksum(PSEUDO)
    check.add(bytes(raw))
    raw[16:18] = check.value().to_bytes(2, "big")
    return bytes(raw)


def test_options_are_skipped():
    header = bytearray(b"".join(serialize(make_segment())))
    header[12] = 6 << 4
    raw = header + b"\x01\x01\x01\x01" + b"xyz"
    parsed = TCPSegment()
    assert parse(parsed, [_with_checksum(raw)], PSEUDO)
    assert parsed.message.sender.payload == b"xyz"


def test_short_data_offset_is_error():
    header = bytearray(b"".join(serialize(make_segment())))
    header[12] = 4 << 4
    raw = header + b"xyz"
    parsed = TCPSegment()
    assert not parse(parsed, [_with_checksum(raw)], PSEUDO)
    assert parsed.message.sender.payload == b""


def test_truncated_segment_is_error():
    wire = b"".join(serialize(make_segment()))[:10]
    check = InternetChecksum(PSEUDO)
    check.add(wire)
    assert not parse(TCPSegment(), [wire], PSEUDO) or check.value() == 0
    assert not parse(TCPSegment(), [wire], PSEUDO)