from netstack.checksum import InternetChecksum


def _checksum(*parts):
    check = InternetChecksum()
    for part in parts:
        check.add(part)
    return check.value()


def test_empty_checksum_is_all_ones():
    assert InternetChecksum().value() == 0xFFFF


def test_worked_example():
    data = bytes([0x00, 0x01, 0xF2, 0x03, 0xF4, 0xF5, 0xF6, 0xF7])
    assert _checksum(data) == 0x220D


def test_appending_checksum_verifies_to_zero():
    data = b"some even-length header data!!"
    assert len(data) % 2 == 0
    value = _checksum(data)
    assert _checksum(data, value.to_bytes(2, "big")) == 0


def test_split_at_odd_boundary_matches_whole():
    data = b"abcdefghijk"
    assert _checksum(data[:3], data[3:8], data[8:]) == _checksum(data)


def test_list_of_buffers_matches_concatenation():
    parts = [b"abc", b"", b"defg", bytearray(b"hi")]
    check = InternetChecksum()
    check.add(parts)
    assert check.value() == _checksum(b"".join(parts))


def test_initial_sum_contributes_like_data():
    data = b"\x12\x34\x56\x78"
    seeded = InternetChecksum(0x1234)
    seeded.add(data[2:])
    assert seeded.value() == _checksum(data)


def test_value_is_sixteen_bits():
    check = InternetChecksum()
    check.add(b"\xff" * 1001)
    assert 0 <= check.value() <= 0xFFFF