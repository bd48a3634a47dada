import errno
import os

import pytest

from netstack.errors import UnixError
from netstack.file_descriptor import FileDescriptor


@pytest.fixture
def pipe():
    r, w = os.pipe()
    reader, writer = FileDescriptor(r), FileDescriptor(w)
    yield reader, writer
    for fd in (reader, writer):
        if not fd.closed():
            fd.close()


def test_write_then_read_round_trip(pipe):
    reader, writer = pipe
    assert writer.write(b"hello") == 5
    assert reader.read() == b"hello"
    assert writer.write_count() == 1
    assert reader.read_count() == 1
    assert not reader.eof()


def test_read_respects_size(pipe):
    reader, writer = pipe
    writer.write(b"abcdef")
    assert reader.read(3) == b"abc"
    assert reader.read() == b"def"
    assert reader.read_count() == 2


def test_write_gathers_buffers(pipe):
    reader, writer = pipe
    assert writer.write([b"ab", b"cd", b""]) == 4
    assert reader.read() == b"abcd"


def test_eof_after_writer_closes(pipe):
    reader, writer = pipe
    writer.close()
    assert writer.closed()
    assert writer.eof()
    assert reader.read() == b""
    assert reader.eof()
    assert reader.read_count() == 1


def test_duplicate_shares_state(pipe):
    reader, writer = pipe
    copy = reader.duplicate()
    writer.write(b"x")
    assert copy.read() == b"x"
    assert reader.read_count() == 1
    assert copy.fd_num() == reader.fd_num()
    copy.close()
    assert reader.closed()


def test_non_blocking_read_without_data(pipe):
    reader, _ = pipe
    reader.set_blocking(False)
    assert os.get_blocking(reader.fd_num()) is False
    assert reader.read() == b""
    assert reader.read_count() == 0
    assert not reader.eof()
    reader.set_blocking(True)
    assert os.get_blocking(reader.fd_num()) is True


def test_non_blocking_state_detected_at_construction():
    r, w = os.pipe()
    os.set_blocking(r, False)
    reader = FileDescriptor(r)
    with FileDescriptor(w):
        assert reader.read_vectored([4, 0]) == []
    reader.close()
    assert reader.closed()


def test_read_vectored_splits_data(pipe):
    reader, writer = pipe
    writer.write(b"hello world")
    assert reader.read_vectored([5, 0]) == [b"hello", b" world"]
    assert reader.read_count() == 1


def test_read_vectored_short_read(pipe):
    reader, writer = pipe
    writer.write(b"hello world")
    assert reader.read_vectored([20, 3]) == [b"hello world", b""]


def test_read_vectored_empty(pipe):
    reader, _ = pipe
    assert reader.read_vectored([]) == []
    assert reader.read_count() == 0


def test_negative_fd_rejected():
    with pytest.raises(RuntimeError, match="invalid fd number:-1"):
        FileDescriptor(-1)


def test_bad_fd_rejected():
    r, w = os.pipe()
    os.close(r)
    os.close(w)
    with pytest.raises(UnixError) as info:
        FileDescriptor(r)
    assert info.value.attempt == "fcntl"
    assert info.value.error_code == errno.EBADF


def test_write_to_read_end_fails(pipe):
    reader, _ = pipe
    with pytest.raises(UnixError) as info:
        reader.write(b"data")
    assert info.value.attempt == "writev"
    assert reader.write_count() == 0


def test_context_manager_closes():
    r, w = os.pipe()
    os.close(w)
    with FileDescriptor(r) as fd:
        assert fd.fd_num() == r
    assert fd.closed()
    assert fd.eof()