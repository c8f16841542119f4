import io
import os

import pytest

from objectstore_sdk.fs.buffer import SessionBuffer


def test_from_stream_starts_clean_at_zero():
    buffer = SessionBuffer.from_stream(io.BytesIO(b"abc"))
    assert buffer.tell() == 0
    assert buffer.size() == 3
    assert not buffer.dirty


def test_write_marks_dirty():
    buffer = SessionBuffer()
    buffer.write(b"")
    assert not buffer.dirty
    buffer.write(b"x")
    assert buffer.dirty


def test_truncate_shrinks_and_grows():
    buffer = SessionBuffer.from_stream(io.BytesIO(b"abcdef"))
    buffer.seek(4)
    buffer.truncate(2)
    assert buffer.getvalue() == b"ab"
    assert buffer.tell() == 4
    buffer.truncate(4)
    assert buffer.getvalue() == b"ab\0\0"
    assert buffer.dirty


def test_truncate_to_same_size_is_clean():
    buffer = SessionBuffer.from_stream(io.BytesIO(b"abc"))
    buffer.truncate(3)
    assert not buffer.dirty


def test_chunks_restore_position():
    buffer = SessionBuffer.from_stream(io.BytesIO(b"0123456789"))
    buffer.seek(7)
    assert list(buffer.chunks(chunk_size=4)) == [b"0123", b"4567", b"89"]
    assert buffer.tell() == 7
    assert not buffer.at_end()
    buffer.seek(0, os.SEEK_END)
    assert buffer.at_end()


def test_spills_to_disk():
    buffer = SessionBuffer(spool_max_size=8)
    buffer.write(b"x" * 100)
    assert buffer.size() == 100
    assert buffer.getvalue() == b"x" * 100


def test_closed_buffer():
    buffer = SessionBuffer()
    buffer.close()
    buffer.close()
    assert buffer.closed
    with pytest.raises(ValueError):
        buffer.read()
