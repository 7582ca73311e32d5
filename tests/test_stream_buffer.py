import pytest

from stream_buffer import BufferContractError, StreamBuffer


def test_starts_empty():
    buf = StreamBuffer(8)
    assert len(buf) == 0
    assert buf.capacity == 8
    assert buf.view().tobytes() == b""


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        StreamBuffer(0)


def test_append_grows_by_doubling():
    buf = StreamBuffer(4)
    buf.append(b"abc")
    assert buf.capacity == 4
    buf.append(b"defgh")
    assert buf.capacity == 8
    buf.append(b"i")
    assert buf.capacity == 16
    assert buf.getvalue() == b"abcdefghi"


def test_reserve_for_read_doubles_past_half_full():
    buf = StreamBuffer(8)
    buf.append(b"abcd")
    assert buf.reserve_for_read() == 4
    buf.append(b"e")
    assert buf.reserve_for_read() == 11
    assert buf.capacity == 16


def test_consume_prefix_shifts_to_front():
    buf = StreamBuffer(8)
    buf.append(b"hello world")
    buf.consume_prefix(6)
    assert buf.getvalue() == b"world"
    assert buf.view().tobytes() == b"world"
    buf.consume_prefix(5)
    assert len(buf) == 0


def test_capacity_never_shrinks():
    buf = StreamBuffer(2)
    buf.append(b"x" * 100)
    cap = buf.capacity
    buf.consume_prefix(100)
    buf.append(b"y")
    assert buf.capacity == cap


def test_consume_more_than_buffered_is_contract_violation():
    buf = StreamBuffer()
    buf.append(b"abc")
    with pytest.raises(BufferContractError):
        buf.consume_prefix(4)
    with pytest.raises(AssertionError):
        buf.consume_prefix(-1)
    assert buf.getvalue() == b"abc"


def test_view_is_read_only():
    buf = StreamBuffer()
    buf.append(b"abc")
    with buf.view() as view:
        assert view.readonly
        with pytest.raises(TypeError):
            view[0] = 0x41
