import pytest

from stream_buffer import StreamBuffer
from text_framing import (
    INCOMPLETE,
    DecodeError,
    Frame,
    InvalidActionError,
    decode_all,
    encode_request,
    encode_response,
    try_decode_one,
    try_decode_request,
)


def _buffer(data: bytes = b"", capacity: int = 16) -> StreamBuffer:
    buf = StreamBuffer(capacity)
    buf.append(data)
    return buf


def test_encode_request_concrete():
    assert encode_request("uppercase", "hello") == b"uppercase 5 hello"


def test_encode_request_counts_bytes_not_characters():
    assert encode_request("reverse", "héllo") == b"reverse 6 h\xc3\xa9llo"


def test_encode_request_empty_message():
    assert encode_request("shuffle", "") == b"shuffle 0 "


def test_encode_request_keeps_spaces_and_newlines():
    assert encode_request(b"lowercase", b"a b\nc") == b"lowercase 5 a b\nc"


@pytest.mark.parametrize("action", ["upper case", "upper\tcase", "upper\n", "", b" lead"])
def test_encode_request_rejects_bad_action(action):
    with pytest.raises(InvalidActionError):
        encode_request(action, "hello")


def test_encode_response():
    assert encode_response("HELLO") == b"5 HELLO"


def test_decode_split_across_two_reads():
    buf = _buffer(b"5 HE")
    assert try_decode_one(buf) == INCOMPLETE
    buf.append(b"LLO")
    assert try_decode_one(buf) == Frame(b"HELLO")
    assert len(buf) == 0


def test_partial_length_field():
    buf = _buffer(b"5")
    assert try_decode_one(buf) == INCOMPLETE
    buf.append(b" ")
    assert try_decode_one(buf) == INCOMPLETE
    buf.append(b"abcde")
    assert try_decode_one(buf) == Frame(b"abcde")


def test_insufficient_payload_leaves_buffer_untouched():
    buf = _buffer(b"10 abcd")
    before = buf.getvalue()
    assert try_decode_one(buf) == INCOMPLETE
    assert buf.getvalue() == before
    assert len(buf) == 7


def test_malformed_length():
    outcome = try_decode_one(_buffer(b"abc xyz"))
    assert isinstance(outcome, DecodeError)
    assert outcome.kind == "ProtocolError"


def test_malformed_length_detected_before_space_arrives():
    assert isinstance(try_decode_one(_buffer(b"1x")), DecodeError)


@pytest.mark.parametrize("data", [b" abc", b"-1 a", b"+1 a", b"12345678901234567890 a"])
def test_bad_length_fields(data):
    assert isinstance(try_decode_one(_buffer(data)), DecodeError)


def test_frame_size_limit():
    outcome = try_decode_one(_buffer(b"101 "), max_frame_size=100)
    assert isinstance(outcome, DecodeError)
    assert "too large" in outcome.detail


def test_zero_length_frame():
    buf = _buffer(b"0 3 abc")
    assert try_decode_one(buf) == Frame(b"")
    assert try_decode_one(buf) == Frame(b"abc")


def test_multi_frame_packing():
    buf = _buffer(b"5 HELLO3 a b11 line\nbreak\x000 ")
    frames, outcome = decode_all(buf)
    assert frames == [b"HELLO", b"a b", b"line\nbreak\x00", b""]
    assert outcome == INCOMPLETE
    assert len(buf) == 0


def test_frame_followed_by_partial_next_frame():
    buf = _buffer(b"2 ok4 pa")
    frames, outcome = decode_all(buf)
    assert frames == [b"ok"]
    assert outcome == INCOMPLETE
    assert buf.getvalue() == b"4 pa"


def test_arbitrary_chunking_matches_single_feed():
    message = b"a b\nc\x00d \xe2\x9c\x93"
    wire = encode_response(message)
    for cut in range(len(wire) + 1):
        buf = StreamBuffer(2)
        buf.append(wire[:cut])
        frames, _ = decode_all(buf)
        buf.append(wire[cut:])
        more, _ = decode_all(buf)
        assert frames + more == [message]


def test_byte_at_a_time():
    wire = encode_response(b"x" * 300) + encode_response(b"yz")
    buf = StreamBuffer(4)
    frames = []
    for i in range(len(wire)):
        buf.append(wire[i:i + 1])
        got, _ = decode_all(buf)
        frames.extend(got)
    assert frames == [b"x" * 300, b"yz"]
    assert buf.capacity >= 4


def test_request_round_trip():
    message = "spaces  and\nnewlines\x00 ✓"
    buf = _buffer(encode_request("title-case", message))
    assert try_decode_request(buf) == (b"title-case", message.encode("utf-8"))
    assert len(buf) == 0


def test_request_decode_incomplete_then_complete():
    buf = _buffer(b"uppercase 5 he")
    assert try_decode_request(buf) == INCOMPLETE
    buf.append(b"llouppercase")
    assert try_decode_request(buf) == (b"uppercase", b"hello")
    assert buf.getvalue() == b"uppercase"


def test_leading_zero_length_is_accepted_on_decode():
    assert try_decode_one(_buffer(b"05 hello")) == Frame(b"hello")
