# text_framing.py
"""
Length-prefixed text framing for the action/message protocol.

Requests:  ACTION SP DECIMAL SP PAYLOAD
Responses: DECIMAL SP PAYLOAD

DECIMAL is the payload length in bytes. There is no terminator; frame
boundaries come from the declared length alone.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

logger = logging.getLogger(__name__)

SP = b" "
WHITESPACE = b" \t\r\n\x0b\x0c"
DIGITS = b"0123456789"
MAX_LENGTH_DIGITS = 19
MAX_ACTION_BYTES = 255
DEFAULT_MAX_FRAME_SIZE = 64 * 1024 * 1024


class TextFrameError(Exception):
    pass


class InvalidActionError(TextFrameError, ValueError):
    pass


class ProtocolError(TextFrameError):
    pass


@dataclass(frozen=True)
class Incomplete:
    pass


@dataclass(frozen=True)
class Frame:
    payload: bytes


@dataclass(frozen=True)
class DecodeError:
    kind: str
    detail: str


DecodeOutcome = Union[Incomplete, Frame, DecodeError]
INCOMPLETE = Incomplete()


def _as_bytes(value: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def encode_request(action: Union[str, bytes], message: Union[str, bytes]) -> bytes:
    token = _as_bytes(action)
    body = _as_bytes(message)
    if not token:
        raise InvalidActionError("action must not be empty")
    if any(b in WHITESPACE for b in token):
        raise InvalidActionError(f"action contains whitespace: {token!r}")
    return token + SP + str(len(body)).encode("ascii") + SP + body


def encode_response(message: Union[str, bytes]) -> bytes:
    body = _as_bytes(message)
    return str(len(body)).encode("ascii") + SP + body


def _parse_length(field: bytes, max_frame_size: int) -> Union[int, DecodeError]:
    if not field:
        return DecodeError("ProtocolError", "empty length field")
    if len(field) > MAX_LENGTH_DIGITS:
        return DecodeError("ProtocolError", f"length field too long ({len(field)} digits)")
    if any(b not in DIGITS for b in field):
        return DecodeError("ProtocolError", f"length field is not decimal: {field[:32]!r}")
    length = int(field)
    if length > max_frame_size:
        return DecodeError("ProtocolError", f"frame too large: {length} bytes (max {max_frame_size})")
    return length


def _scan_head(data: memoryview, max_frame_size: int) -> Union[Tuple[int, int], Incomplete, DecodeError]:
    """Locate the length field at the start of *data*.

    Returns (space_index, length), INCOMPLETE when the field has not fully
    arrived yet, or a DecodeError once the head can no longer become valid.
    """
    raw = data[:MAX_LENGTH_DIGITS + 1].tobytes()
    space = raw.find(SP)
    if space < 0:
        # an unterminated head that is already malformed will never parse
        if any(b not in DIGITS for b in raw) or len(raw) > MAX_LENGTH_DIGITS:
            return DecodeError("ProtocolError", f"malformed length field: {raw[:32]!r}")
        return INCOMPLETE
    parsed = _parse_length(raw[:space], max_frame_size)
    if isinstance(parsed, DecodeError):
        return parsed
    return space, parsed


def try_decode_one(buffer, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> DecodeOutcome:
    with buffer.view() as data:
        head = _scan_head(data, max_frame_size)
        if not isinstance(head, tuple):
            return head
        space, length = head
        start = space + 1
        if len(data) - start < length:
            return INCOMPLETE
        payload = data[start:start + length].tobytes()
    buffer.consume_prefix(start + length)
    logger.debug("decoded frame of %d bytes, %d bytes left in buffer", length, len(buffer))
    return Frame(payload)


def decode_all(buffer, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> Tuple[List[bytes], DecodeOutcome]:
    frames: List[bytes] = []
    while True:
        outcome = try_decode_one(buffer, max_frame_size)
        if not isinstance(outcome, Frame):
            return frames, outcome
        frames.append(outcome.payload)


def try_decode_request(buffer, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> Union[Tuple[bytes, bytes], DecodeOutcome]:
    """Decode one ``ACTION SP DECIMAL SP PAYLOAD`` request.

    Returns (action, message) or a non-Frame outcome. Used by the reference
    server in scripts/self_test.py.
    """
    with buffer.view() as data:
        token_head = data[:MAX_ACTION_BYTES + 1].tobytes()
        space = token_head.find(SP)
        if space < 0:
            if len(token_head) > MAX_ACTION_BYTES:
                return DecodeError("ProtocolError", "action token too long")
            return INCOMPLETE
        action = token_head[:space]
        if not action or any(b in WHITESPACE for b in action):
            return DecodeError("ProtocolError", f"bad action token: {action!r}")
        head = _scan_head(data[space + 1:], max_frame_size)
        if not isinstance(head, tuple):
            return head
        inner_space, length = head
        start = space + 1 + inner_space + 1
        if len(data) - start < length:
            return INCOMPLETE
        message = data[start:start + length].tobytes()
    buffer.consume_prefix(start + length)
    return action, message
