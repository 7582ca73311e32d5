# response_loop.py
"""
Receive loop: read from the connection, reassemble frames, hand each payload
to a handler until the handler says stop.
"""
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from stream_buffer import DEFAULT_CAPACITY, StreamBuffer
from text_framing import (
    DEFAULT_MAX_FRAME_SIZE,
    DecodeError,
    Frame,
    ProtocolError,
    TextFrameError,
    try_decode_one,
)

logger = logging.getLogger(__name__)

DEFAULT_RECV_SIZE = 4096

Handler = Callable[[bytes], bool]


class TransportError(TextFrameError):
    pass


class IncompleteResponseError(TextFrameError):
    pass


class ReceiveCancelled(TextFrameError):
    pass


class ReceiveState(enum.Enum):
    RECEIVING = "receiving"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReceiveResult:
    state: ReceiveState
    frames_handled: int = 0
    error: Optional[TextFrameError] = None

    @property
    def ok(self) -> bool:
        return self.state is ReceiveState.DONE

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class ResponseCounter:
    """Handler that stops once *expected* responses have been seen."""

    def __init__(self, expected: int, sink: Optional[Callable[[bytes], None]] = None) -> None:
        self.expected = expected
        self.handled = 0
        self._sink = sink

    @property
    def satisfied(self) -> bool:
        return self.handled >= self.expected

    def __call__(self, payload: bytes) -> bool:
        self.handled += 1
        if self._sink is not None:
            self._sink(payload)
        logger.debug("response %d/%d received", self.handled, self.expected)
        return self.satisfied


class CollectingHandler(ResponseCounter):
    def __init__(self, expected: int) -> None:
        self.payloads: List[bytes] = []
        super().__init__(expected, self.payloads.append)


def _failed(handled: int, error: TextFrameError) -> ReceiveResult:
    logger.warning("receive failed after %d frame(s): %s", handled, error)
    return ReceiveResult(ReceiveState.FAILED, handled, error)


def receive_responses(
    conn,
    handler: Handler,
    *,
    recv_size: int = DEFAULT_RECV_SIZE,
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    initial_capacity: int = DEFAULT_CAPACITY,
    cancel_event: Optional[threading.Event] = None,
    is_satisfied: Optional[Callable[[], bool]] = None,
) -> ReceiveResult:
    """Run one receive session over *conn* (anything with ``recv(n)``).

    *handler* gets each payload in arrival order and returns True to stop.
    A peer close counts as success only if *is_satisfied* says so; without
    a predicate every close is reported as an incomplete response.
    """
    buf = StreamBuffer(initial_capacity)
    handled = 0
    logger.debug("beginning to receive responses")
    while True:
        if cancel_event is not None and cancel_event.is_set():
            return _failed(handled, ReceiveCancelled("receive cancelled"))

        want = min(recv_size, buf.reserve_for_read())
        try:
            data = conn.recv(want)
        except OSError as e:
            return _failed(handled, TransportError(f"read failed: {e}"))

        if not data:
            if is_satisfied is not None and is_satisfied():
                return ReceiveResult(ReceiveState.DONE, handled)
            return _failed(
                handled,
                IncompleteResponseError(
                    f"connection closed after {handled} response(s) with {len(buf)} byte(s) pending"
                ),
            )

        buf.append(data)
        logger.debug("read %d bytes, %d bytes buffered", len(data), len(buf))

        while True:
            outcome = try_decode_one(buf, max_frame_size)
            if isinstance(outcome, Frame):
                handled += 1
                if handler(outcome.payload):
                    logger.debug("handler signalled completion after %d frame(s)", handled)
                    return ReceiveResult(ReceiveState.DONE, handled)
                continue
            if isinstance(outcome, DecodeError):
                return _failed(handled, ProtocolError(outcome.detail))
            break
