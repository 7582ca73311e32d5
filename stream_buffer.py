# stream_buffer.py
"""
Growable receive buffer for stream reassembly.

Unconsumed bytes always start at offset 0. Capacity doubles when needed and
never shrinks for the lifetime of the buffer.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1024


class BufferContractError(AssertionError):
    pass


class StreamBuffer:
    def __init__(self, initial_capacity: int = DEFAULT_CAPACITY) -> None:
        if initial_capacity <= 0:
            raise ValueError("initial_capacity must be positive")
        self._buf = bytearray(initial_capacity)
        self._used = 0

    @property
    def capacity(self) -> int:
        return len(self._buf)

    @property
    def used_length(self) -> int:
        return self._used

    def __len__(self) -> int:
        return self._used

    def free_space(self) -> int:
        return len(self._buf) - self._used

    def _grow_to(self, needed: int) -> None:
        capacity = len(self._buf)
        while capacity < needed:
            capacity *= 2
        if capacity != len(self._buf):
            self._buf.extend(bytes(capacity - len(self._buf)))
            logger.debug("stream buffer grown to %d bytes", capacity)

    def reserve_for_read(self) -> int:
        """Double capacity once more than half is in use; return the free space."""
        if self._used > len(self._buf) // 2:
            self._grow_to(len(self._buf) * 2)
        return self.free_space()

    def append(self, data: bytes) -> None:
        n = len(data)
        if not n:
            return
        self._grow_to(self._used + n)
        self._buf[self._used:self._used + n] = data
        self._used += n

    def consume_prefix(self, n: int) -> None:
        if n < 0 or n > self._used:
            raise BufferContractError(f"cannot consume {n} of {self._used} buffered bytes")
        remaining = self._used - n
        # same-length slice assignment: the bytearray itself is never resized here
        self._buf[0:remaining] = self._buf[n:self._used]
        self._used = remaining

    def view(self) -> memoryview:
        return memoryview(self._buf)[:self._used].toreadonly()

    def getvalue(self) -> bytes:
        return bytes(self._buf[:self._used])
