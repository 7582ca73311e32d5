# request_source.py
"""
Read action/message request pairs from a line-oriented file.

Each line is ``ACTION MESSAGE``: the first whitespace-delimited token is the
action, the rest of the line (minus the newline) is the message. Lines are
raw bytes; only ``\\n`` ends a line, and one trailing ``\\r`` is dropped.
"""
from __future__ import annotations

import logging
import sys
from typing import IO, Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

Request = Tuple[bytes, bytes]


def parse_request_line(line: bytes) -> Optional[Request]:
    if line.endswith(b"\n"):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]
    parts = line.split(None, 1)
    if not parts:
        return None
    action = parts[0]
    message = parts[1] if len(parts) > 1 else b""
    return action, message


def iter_requests(lines: Iterable[bytes]) -> Iterator[Request]:
    for lineno, line in enumerate(lines, 1):
        req = parse_request_line(line)
        if req is None:
            logger.debug("skipping blank line %d", lineno)
            continue
        logger.debug("line %d: action=%r message=%r", lineno, req[0], req[1])
        yield req


def open_request_file(path: str) -> IO[bytes]:
    if path == "-":
        return sys.stdin.buffer
    return open(path, "rb")
