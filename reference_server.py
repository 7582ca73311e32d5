#!/usr/bin/env python3
"""
Small reference server for the text protocol.

Reads ``ACTION LEN MESSAGE`` requests, applies the named text transform and
answers ``LEN RESULT``. Meant for local testing of the client.
"""
from __future__ import annotations

import argparse
import logging
import random
import socket
import threading
from typing import Callable, Dict, Optional

from stream_buffer import StreamBuffer
from text_framing import DecodeError, Incomplete, encode_response, try_decode_request

logger = logging.getLogger("reference_server")


def _title_case(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split(" "))


def _shuffle(text: str) -> str:
    chars = list(text)
    random.shuffle(chars)
    return "".join(chars)


TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "uppercase": str.upper,
    "lowercase": str.lower,
    "title-case": _title_case,
    "reverse": lambda s: s[::-1],
    "shuffle": _shuffle,
}


def apply_action(action: bytes, message: bytes) -> bytes:
    fn = TRANSFORMS.get(action.decode("ascii", errors="replace"))
    if fn is None:
        return b"error: unknown action " + action
    return fn(message.decode("utf-8", errors="replace")).encode("utf-8")


def serve_connection(conn: socket.socket, chunk_size: int = 4096) -> None:
    buf = StreamBuffer()
    with conn:
        while True:
            try:
                data = conn.recv(chunk_size)
            except OSError as e:
                logger.info("client read failed: %s", e)
                return
            if not data:
                return
            buf.append(data)
            while True:
                req = try_decode_request(buf)
                if isinstance(req, Incomplete):
                    break
                if isinstance(req, DecodeError):
                    logger.warning("dropping client: %s", req.detail)
                    return
                action, message = req
                logger.debug("request action=%r len=%d", action, len(message))
                conn.sendall(encode_response(apply_action(action, message)))


def _listen(host: str, port: int) -> socket.socket:
    lsock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    lsock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    lsock.bind((host, port))
    lsock.listen(5)
    return lsock


def start_server(host: str = "127.0.0.1", port: int = 0) -> socket.socket:
    """Listen on host:port and serve each client on a daemon thread."""
    lsock = _listen(host, port)

    def handler():
        while True:
            try:
                csock, _ = lsock.accept()
            except OSError:
                return
            threading.Thread(target=serve_connection, args=(csock,), daemon=True).start()

    threading.Thread(target=handler, daemon=True).start()
    return lsock


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--listen", default="127.0.0.1:8080", help="listen host:port")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(message)s")
    host, port = args.listen.rsplit(":", 1)
    lsock = _listen(host, int(port))
    logger.info("listening on %s:%s", host, port)
    try:
        while True:
            csock, addr = lsock.accept()
            logger.info("client connected from %s:%s", *addr[:2])
            threading.Thread(target=serve_connection, args=(csock,), daemon=True).start()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        lsock.close()


if __name__ == "__main__":
    main()
