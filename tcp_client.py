#!/usr/bin/env python3
"""
Command-line client for the length-prefixed action/message text protocol.

Reads ``ACTION MESSAGE`` lines from FILE (or stdin for ``-``), sends each as a
framed request, then prints one line per framed response until every request
has been answered.
"""
from __future__ import annotations

import argparse
import logging
import socket
import sys
import threading
import time
from typing import Callable, Iterable, List, Optional, Union

from client_config import ClientConfig, load_config
from request_source import Request, iter_requests, open_request_file
from response_loop import (
    ReceiveResult,
    ReceiveState,
    ResponseCounter,
    TransportError,
    receive_responses,
)
from text_framing import TextFrameError, encode_request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

logger = logging.getLogger("tcp_client")


def connect(host: str, port: int, connect_timeout: Optional[float] = None,
            read_timeout: Optional[float] = None) -> socket.socket:
    logger.info("connecting to %s:%s", host, port)
    try:
        sock = socket.create_connection((host, port), timeout=connect_timeout)
    except OSError as e:
        raise TransportError(f"unable to connect to {host}:{port}: {e}") from e
    sock.settimeout(read_timeout)
    logger.info("connected to %s:%s", host, port)
    return sock


def close(sock: socket.socket) -> None:
    logger.info("closing the connection")
    try:
        sock.close()
    except OSError as e:
        raise TransportError(f"failed to close connection: {e}") from e


def send_request(sock: socket.socket, action: Union[str, bytes], message: Union[str, bytes]) -> None:
    data = encode_request(action, message)
    logger.debug("sending %d bytes: %r", len(data), data[:80])
    try:
        sock.sendall(data)
    except OSError as e:
        raise TransportError(f"send failed: {e}") from e


def run_session(sock: socket.socket, requests: Iterable[Request], sink: Callable[[bytes], None],
                cfg: ClientConfig = ClientConfig(),
                cancel_event: Optional[threading.Event] = None) -> ReceiveResult:
    """Send every request, then receive one response per request."""
    sent = 0
    for action, message in requests:
        if sent and cfg.send_delay_ms:
            time.sleep(cfg.send_delay_ms / 1000.0)
        send_request(sock, action, message)
        sent += 1
    logger.info("messages sent: %d", sent)
    if sent == 0:
        logger.warning("no messages were sent")
        return ReceiveResult(ReceiveState.DONE, 0)

    counter = ResponseCounter(sent, sink)
    result = receive_responses(
        sock,
        counter,
        recv_size=cfg.recv_size,
        max_frame_size=cfg.max_frame_size,
        initial_capacity=cfg.initial_buffer,
        cancel_event=cancel_event,
        is_satisfied=lambda: counter.satisfied,
    )
    logger.info("messages sent: %d, messages received: %d", sent, result.frames_handled)
    return result


def _stdout_sink(payload: bytes) -> None:
    out = sys.stdout.buffer
    out.write(payload + b"\n")
    out.flush()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tcp-client",
        add_help=False,
        description="Send ACTION MESSAGE lines from FILE and print the responses.",
        epilog="ACTION is a single token, e.g. uppercase, lowercase, title-case, reverse or shuffle.",
    )
    ap.add_argument("--help", action="help", help="show this help message and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="log everything down to DEBUG")
    ap.add_argument("-h", "--host", help="server hostname")
    ap.add_argument("-p", "--port", type=int, help="server port")
    ap.add_argument("-c", "--config", help="YAML config file")
    ap.add_argument("file", help="request file, one 'ACTION MESSAGE' per line ('-' for stdin)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
        cfg = cfg.replace(host=args.host, port=args.port)
    except (OSError, ValueError) as e:
        logging.basicConfig(level=logging.ERROR, format=LOG_FORMAT)
        logger.error("bad configuration: %s", e)
        return 1

    level = logging.DEBUG if args.verbose else getattr(logging, cfg.log_level, logging.ERROR)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.info("host: %s, port: %s", cfg.host, cfg.port)

    try:
        f = open_request_file(args.file)
    except OSError as e:
        logger.error("unable to open request file %s: %s", args.file, e)
        return 1

    try:
        sock = connect(cfg.host, cfg.port, cfg.connect_timeout, cfg.read_timeout)
        try:
            result = run_session(sock, iter_requests(f), _stdout_sink, cfg)
        finally:
            close(sock)
        result.raise_for_error()
    except TextFrameError as e:
        logger.error("%s", e)
        return 1
    finally:
        if f is not sys.stdin.buffer:
            f.close()

    logger.info("program executed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
