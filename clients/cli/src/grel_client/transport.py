"""Non-blocking TCP transport with outgoing and incoming byte queues."""

from __future__ import annotations

import logging
import select
import socket
import time
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 1024


class TransportError(Exception):
    """Hard I/O failure on the chat connection; ends the session."""


class ConnectionClosed(TransportError):
    def __init__(self) -> None:
        super().__init__("Connection closed by server.")


def parse_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"address must look like HOST:PORT, got {address!r}")
    return host.strip("[]"), int(port)


class Transport:
    """Owns the outgoing queue and incoming buffer of one connection."""

    def __init__(self, sock: socket.socket, read_size: int = DEFAULT_READ_SIZE) -> None:
        self._sock = sock
        self._sock.setblocking(False)
        self.read_size = read_size
        self.outgoing = bytearray()
        self.incoming = bytearray()

    @classmethod
    def connect(
        cls,
        address: str,
        timeout: float = 5.0,
        read_size: int = DEFAULT_READ_SIZE,
    ) -> "Transport":
        host, port = parse_address(address)
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise TransportError(f"Error connecting to {address}: {exc}") from exc
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            sock.close()
            raise TransportError(f"Unable to set TCP_NODELAY: {exc}") from exc
        logger.debug("connected to %s:%d", host, port)
        return cls(sock, read_size=read_size)

    @property
    def local_address(self) -> str:
        try:
            host, port = self._sock.getsockname()[:2]
        except (OSError, ValueError):
            return ""
        return f"{host}:{port}"

    @property
    def peer_address(self) -> str:
        try:
            host, port = self._sock.getpeername()[:2]
        except (OSError, ValueError):
            return ""
        return f"{host}:{port}"

    def enqueue(self, data: bytes) -> None:
        self.outgoing += data

    def flush(self) -> int:
        """Try one non-blocking send of the whole outgoing queue.

        Only the prefix the socket accepted is dropped from the queue; the rest
        waits for the next tick.
        """

        if not self.outgoing:
            return 0
        try:
            sent = self._sock.send(self.outgoing)
        except (BlockingIOError, InterruptedError):
            return 0
        except OSError as exc:
            logger.warning("send failed: %s", exc)
            raise TransportError(f"Error writing to socket: {exc}") from exc
        del self.outgoing[:sent]
        if sent:
            logger.debug("flushed %d bytes, %d still queued", sent, len(self.outgoing))
        return sent

    def send_blocking(self, data: bytes, timeout: float) -> None:
        self.enqueue(data)
        deadline = time.monotonic() + timeout
        while self.outgoing:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TransportError("Timed out sending to server.")
            select.select([], [self._sock], [], remaining)
            self.flush()

    def poll(self, timeout: float) -> int:
        """Wait up to ``timeout`` seconds for data and read all that is available.

        Returns the number of bytes appended to ``incoming``; zero means nothing
        arrived this tick. Anything read before a failure stays buffered.
        """

        try:
            readable, _, _ = select.select([self._sock], [], [], timeout)
        except (OSError, ValueError) as exc:
            raise TransportError(f"Error waiting on socket: {exc}") from exc
        if not readable:
            return 0

        total = 0
        while True:
            try:
                chunk = self._sock.recv(self.read_size)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as exc:
                logger.warning("recv failed after %d bytes: %s", total, exc)
                raise TransportError(f"Error reading from socket: {exc}") from exc
            if not chunk:
                logger.debug("end of stream after %d bytes", total)
                raise ConnectionClosed()
            self.incoming += chunk
            total += len(chunk)
        if total:
            logger.debug("read %d bytes, %d buffered", total, len(self.incoming))
        return total

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            pass


def open_transport(address: str, timeout: float, read_size: int, hello: Optional[bytes] = None) -> Transport:
    """Connect and, when given, push ``hello`` through before going non-blocking."""

    transport = Transport.connect(address, timeout=timeout, read_size=read_size)
    if hello:
        try:
            transport.send_blocking(hello, timeout)
        except TransportError:
            transport.close()
            raise
    return transport
