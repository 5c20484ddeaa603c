"""Byte streams over a datagram socket.

One flush of the output stream is one datagram on the wire, carrying exactly
the bytes written since the previous flush. The input stream hands out the
bytes of one received datagram at a time. Neither side adds a header, retries,
reorders or deduplicates anything.
"""
from __future__ import annotations

import logging
import select
import socket
import threading
from typing import Any

from .constants import MAX_PACKET_SIZE
from .endpoint import Endpoint, EndpointCell
from .errors import CapacityError, ClosedError, NoEndpointError

logger = logging.getLogger(__name__)


class UnreliableOutputStream:
    """Buffers writes and sends them as a single datagram on ``flush()``.

    Nothing is sent until ``flush()`` (or ``close()``) is called.
    """

    def __init__(self, sock: Any, endpoint: EndpointCell):
        self._sock = sock
        self._endpoint = endpoint
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def writable(self) -> bool:
        return not self._closed

    def write(self, data: bytes | bytearray | memoryview) -> int:
        with self._lock:
            self._check_open()
            size = memoryview(data).nbytes
            if len(self._buffer) + size > MAX_PACKET_SIZE:
                raise CapacityError(
                    f"{size} more bytes would exceed the {MAX_PACKET_SIZE} byte datagram limit "
                    f"({len(self._buffer)} already buffered); flush first"
                )
            self._buffer += data
            return size

    def flush(self) -> None:
        with self._lock:
            self._check_open()
            self._send_pending()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                self._send_pending()
            finally:
                self._closed = True
                self._buffer.clear()

    def _send_pending(self) -> None:
        if not self._buffer:
            return
        endpoint = self._endpoint.get()
        if endpoint is None:
            raise NoEndpointError("no remote endpoint set; call connect() before flushing")
        self._sock.sendto(bytes(self._buffer), endpoint.as_tuple())
        logger.debug("sent %d bytes to %s", len(self._buffer), endpoint)
        self._buffer.clear()

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("output stream is closed")

    def __enter__(self) -> "UnreliableOutputStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class UnreliableInputStream:
    """Serves the bytes of received datagrams, one datagram at a time.

    A read never returns bytes from two different datagrams. When an endpoint
    is set, datagrams from any other sender are dropped without notice.

    The wait for a datagram is bounded by the socket's own timeout, if any.
    ``close()`` from another thread wakes a blocked reader, which then raises
    ``ClosedError``.
    """

    def __init__(self, sock: Any, endpoint: EndpointCell):
        self._sock = sock
        self._endpoint = endpoint
        self._pending = memoryview(b"")
        self._lock = threading.Lock()
        # _lock is held for the whole of a blocking read
        self._close_lock = threading.Lock()
        self._closed = False
        self._wake_r, self._wake_w = socket.socketpair()
        self.sender: Endpoint | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return not self._closed

    def read(self, size: int = -1) -> bytes:
        if size == 0:
            self._check_open()
            return b""
        with self._lock:
            self._fill()
            if size < 0 or size >= len(self._pending):
                chunk, self._pending = self._pending, memoryview(b"")
            else:
                chunk, self._pending = self._pending[:size], self._pending[size:]
            return bytes(chunk)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        view = memoryview(buffer).cast("B")
        if not len(view):
            self._check_open()
            return 0
        with self._lock:
            self._fill()
            n = min(len(view), len(self._pending))
            view[:n] = self._pending[:n]
            self._pending = self._pending[n:]
            return n

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._wake_w.send(b"\x00")
        finally:
            self._wake_w.close()
            self._wake_r.close()

    def _fill(self) -> None:
        self._check_open()
        while not self._pending:
            self._pending = memoryview(self._receive())

    def _receive(self) -> bytes:
        while True:
            try:
                ready, _, _ = select.select([self._sock, self._wake_r], [], [], self._sock.gettimeout())
                if self._closed:
                    raise ClosedError("input stream closed while waiting for a datagram")
                if not ready:
                    raise TimeoutError("timed out waiting for a datagram")
                data, addr = self._sock.recvfrom(MAX_PACKET_SIZE)
            except (OSError, ValueError):
                # the socket or the wake-up pair was closed under us
                if self._closed:
                    raise ClosedError("input stream closed while waiting for a datagram") from None
                raise

            endpoint = self._endpoint.get()
            if endpoint is not None and not endpoint.matches(addr):
                logger.debug("discarded %d bytes from %s:%s (expecting %s)", len(data), addr[0], addr[1], endpoint)
                continue
            self.sender = Endpoint.from_sockaddr(addr)
            return data

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("input stream is closed")

    def __enter__(self) -> "UnreliableInputStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
