from __future__ import annotations

import logging
import socket
import threading
from typing import Any

from .constants import MAX_PACKET_SIZE
from .endpoint import Endpoint, EndpointCell
from .errors import CloseError, ClosedError, ConfigurationError
from .streams import UnreliableInputStream, UnreliableOutputStream

logger = logging.getLogger(__name__)


class UnreliableSocket:
    """Stream-style reads and writes over an already created UDP socket.

    The socket may be unbound, bound, or connected; a connected socket's peer
    becomes the initial endpoint. ``connect()`` only remembers the remote
    address: it sends nothing and does not touch the underlying socket.

    Writes are buffered until ``output_stream.flush()``, which sends one
    datagram. Reads return data from whatever datagram arrives next, limited
    to the endpoint's datagrams once one is set. Loss, duplication and
    reordering are left to the application.
    """

    def __init__(self, sock: Any):
        _prepare_socket(sock)
        self._sock = sock
        self._endpoint = EndpointCell(_peer_of(sock))
        self._closed = False
        self._close_lock = threading.Lock()
        self._out = UnreliableOutputStream(sock, self._endpoint)
        self._in = UnreliableInputStream(sock, self._endpoint)

    @property
    def socket(self) -> Any:
        return self._sock

    @property
    def endpoint(self) -> Endpoint | None:
        return self._endpoint.get()

    @property
    def remote_address(self) -> str | None:
        endpoint = self._endpoint.get()
        return endpoint.address if endpoint else None

    @property
    def remote_port(self) -> int | None:
        endpoint = self._endpoint.get()
        return endpoint.port if endpoint else None

    @property
    def output_stream(self) -> UnreliableOutputStream:
        return self._out

    @property
    def input_stream(self) -> UnreliableInputStream:
        return self._in

    @property
    def closed(self) -> bool:
        return self._closed

    def connect(self, address: str, port: int) -> None:
        self._check_open()
        endpoint = Endpoint(address, port)
        self._endpoint.set(endpoint)
        logger.debug("endpoint set to %s", endpoint)

    def disconnect(self) -> None:
        self._check_open()
        self._endpoint.clear()
        logger.debug("endpoint cleared")

    def close(self) -> None:
        """Flush pending output, wake blocked readers and close the socket.

        All three steps always run. If any of them fails the session is still
        closed and a ``CloseError`` chained to the first failure is raised.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        failures: list[BaseException] = []
        for step in (self._out.close, self._in.close, self._sock.close):
            try:
                step()
            except Exception as exc:
                logger.debug("close step %s failed: %r", getattr(step, "__qualname__", step), exc)
                failures.append(exc)
        logger.debug("session closed")

        if failures:
            raise CloseError(f"{len(failures)} error(s) while closing: {failures[0]}") from failures[0]

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("socket is closed")

    def __enter__(self) -> "UnreliableSocket":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"endpoint={self.endpoint}"
        return f"<UnreliableSocket {state}>"


def _prepare_socket(sock: Any) -> None:
    try:
        if sock.fileno() == -1:
            raise ConfigurationError("socket is closed")
        if sock.type != socket.SOCK_DGRAM:
            raise ConfigurationError(f"expected a datagram socket, got {sock.type!r}")
        if sock.getsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF) < MAX_PACKET_SIZE:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, MAX_PACKET_SIZE)
            # some platforms accept the call but keep a smaller buffer
            if sock.getsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF) < MAX_PACKET_SIZE:
                raise ConfigurationError(f"receive buffer could not be raised to {MAX_PACKET_SIZE} bytes")
    except OSError as exc:
        raise ConfigurationError(f"cannot configure socket: {exc}") from exc


def _peer_of(sock: Any) -> Endpoint | None:
    try:
        peer = sock.getpeername()
    except OSError:
        return None
    return Endpoint.from_sockaddr(peer)
