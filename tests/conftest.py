from __future__ import annotations

import contextlib
import socket

import pytest

from unreliable import CloseError, UnreliableSocket


class FakeSocket:
    """Just enough of a datagram socket to drive a session without a network."""

    type = socket.SOCK_DGRAM

    def __init__(self, rcvbuf: int = 65536, growable: bool | None = True, peer=None, send_error: OSError | None = None):
        self.rcvbuf = rcvbuf
        self.growable = growable
        self.peer = peer
        self.send_error = send_error
        self.sent: list[tuple[bytes, tuple]] = []
        self.closed = False
        self.close_calls = 0

    def fileno(self) -> int:
        return -1 if self.closed else 1000

    def getsockopt(self, level, option):
        return self.rcvbuf

    def setsockopt(self, level, option, value):
        if self.growable is None:
            raise OSError("setsockopt refused")
        if self.growable:
            self.rcvbuf = value

    def getpeername(self):
        if self.peer is None:
            raise OSError("not connected")
        return self.peer

    def sendto(self, data, addr):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((data, addr))
        return len(data)

    def close(self):
        self.close_calls += 1
        self.closed = True


@pytest.fixture
def fake_socket():
    return FakeSocket


@pytest.fixture
def udp_socket():
    socks = []

    def make() -> socket.socket:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.bind(("127.0.0.1", 0))
        socks.append(s)
        return s

    yield make
    for s in socks:
        s.close()


@pytest.fixture
def session(udp_socket):
    sessions = []

    def make(sock=None) -> UnreliableSocket:
        us = UnreliableSocket(sock if sock is not None else udp_socket())
        sessions.append(us)
        return us

    yield make
    for us in sessions:
        with contextlib.suppress(CloseError):
            us.close()
