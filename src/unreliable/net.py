from __future__ import annotations

import logging
import random
import socket
import time
from dataclasses import dataclass
from typing import Any, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = 0.0
    delay_ms: int = 0

    def should_drop(self) -> bool:
        return self.loss_rate > 0 and random.random() < self.loss_rate

    def sleep_if_needed(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


class ImpairedSocket:
    """Datagram socket wrapper that simulates outbound loss and delay.

    Everything except ``sendto`` goes straight to the wrapped socket, so the
    wrapper can be handed to ``UnreliableSocket`` in place of the real one.
    """

    def __init__(self, sock: socket.socket, impairment: Impairment | None = None, name: str = ""):
        self._sock = sock
        self.impairment = impairment or Impairment()
        self.name = name

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> int:
        if self.impairment.should_drop():
            logger.debug("[%s] dropped outbound %d bytes", self.name, len(data))
            return len(data)
        self.impairment.sleep_if_needed()
        return self._sock.sendto(data, addr)

    def __getattr__(self, item: str) -> Any:
        return getattr(self._sock, item)


def bind_udp(host: str, port: int, timeout_ms: int = 0) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    if timeout_ms > 0:
        sock.settimeout(timeout_ms / 1000.0)
    return sock


def wrap(sock: socket.socket, impairment: Impairment, name: str = "") -> Any:
    """Return ``sock`` itself unless ``impairment`` actually impairs anything."""
    if impairment.loss_rate or impairment.delay_ms:
        return ImpairedSocket(sock, impairment, name=name)
    return sock


def resolve_udp(host: str, port: int) -> Tuple[str, int]:
    """Resolve ``host`` to the numeric IPv4 address replies will come from."""
    infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
    address, resolved_port = infos[0][4][:2]
    return address, resolved_port
