from __future__ import annotations

import ipaddress
import threading
from dataclasses import dataclass
from typing import Any, Tuple


def normalize_host(host: str) -> str:
    """Canonical text of a numeric address; names are returned unchanged."""
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        return host


@dataclass(frozen=True, slots=True)
class Endpoint:
    address: str
    port: int

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")
        # "::1", "0:0:0:0:0:0:0:1" and "::0001" are the same sender
        object.__setattr__(self, "address", normalize_host(self.address))

    @classmethod
    def from_sockaddr(cls, addr: Tuple[Any, ...]) -> "Endpoint":
        # IPv4 gives (host, port), IPv6 gives (host, port, flowinfo, scope_id)
        return cls(addr[0], addr[1])

    def as_tuple(self) -> Tuple[str, int]:
        return (self.address, self.port)

    def matches(self, addr: Tuple[Any, ...]) -> bool:
        return addr[1] == self.port and normalize_host(addr[0]) == self.address

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


class EndpointCell:
    """Holds the remote endpoint shared by a session and its two streams.

    Readers may see the previous value while a ``set`` is in progress, never
    a mix of old address and new port.
    """

    def __init__(self, endpoint: Endpoint | None = None):
        self._lock = threading.Lock()
        self._endpoint = endpoint

    def get(self) -> Endpoint | None:
        with self._lock:
            return self._endpoint

    def set(self, endpoint: Endpoint | None) -> None:
        with self._lock:
            self._endpoint = endpoint

    def clear(self) -> None:
        self.set(None)
