"""Unreliable stream sockets over UDP.

Wraps an existing datagram socket in a pair of byte streams:
- the output stream buffers writes and sends one datagram per flush
- the input stream serves received datagrams, optionally only from the connected peer

No delivery, ordering or deduplication guarantees are added. That is the point
of the name.
"""

from .constants import MAX_PACKET_SIZE
from .endpoint import Endpoint
from .errors import (
    CapacityError,
    CloseError,
    ClosedError,
    ConfigurationError,
    NoEndpointError,
    UnreliableError,
)
from .session import UnreliableSocket
from .streams import UnreliableInputStream, UnreliableOutputStream

__all__ = [
    "MAX_PACKET_SIZE",
    "Endpoint",
    "UnreliableSocket",
    "UnreliableInputStream",
    "UnreliableOutputStream",
    "UnreliableError",
    "ConfigurationError",
    "CapacityError",
    "NoEndpointError",
    "ClosedError",
    "CloseError",
]
