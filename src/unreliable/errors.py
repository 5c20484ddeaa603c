from __future__ import annotations


class UnreliableError(Exception):
    """Base class for errors raised by this package.

    Transport failures are not wrapped: they surface as the ``OSError``
    (or ``TimeoutError``) raised by the underlying socket.
    """


class ConfigurationError(UnreliableError):
    """The socket handed to a session cannot carry full-size datagrams."""


class CapacityError(UnreliableError):
    """Buffered output would no longer fit in a single datagram."""


class NoEndpointError(UnreliableError):
    """A datagram was about to be sent but no remote endpoint is set."""


class ClosedError(UnreliableError):
    pass


class CloseError(UnreliableError):
    pass
