"""Exception types raised by the driverlink channel.

Every failure a caller can observe derives from :class:`ChannelError`. The
transport-specific subclasses are re-exported by
:mod:`driverlink.transport.base` for transport implementations.
"""

from __future__ import annotations

from typing import Optional


class ChannelError(Exception):
    """Base class for all driverlink errors."""


class Timeout(ChannelError, TimeoutError):
    """A local wait exceeded its budget.

    ``timeout`` is the duration the caller asked for, in milliseconds, not
    including the grace period.
    """

    def __init__(self, message: str, timeout: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.timeout = timeout


class RemoteError(ChannelError):
    """The engine answered a request with a structured failure."""

    def __init__(self, name: str, message: str, stack: Optional[str] = None):
        self.name = name
        self.message = message
        self.stack = stack
        if name:
            super().__init__(f"{name}: {message}")
        else:
            super().__init__(message)

    @classmethod
    def from_wire(cls, error: object) -> "RemoteError":
        """Build an instance from the ``error`` member of a response frame.

        The engine nests the details one level deep (``{"error": {...}}``);
        a flat mapping or a bare string is accepted as well.
        """

        if isinstance(error, dict) and isinstance(error.get("error"), dict):
            error = error["error"]

        if isinstance(error, dict):
            return cls(
                str(error.get("name") or ""),
                str(error.get("message") or "unknown remote error"),
                error.get("stack"),
            )

        return cls("", str(error))


class UnknownType(ChannelError):
    """The catalog has no proxy class registered for a wire type."""

    def __init__(self, type_name: str, guid: Optional[str] = None):
        self.type_name = type_name
        self.guid = guid
        super().__init__(f"no proxy type registered for {type_name!r} (guid {guid!r})")


class NotFound(ChannelError, LookupError):
    """No live object with the requested guid exists in the catalog."""

    def __init__(self, guid: str, disposed: bool = False):
        self.guid = guid
        self.disposed = disposed
        if disposed:
            super().__init__(f"object {guid!r} has been disposed")
        else:
            super().__init__(f"object {guid!r} not found")


class UnknownEvent(ChannelError, ValueError):
    """An event name outside the known enumeration was requested."""

    def __init__(self, name: str):
        self.event_name = name
        super().__init__(f"unknown event name: {name!r}")


class ProtocolError(ChannelError):
    """An inbound frame could not be interpreted."""


class SessionClosed(ChannelError):
    """The session was closed locally before the operation completed."""


class TransportError(ChannelError):
    """Base class for all transport-layer errors.

    A transport error is fatal to the session it occurs in; the remote
    process is presumed gone.
    """


class TransportTimeout(TransportError):
    """The transport did not become ready in time."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportClosed(TransportError):
    """The remote end closed the transport."""
