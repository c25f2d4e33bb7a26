"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`driverlink.protocol` so the protocol remains
transport-agnostic. Transports move decoded frames (dictionaries); the
encoding to bytes is each transport's concern, see :mod:`.codec`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import (
    TransportError,
    TransportClosed,
    TransportConnectionError,
    TransportTimeout,
)


class Transport(ABC):
    """Minimal contract for a wire-level transport.

    :meth:`send` is only ever called from the session's dispatch thread and
    :meth:`recv` only from its reader thread; implementations must tolerate
    those two threads running concurrently.
    """

    @abstractmethod
    def open(self) -> None:
        """Establish the underlying connection."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection."""

    @abstractmethod
    def send(self, frame: dict) -> None:
        """Send one frame. Raises :class:`TransportError` on failure."""

    @abstractmethod
    def recv(self, timeout: Optional[float] = None) -> Optional[dict]:
        """Receive the next frame.

        Returns None if nothing arrived within *timeout* seconds. Raises
        :class:`TransportClosed` once the remote end is gone.
        """

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False


__all__ = [
    "Transport",
    "TransportError",
    "TransportClosed",
    "TransportConnectionError",
    "TransportTimeout",
]
