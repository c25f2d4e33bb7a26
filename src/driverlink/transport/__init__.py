"""Transport layer implementations."""

from .base import (
    Transport,
    TransportError,
    TransportClosed,
    TransportConnectionError,
    TransportTimeout,
)
from .pipe import PipeTransport, StreamTransport
from . import zmq
from .zmq import ZmqTransport


def create(settings, command=None):
    """ Return an unopened transport selected by *settings.transport*. The
        ``pipe`` backend requires the engine *command* to spawn; the ``zmq``
        backend connects to *settings.endpoint*.
    """

    backend = settings.transport

    if backend == 'pipe':
        if not command:
            raise ValueError('the pipe transport requires an engine command')
        return PipeTransport(command)

    if backend == 'zmq':
        return ZmqTransport(settings.endpoint)

    raise ValueError(f"unknown transport backend: {backend!r}")
