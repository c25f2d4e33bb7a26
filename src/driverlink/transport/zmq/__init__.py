"""ZeroMQ transport backend."""

from .client import ZmqTransport, zmq_context

__all__ = ["ZmqTransport", "zmq_context"]
