"""ZeroMQ transport to an already-running engine.

A DEALER socket connects to the engine's ROUTER endpoint; each frame is one
JSON document in a single message part. ZeroMQ sockets are not thread-safe,
so a private I/O thread owns the socket: outbound frames are handed to it
through a queue plus an ``inproc://`` signal socket, and inbound frames are
handed back through a second queue.
"""

from __future__ import annotations

import atexit
import itertools
import queue
import threading
from typing import Optional

import zmq
from loguru import logger

from .. import codec
from ..base import Transport, TransportClosed, TransportConnectionError, TransportError


zmq_context = zmq.Context()
_signal_ids = itertools.count()

_CLOSED = object()


class ZmqTransport(Transport):
    """Exchange frames with the engine over a ZeroMQ DEALER socket."""

    poll_interval = 1000

    def __init__(self, endpoint: str, context: Optional[zmq.Context] = None):
        self.endpoint = endpoint
        self.context = context or zmq_context

        self.socket = None
        self._signal_rx = None
        self._signal_tx = None
        self._signal_lock = threading.Lock()

        self._outbox: queue.SimpleQueue = queue.SimpleQueue()
        self._inbox: queue.SimpleQueue = queue.SimpleQueue()

        self._thread: Optional[threading.Thread] = None
        self._shutdown = False
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._open:
            return

        identity = f"driverlink.Client.{id(self)}".encode()

        try:
            self.socket = self.context.socket(zmq.DEALER)
            self.socket.setsockopt(zmq.LINGER, 0)
            self.socket.identity = identity
            self.socket.connect(self.endpoint)
        except zmq.ZMQError as exc:
            raise TransportConnectionError(f"cannot connect to {self.endpoint}: {exc}") from exc

        internal = f"inproc://driverlink.signal.{id(self)}.{next(_signal_ids)}"
        self._signal_rx = self.context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = self.context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)

        self._shutdown = False
        self._open = True

        self._thread = threading.Thread(target=self.run, name=f"driverlink-zmq-{self.endpoint}", daemon=True)
        self._thread.start()
        logger.debug("zmq transport connected to {}", self.endpoint)

    def close(self) -> None:
        if not self._open:
            return

        self._open = False
        self._shutdown = True
        self._signal()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2)

        for sock in (self.socket, self._signal_rx, self._signal_tx):
            if sock is not None:
                sock.close(linger=0)

        self._inbox.put(_CLOSED)
        logger.debug("zmq transport to {} closed", self.endpoint)

    def send(self, frame: dict) -> None:
        if not self._open:
            raise TransportClosed(f"transport to {self.endpoint} is closed")

        self._outbox.put(codec.encode(frame))
        self._signal()

    def recv(self, timeout: Optional[float] = None) -> Optional[dict]:
        try:
            item = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None

        if item is _CLOSED:
            # Leave the marker in place for any later callers.
            self._inbox.put(_CLOSED)
            raise TransportClosed(f"transport to {self.endpoint} is closed")

        if isinstance(item, TransportError):
            raise item

        return codec.decode(item)

    # --- internal ---
    def _signal(self) -> None:
        # The PAIR socket is shared by every sending thread.
        with self._signal_lock:
            try:
                self._signal_tx.send(b"", flags=zmq.NOBLOCK)
            except (zmq.ZMQError, AttributeError):
                pass

    def _handle_outgoing(self) -> None:
        while True:
            try:
                self._signal_rx.recv(flags=zmq.NOBLOCK)
            except zmq.Again:
                break

        while True:
            try:
                data = self._outbox.get(block=False)
            except queue.Empty:
                break
            self.socket.send(data)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        try:
            while not self._shutdown:
                for active, _flag in poller.poll(self.poll_interval):
                    if active == self._signal_rx:
                        self._handle_outgoing()
                    elif active == self.socket:
                        self._inbox.put(self.socket.recv())
        except zmq.ZMQError as exc:
            if not self._shutdown:
                logger.error("zmq transport to {} failed: {}", self.endpoint, exc)
                self._inbox.put(TransportConnectionError(str(exc)))


def _cleanup() -> None:
    try:
        zmq_context.destroy(linger=0)
    except zmq.ZMQError:
        pass


atexit.register(_cleanup)
