"""Length-prefixed JSON frames over a pair of byte streams.

:class:`StreamTransport` works on any readable/writable binary streams;
:class:`PipeTransport` spawns the engine process and uses its stdio. Each
frame is a 4-byte little-endian length followed by that many bytes of UTF-8
JSON.
"""

from __future__ import annotations

import queue
import subprocess
import threading
from typing import BinaryIO, Optional, Sequence

from loguru import logger

from . import codec
from .base import Transport, TransportClosed, TransportConnectionError, TransportError


_CLOSED = object()


class StreamTransport(Transport):
    """Exchange frames over an already-open *reader*/*writer* pair.

    Blocking reads happen on a private thread so that :meth:`recv` can honor
    a timeout.
    """

    def __init__(self, reader: BinaryIO, writer: BinaryIO, name: str = "stream"):
        self.reader = reader
        self.writer = writer
        self.name = name

        self._write_lock = threading.Lock()
        self._inbox: queue.SimpleQueue = queue.SimpleQueue()
        self._thread: Optional[threading.Thread] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._open:
            return

        self._open = True
        self._thread = threading.Thread(target=self.run, name=f"driverlink-{self.name}-reader", daemon=True)
        self._thread.start()

    def close(self) -> None:
        if not self._open:
            return

        self._open = False

        # Closing the writer signals the far end; the reader is closed by
        # the reader thread once the far end hangs up, since a buffered
        # reader cannot be closed while another thread is blocked in it.

        try:
            self.writer.close()
        except (OSError, ValueError):
            pass

        self._inbox.put(_CLOSED)

    def send(self, frame: dict) -> None:
        if not self._open:
            raise TransportClosed(f"{self.name} transport is closed")

        data = codec.pack_length(codec.encode(frame))

        try:
            with self._write_lock:
                self.writer.write(data)
                self.writer.flush()
        except (OSError, ValueError) as exc:
            raise TransportConnectionError(f"{self.name} write failed: {exc}") from exc

    def recv(self, timeout: Optional[float] = None) -> Optional[dict]:
        try:
            item = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None

        if item is _CLOSED:
            self._inbox.put(_CLOSED)
            raise TransportClosed(f"{self.name} transport is closed")

        if isinstance(item, TransportError):
            self._inbox.put(_CLOSED)
            raise item

        return codec.decode(item)

    # --- internal ---
    def _read_exactly(self, count: int) -> Optional[bytes]:
        chunks = []
        remaining = count

        while remaining > 0:
            chunk = self.reader.read(remaining)
            if not chunk:
                return None
            chunks.append(chunk)
            remaining -= len(chunk)

        return b"".join(chunks)

    def run(self) -> None:
        try:
            while self._open:
                header = self._read_exactly(codec.LENGTH_SIZE)
                if header is None:
                    break

                payload = self._read_exactly(codec.unpack_length(header))
                if payload is None:
                    break

                self._inbox.put(payload)
        except (OSError, ValueError) as exc:
            if self._open:
                logger.error("{} read failed: {}", self.name, exc)
                self._inbox.put(TransportConnectionError(f"{self.name} read failed: {exc}"))
                return
        finally:
            try:
                self.reader.close()
            except (OSError, ValueError):
                pass

        if self._open:
            logger.debug("{} reached end of stream", self.name)
        self._inbox.put(_CLOSED)


class PipeTransport(StreamTransport):
    """Spawn the engine with *command* and talk to it over stdin/stdout.

    The engine's stderr is inherited so its diagnostics remain visible.
    """

    terminate_timeout = 5.0

    def __init__(self, command: Sequence[str], env: Optional[dict] = None, cwd: Optional[str] = None):
        self.command = list(command)
        self.env = env
        self.cwd = cwd
        self.process: Optional[subprocess.Popen] = None
        super().__init__(None, None, name="pipe")

    def open(self) -> None:
        if self._open:
            return

        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=self.env,
                cwd=self.cwd,
            )
        except OSError as exc:
            raise TransportConnectionError(f"cannot start engine {self.command!r}: {exc}") from exc

        self.reader = self.process.stdout
        self.writer = self.process.stdin
        logger.debug("started engine process {} ({})", self.process.pid, self.command[0])
        super().open()

    def close(self) -> None:
        super().close()

        process = self.process
        if process is None:
            return

        try:
            process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("engine process {} did not exit, terminating", process.pid)
            process.terminate()
            try:
                process.wait(timeout=self.terminate_timeout)
            except subprocess.TimeoutExpired:
                process.kill()
