"""Frame codec shared by the transports."""

from __future__ import annotations

import struct

from .. import json
from ..errors import ProtocolError


_LENGTH = struct.Struct("<I")
LENGTH_SIZE = _LENGTH.size


def encode(frame: dict) -> bytes:
    """Return the JSON encoding of *frame*."""

    return json.dumps(frame)


def decode(data: bytes) -> dict:
    """Decode one JSON frame. Malformed input raises :class:`ProtocolError`."""

    try:
        frame = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"undecodable frame: {exc}") from exc

    if not isinstance(frame, dict):
        raise ProtocolError(f"frame is not an object: {frame!r}")

    return frame


def pack_length(payload: bytes) -> bytes:
    """Prefix *payload* with its length as a 4-byte little-endian integer."""

    return _LENGTH.pack(len(payload)) + payload


def unpack_length(header: bytes) -> int:
    """Return the payload length announced by a 4-byte *header*."""

    return _LENGTH.unpack(header)[0]
