"""Sending and receiving WebSocket frames over asyncio-style streams.

Readers must provide ``await readexactly(n)`` (as ``asyncio.StreamReader``
does). Writers must provide ``write(data)`` and ``await drain()`` (as
``asyncio.StreamWriter`` does).
"""

from __future__ import annotations

import asyncio
from typing import Callable

from .ws import (
    FrameHeader,
    FrameType,
    IncompleteError,
    InvalidFrameError,
    InvalidLengthError,
    PayloadOverflowError,
)


async def _read_exact(reader, length: int) -> bytes:
    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as err:
        raise InvalidFrameError("unexpected end of stream") from err


async def _write_all(writer, data: bytes) -> None:
    writer.write(data)
    await writer.drain()


async def recv_header(reader) -> FrameHeader:
    """Read exactly one frame header from ``reader``."""
    buf = await _read_exact(reader, FrameHeader.MIN_LEN)
    while True:
        try:
            header, _offset = FrameHeader.deserialize(buf)
        except IncompleteError as err:
            buf += await _read_exact(reader, err.missing)
        else:
            return header


async def send_header(writer, header: FrameHeader) -> None:
    """Write ``header`` to ``writer``."""
    await _write_all(writer, header.serialize())


async def recv_payload(reader, header: FrameHeader, max_len: int | None = None) -> bytes:
    """Read and unmask the payload announced by ``header``.

    Raises PayloadOverflowError when the payload is longer than ``max_len``.
    """
    if max_len is not None and max_len < header.payload_len:
        raise PayloadOverflowError(
            f"payload of {header.payload_len} bytes exceeds limit of {max_len}"
        )
    if header.payload_len == 0:
        return b""
    payload = await _read_exact(reader, header.payload_len)
    return header.mask(payload, 0)


async def send_payload(writer, header: FrameHeader, payload) -> None:
    """Write ``payload``, masked with the header's key if it has one."""
    payload = bytes(payload)
    if len(payload) != header.payload_len:
        raise InvalidLengthError(
            f"payload is {len(payload)} bytes, header says {header.payload_len}"
        )
    if not payload:
        return
    await _write_all(writer, header.mask(payload, 0))


async def recv(reader, max_len: int | None = None) -> tuple[FrameType, bytes]:
    """Receive a whole frame; return its type and unmasked payload."""
    header = await recv_header(reader)
    payload = await recv_payload(reader, header, max_len)
    return header.frame_type, payload


async def send(writer, frame_type: FrameType, mask_key: int | None, payload) -> None:
    """Send a whole frame carrying ``payload``."""
    payload = bytes(payload)
    header = FrameHeader(frame_type, len(payload), mask_key)
    await send_header(writer, header)
    await send_payload(writer, header, payload)


class WsConnection:
    """A WebSocket connection over a reader/writer pair.

    ``mask_gen`` is called for every outgoing frame and returns the mask key
    to use, or None for unmasked frames. Without it frames are not masked.
    """

    def __init__(self, reader, writer, mask_gen: Callable[[], int | None] | None = None):
        self.reader = reader
        self.writer = writer
        self.mask_gen = mask_gen

    async def recv(self, max_len: int | None = None) -> tuple[FrameType, bytes]:
        return await recv(self.reader, max_len)

    async def send(self, frame_type: FrameType, payload) -> None:
        mask_key = self.mask_gen() if self.mask_gen is not None else None
        await send(self.writer, frame_type, mask_key, payload)