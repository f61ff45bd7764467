"""UDP datagram header encoding and decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import ClassVar

from .bytesio import (
    BufferOverflowError,
    BytesIn,
    BytesOut,
    DataUnderflowError,
    InvalidChecksumError,
)
from .checksum import checksum_accumulate, checksum_finish

_log = logging.getLogger(__name__)

_PROTO = 17
_SIZE = 8
_CHECKSUM_WORD = 3


@dataclass
class UdpPacketHeader:
    """A parsed UDP header."""

    src: int
    dst: int
    length: int = 0
    csum: int = 0

    PROTO: ClassVar[int] = _PROTO
    SIZE: ClassVar[int] = _SIZE
    CHECKSUM_WORD: ClassVar[int] = _CHECKSUM_WORD

    @classmethod
    def decode(cls, data) -> UdpPacketHeader:
        reader = BytesIn(data)
        return cls(
            src=reader.u16(),
            dst=reader.u16(),
            length=reader.u16(),
            csum=reader.u16(),
        )

    def encode(self) -> bytes:
        return (
            BytesOut(_SIZE)
            .u16(self.src)
            .u16(self.dst)
            .u16(self.length)
            .u16(self.csum)
            .getvalue()
        )

    def encode_with_payload(self, src, dst, payload, capacity: int | None = None) -> bytes:
        """Build a full datagram, updating the length and checksum fields."""
        payload = bytes(payload)
        if capacity is not None and capacity < _SIZE:
            raise BufferOverflowError("no room for the UDP header")
        if capacity is not None and len(payload) > capacity - _SIZE:
            raise BufferOverflowError("no room for the UDP payload")
        total = _SIZE + len(payload)
        if total > 0xFFFF:
            raise BufferOverflowError("UDP datagram too large")
        self.length = total

        packet = bytearray(self.encode()) + payload
        csum = self.checksum(packet, src, dst)
        self.csum = csum
        self.inject_checksum(packet, csum)
        return bytes(packet)

    @classmethod
    def decode_with_payload(
        cls, packet, src, dst, filter_src=None, filter_dst=None
    ) -> tuple[UdpPacketHeader, bytes] | None:
        """Parse a datagram; return None when it does not pass the port filters."""
        packet = bytes(packet)
        hdr = cls.decode(packet)

        if filter_src is not None and filter_src != hdr.src:
            return None
        if filter_dst is not None and filter_dst != hdr.dst:
            return None

        if len(packet) < hdr.length or hdr.length < _SIZE:
            raise DataUnderflowError("UDP datagram is truncated")
        packet = packet[: hdr.length]

        csum = cls.checksum(packet, src, dst)
        _log.debug(
            "UDP header decoded, src=%d, dst=%d, size=%d, checksum=%d, ours=%d",
            hdr.src, hdr.dst, hdr.length, hdr.csum, csum,
        )
        if csum != hdr.csum:
            raise InvalidChecksumError("UDP checksum mismatch")

        return hdr, packet[_SIZE:]

    @staticmethod
    def inject_checksum(packet: bytearray, checksum: int) -> None:
        """Write ``checksum`` into the checksum field of ``packet`` in place."""
        offset = _CHECKSUM_WORD << 1
        packet[offset : offset + 2] = checksum.to_bytes(2, "big")

    @staticmethod
    def checksum(packet, src, dst) -> int:
        """Compute the checksum of an encoded datagram, pseudo-header included."""
        pseudo = (
            BytesOut(12)
            .u32(int(IPv4Address(src)))
            .u32(int(IPv4Address(dst)))
            .byte(0)
            .byte(_PROTO)
            .u16(len(packet) & 0xFFFF)
            .getvalue()
        )
        return checksum_finish(
            checksum_accumulate(pseudo) + checksum_accumulate(packet, _CHECKSUM_WORD)
        )


def decode(src, dst, packet, filter_src=None, filter_dst=None):
    """Return ``((src_ip, src_port), (dst_ip, dst_port), payload)`` or None."""
    src = IPv4Address(src)
    dst = IPv4Address(dst)
    decoded = UdpPacketHeader.decode_with_payload(packet, src, dst, filter_src, filter_dst)
    if decoded is None:
        return None
    hdr, payload = decoded
    return (src, hdr.src), (dst, hdr.dst), payload


def encode(src, dst, payload, capacity: int | None = None) -> bytes:
    """Wrap ``payload`` in a UDP datagram; ``src`` and ``dst`` are (ip, port) pairs."""
    src_ip, src_port = src
    dst_ip, dst_port = dst
    return UdpPacketHeader(src_port, dst_port).encode_with_payload(
        src_ip, dst_ip, payload, capacity
    )