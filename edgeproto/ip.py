"""IPv4 packet header encoding and decoding."""

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
    InvalidFormatError,
)
from .checksum import checksum_accumulate, checksum_finish

_log = logging.getLogger(__name__)

_MIN_SIZE = 20
_CHECKSUM_WORD = 5
_BROADCAST = IPv4Address("255.255.255.255")


def _address_matches(flt: IPv4Address | None, addr: IPv4Address) -> bool:
    if flt is None:
        return True
    flt = IPv4Address(flt)
    return flt.is_unspecified or addr == _BROADCAST or flt == addr


@dataclass
class Ipv4PacketHeader:
    """A parsed IPv4 header."""

    src: IPv4Address
    dst: IPv4Address
    proto: int
    version: int = 4
    hlen: int = _MIN_SIZE
    tos: int = 0
    length: int = _MIN_SIZE
    ident: int = 0
    offset: int = 0
    ttl: int = 64
    csum: int = 0

    MIN_SIZE: ClassVar[int] = _MIN_SIZE
    CHECKSUM_WORD: ClassVar[int] = _CHECKSUM_WORD
    IP_DF: ClassVar[int] = 0x4000
    IP_MF: ClassVar[int] = 0x2000

    def __post_init__(self):
        self.src = IPv4Address(self.src)
        self.dst = IPv4Address(self.dst)

    @classmethod
    def decode(cls, data) -> Ipv4PacketHeader:
        """Parse the fixed part of a header."""
        reader = BytesIn(data)
        vhl = reader.byte()
        tos = reader.byte()
        length = reader.u16()
        ident = reader.u16()
        offset = reader.u16()
        ttl = reader.byte()
        proto = reader.byte()
        csum = reader.u16()
        src = IPv4Address(reader.u32())
        dst = IPv4Address(reader.u32())
        return cls(
            src=src,
            dst=dst,
            proto=proto,
            version=vhl >> 4,
            hlen=(vhl & 0x0F) * 4,
            tos=tos,
            length=length,
            ident=ident,
            offset=offset,
            ttl=ttl,
            csum=csum,
        )

    def encode(self) -> bytes:
        """Serialize the fixed 20-byte part of the header."""
        words = self.hlen // 4 + (1 if self.hlen % 4 else 0)
        return (
            BytesOut(_MIN_SIZE)
            .byte(((self.version << 4) | words) & 0xFF)
            .byte(self.tos)
            .u16(self.length)
            .u16(self.ident)
            .u16(self.offset)
            .byte(self.ttl)
            .byte(self.proto)
            .u16(self.csum)
            .u32(int(self.src))
            .u32(int(self.dst))
            .getvalue()
        )

    def encode_with_payload(self, payload, capacity: int | None = None) -> bytes:
        """Build a full packet, updating the length and checksum fields."""
        payload = bytes(payload)
        hdr_len = self.hlen
        if hdr_len < _MIN_SIZE or (capacity is not None and capacity < hdr_len):
            raise BufferOverflowError("no room for the IPv4 header")
        if capacity is not None and len(payload) > capacity - hdr_len:
            raise BufferOverflowError("no room for the IPv4 payload")
        total = hdr_len + len(payload)
        if total > 0xFFFF:
            raise BufferOverflowError("IPv4 packet too large")
        self.length = total

        header = bytearray(self.encode())
        header += bytes(hdr_len - _MIN_SIZE)
        csum = self.checksum(header)
        self.csum = csum
        self.inject_checksum(header, csum)
        return bytes(header) + payload

    @classmethod
    def decode_with_payload(
        cls, packet, filter_src=None, filter_dst=None, filter_proto=None
    ) -> tuple[Ipv4PacketHeader, bytes] | None:
        """Parse a packet; return None when it does not pass the filters."""
        packet = bytes(packet)
        hdr = cls.decode(packet)
        if hdr.version != 4:
            raise InvalidFormatError(f"unsupported IP version {hdr.version}")

        if not _address_matches(filter_src, hdr.src):
            return None
        if not _address_matches(filter_dst, hdr.dst):
            return None
        if filter_proto is not None and filter_proto != hdr.proto:
            return None

        if len(packet) < hdr.length or hdr.length < hdr.hlen:
            raise DataUnderflowError("IPv4 packet is truncated")
        packet = packet[: hdr.length]

        csum = cls.checksum(packet)
        _log.debug(
            "IP header decoded, src=%s, dst=%s, hlen=%d, size=%d, checksum=%d, ours=%d",
            hdr.src, hdr.dst, hdr.hlen, hdr.length, hdr.csum, csum,
        )
        if csum != hdr.csum:
            raise InvalidChecksumError("IPv4 header checksum mismatch")

        return hdr, packet[hdr.hlen :]

    @staticmethod
    def inject_checksum(packet: bytearray, checksum: int) -> None:
        """Write ``checksum`` into the checksum field of ``packet`` in place."""
        offset = _CHECKSUM_WORD << 1
        packet[offset : offset + 2] = checksum.to_bytes(2, "big")

    @staticmethod
    def checksum(packet) -> int:
        """Compute the header checksum of an encoded packet."""
        hlen = (packet[0] & 0x0F) * 4
        return checksum_finish(checksum_accumulate(packet[:hlen], _CHECKSUM_WORD))


def decode(packet, filter_src=None, filter_dst=None, filter_proto=None):
    """Return ``(src, dst, proto, payload)`` or None when filtered out."""
    decoded = Ipv4PacketHeader.decode_with_payload(
        packet, filter_src, filter_dst, filter_proto
    )
    if decoded is None:
        return None
    hdr, payload = decoded
    return hdr.src, hdr.dst, hdr.proto, payload


def encode(src, dst, proto: int, payload, capacity: int | None = None) -> bytes:
    """Wrap ``payload`` in an IPv4 packet."""
    return Ipv4PacketHeader(src, dst, proto).encode_with_payload(payload, capacity)