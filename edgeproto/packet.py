"""Combined IPv4 + UDP encoding and decoding."""

from __future__ import annotations

from . import ip, udp
from .ip import Ipv4PacketHeader
from .udp import UdpPacketHeader


def ip_udp_decode(packet, filter_src=None, filter_dst=None):
    """Decode an IPv4 packet carrying UDP.

    Filters are ``(ip, port)`` pairs. Returns
    ``((src_ip, src_port), (dst_ip, dst_port), payload)`` or None when the
    packet is not UDP or does not pass the filters.
    """
    decoded = ip.decode(
        packet,
        filter_src[0] if filter_src is not None else None,
        filter_dst[0] if filter_dst is not None else None,
        UdpPacketHeader.PROTO,
    )
    if decoded is None:
        return None
    src, dst, _proto, datagram = decoded
    return udp.decode(
        src,
        dst,
        datagram,
        filter_src[1] if filter_src is not None else None,
        filter_dst[1] if filter_dst is not None else None,
    )


def ip_udp_encode(src, dst, payload, capacity: int | None = None) -> bytes:
    """Encode ``payload`` as UDP inside IPv4; ``src`` and ``dst`` are (ip, port) pairs."""
    udp_capacity = None
    if capacity is not None:
        udp_capacity = max(capacity - Ipv4PacketHeader.MIN_SIZE, 0)
    datagram = udp.encode(src, dst, payload, udp_capacity)
    return ip.encode(src[0], dst[0], UdpPacketHeader.PROTO, datagram, capacity)