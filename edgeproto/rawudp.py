"""UDP over a raw (link-layer) socket, addressed by MAC."""

from __future__ import annotations

import ipaddress
from ipaddress import IPv4Address

from .bytesio import (
    BufferOverflowError,
    InvalidChecksumError,
    InvalidFormatError,
    PacketError,
)
from .packet import ip_udp_decode, ip_udp_encode

DEFAULT_MTU = 1500
BROADCAST_MAC = b"\xff" * 6


class UnsupportedProtocolError(PacketError):
    """The address is not an IPv4 socket address."""


def _ipv4_endpoint(addr) -> tuple[IPv4Address, int]:
    if len(addr) != 2:
        raise UnsupportedProtocolError(f"not an IPv4 socket address: {addr!r}")
    host, port = addr
    ip = ipaddress.ip_address(host)
    if ip.version != 4:
        raise UnsupportedProtocolError(f"not an IPv4 address: {host}")
    return ip, int(port)


async def udp_send(socket, local, remote, remote_mac, data, mtu: int = DEFAULT_MTU) -> None:
    """Send ``data`` as a UDP datagram to the peer with MAC ``remote_mac``."""
    local = _ipv4_endpoint(local)
    remote = _ipv4_endpoint(remote)
    packet = ip_udp_encode(local, remote, data, mtu)
    await socket.send(bytes(remote_mac), packet)


async def udp_receive(
    socket, filter_local=None, filter_remote=None, bufsize: int | None = None,
    mtu: int = DEFAULT_MTU,
):
    """Receive the next UDP datagram passing the filters.

    Returns ``(payload, local, remote, remote_mac)``. Packets that are not
    IPv4, fail their checksums or do not match the filters are skipped.
    """
    while True:
        packet, remote_mac = await socket.receive(mtu)
        try:
            decoded = ip_udp_decode(packet, filter_remote, filter_local)
        except (InvalidFormatError, InvalidChecksumError):
            continue
        if decoded is None:
            continue
        remote, local, payload = decoded
        if bufsize is not None and len(payload) > bufsize:
            raise BufferOverflowError(
                f"datagram of {len(payload)} bytes exceeds buffer of {bufsize}"
            )
        return payload, local, remote, bytes(remote_mac)


class RawSocket2Udp:
    """Send and receive UDP datagrams over a raw socket.

    Unlike a regular UDP socket, the remote peer is reached through its MAC
    address, so a host without an IP address (e.g. a DHCP client) can still
    exchange datagrams.
    """

    def __init__(
        self,
        socket,
        filter_local=None,
        filter_remote=None,
        remote_mac=BROADCAST_MAC,
        mtu: int = DEFAULT_MTU,
    ):
        self.socket = socket
        self.filter_local = filter_local
        self.filter_remote = filter_remote
        self.remote_mac = bytes(remote_mac)
        self.mtu = mtu

    async def receive(self, bufsize: int | None = None):
        """Return ``(payload, remote)`` for the next matching datagram."""
        payload, _local, remote, _mac = await udp_receive(
            self.socket, self.filter_local, self.filter_remote, bufsize, self.mtu
        )
        return payload, remote

    async def readable(self) -> None:
        await self.socket.readable()

    async def send(self, remote, data) -> None:
        _ipv4_endpoint(remote)
        local = self.filter_local if self.filter_local is not None else ("0.0.0.0", 0)
        await udp_send(self.socket, local, remote, self.remote_mac, data, self.mtu)

    def split(self) -> tuple[RawSocket2Udp, RawSocket2Udp]:
        """Split into a receiving and a sending half with the same settings."""
        receive_half, send_half = self.socket.split()
        return (
            RawSocket2Udp(
                receive_half, self.filter_local, self.filter_remote,
                self.remote_mac, self.mtu,
            ),
            RawSocket2Udp(
                send_half, self.filter_local, self.filter_remote,
                self.remote_mac, self.mtu,
            ),
        )