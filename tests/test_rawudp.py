from ipaddress import IPv4Address

import pytest

from edgeproto.bytesio import BufferOverflowError
from edgeproto.packet import ip_udp_decode, ip_udp_encode
from edgeproto.rawudp import (
    RawSocket2Udp,
    UnsupportedProtocolError,
    udp_receive,
    udp_send,
)

MAC = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
LOCAL = ("10.0.0.1", 68)
REMOTE = ("10.0.0.2", 67)


class FakeRawSocket:
    def __init__(self, incoming=()):
        self.incoming = list(incoming)
        self.sent = []
        self.readable_calls = 0

    async def receive(self, bufsize):
        if not self.incoming:
            raise EOFError("no more packets")
        packet, mac = self.incoming.pop(0)
        return packet[:bufsize], mac

    async def send(self, mac, data):
        self.sent.append((mac, bytes(data)))

    async def readable(self):
        self.readable_calls += 1

    def split(self):
        return self, self


def _corrupt(packet):
    data = bytearray(packet)
    data[-1] ^= 0xFF
    return bytes(data)


@pytest.mark.asyncio
async def test_send_encodes_ip_udp_packet():
    sock = FakeRawSocket()
    conn = RawSocket2Udp(sock, filter_local=LOCAL, remote_mac=MAC)
    await conn.send(REMOTE, b"hi")
    assert len(sock.sent) == 1
    mac, packet = sock.sent[0]
    assert mac == MAC
    src, dst, payload = ip_udp_decode(packet)
    assert src == (IPv4Address(LOCAL[0]), LOCAL[1])
    assert dst == (IPv4Address(REMOTE[0]), REMOTE[1])
    assert payload == b"hi"


@pytest.mark.asyncio
async def test_send_without_local_filter_uses_unspecified():
    sock = FakeRawSocket()
    await RawSocket2Udp(sock, remote_mac=MAC).send(REMOTE, b"x")
    src, _dst, _payload = ip_udp_decode(sock.sent[0][1])
    assert src == (IPv4Address("0.0.0.0"), 0)


@pytest.mark.asyncio
async def test_send_ipv6_rejected():
    sock = FakeRawSocket()
    with pytest.raises(UnsupportedProtocolError):
        await RawSocket2Udp(sock).send(("::1", 67), b"x")
    assert sock.sent == []


@pytest.mark.asyncio
async def test_udp_send_ipv6_local_rejected():
    with pytest.raises(UnsupportedProtocolError):
        await udp_send(FakeRawSocket(), ("::", 68), REMOTE, MAC, b"x")


@pytest.mark.asyncio
async def test_udp_send_payload_too_large_for_mtu():
    sock = FakeRawSocket()
    with pytest.raises(BufferOverflowError):
        await udp_send(sock, LOCAL, REMOTE, MAC, bytes(100), mtu=64)
    assert sock.sent == []


@pytest.mark.asyncio
async def test_receive_returns_payload_and_remote():
    packet = ip_udp_encode(REMOTE, LOCAL, b"data")
    sock = FakeRawSocket([(packet, MAC)])
    conn = RawSocket2Udp(sock, filter_local=LOCAL, filter_remote=REMOTE)
    payload, remote = await conn.receive()
    assert payload == b"data"
    assert remote == (IPv4Address(REMOTE[0]), REMOTE[1])


@pytest.mark.asyncio
async def test_udp_receive_returns_local_remote_and_mac():
    packet = ip_udp_encode(REMOTE, LOCAL, b"abc")
    sock = FakeRawSocket([(packet, MAC)])
    payload, local, remote, mac = await udp_receive(sock, LOCAL, REMOTE)
    assert payload == b"abc"
    assert local == (IPv4Address(LOCAL[0]), LOCAL[1])
    assert remote == (IPv4Address(REMOTE[0]), REMOTE[1])
    assert mac == MAC


@pytest.mark.asyncio
async def test_receive_skips_bad_and_filtered_packets():
    good = ip_udp_encode(REMOTE, LOCAL, b"good")
    wrong_port = ip_udp_encode(REMOTE, ("10.0.0.1", 9999), b"port")
    not_ipv4 = bytes([0x60]) + bytes(39)
    sock = FakeRawSocket(
        [(_corrupt(good), MAC), (wrong_port, MAC), (not_ipv4, MAC), (good, MAC)]
    )
    conn = RawSocket2Udp(sock, filter_local=LOCAL, filter_remote=REMOTE)
    payload, _remote = await conn.receive()
    assert payload == b"good"
    assert sock.incoming == []


@pytest.mark.asyncio
async def test_receive_propagates_socket_error_after_skipping():
    wrong_host = ip_udp_encode(("10.9.9.9", 67), LOCAL, b"x")
    sock = FakeRawSocket([(wrong_host, MAC)])
    conn = RawSocket2Udp(sock, filter_local=LOCAL, filter_remote=REMOTE)
    with pytest.raises(EOFError):
        await conn.receive()


@pytest.mark.asyncio
async def test_receive_buffer_too_small():
    packet = ip_udp_encode(REMOTE, LOCAL, b"0123456789")
    sock = FakeRawSocket([(packet, MAC)])
    with pytest.raises(BufferOverflowError):
        await RawSocket2Udp(sock).receive(bufsize=4)


@pytest.mark.asyncio
async def test_readable_delegates():
    sock = FakeRawSocket()
    await RawSocket2Udp(sock).readable()
    assert sock.readable_calls == 1


@pytest.mark.asyncio
async def test_split_halves_share_settings():
    packet = ip_udp_encode(REMOTE, LOCAL, b"ping")
    sock = FakeRawSocket([(packet, MAC)])
    conn = RawSocket2Udp(sock, LOCAL, REMOTE, MAC, mtu=600)
    receiver, sender = conn.split()
    assert (receiver.filter_local, receiver.filter_remote) == (LOCAL, REMOTE)
    assert sender.remote_mac == MAC and sender.mtu == 600
    payload, _ = await receiver.receive()
    await sender.send(REMOTE, payload)
    assert ip_udp_decode(sock.sent[0][1])[2] == b"ping"