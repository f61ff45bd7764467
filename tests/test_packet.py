from ipaddress import IPv4Address

import pytest

from edgeproto import ip
from edgeproto.bytesio import BufferOverflowError, InvalidChecksumError
from edgeproto.packet import ip_udp_decode, ip_udp_encode

CLIENT = (IPv4Address("0.0.0.0"), 68)
SERVER = (IPv4Address("192.168.0.1"), 67)
BROADCAST = (IPv4Address("255.255.255.255"), 68)


def test_round_trip():
    packet = ip_udp_encode(SERVER, BROADCAST, b"offer")
    assert ip_udp_decode(packet) == (SERVER, BROADCAST, b"offer")


def test_packet_length():
    packet = ip_udp_encode(SERVER, BROADCAST, b"offer")
    assert len(packet) == 20 + 8 + len(b"offer")
    assert packet[9] == 17


def test_accepts_string_addresses():
    packet = ip_udp_encode(("10.1.1.1", 5000), ("10.1.1.2", 6000), b"z")
    src, dst, payload = ip_udp_decode(packet)
    assert src == (IPv4Address("10.1.1.1"), 5000)
    assert dst == (IPv4Address("10.1.1.2"), 6000)
    assert payload == b"z"


def test_filters_match():
    packet = ip_udp_encode(SERVER, BROADCAST, b"ack")
    result = ip_udp_decode(packet, SERVER, (IPv4Address("0.0.0.0"), 68))
    assert result[2] == b"ack"


def test_broadcast_destination_passes_address_filter():
    packet = ip_udp_encode(SERVER, BROADCAST, b"ack")
    result = ip_udp_decode(packet, None, (IPv4Address("192.168.0.77"), 68))
    assert result[1] == BROADCAST


def test_port_filter_rejects():
    packet = ip_udp_encode(SERVER, BROADCAST, b"ack")
    assert ip_udp_decode(packet, None, (IPv4Address("0.0.0.0"), 67)) is None
    assert ip_udp_decode(packet, (IPv4Address("0.0.0.0"), 68), None) is None


def test_address_filter_rejects():
    packet = ip_udp_encode(SERVER, (IPv4Address("192.168.0.5"), 68), b"ack")
    assert ip_udp_decode(packet, (IPv4Address("192.168.0.2"), 67), None) is None


def test_non_udp_packet_is_ignored():
    packet = ip.encode(SERVER[0], BROADCAST[0], 6, b"tcp stuff")
    assert ip_udp_decode(packet) is None


def test_corrupted_udp_payload():
    packet = bytearray(ip_udp_encode(SERVER, BROADCAST, b"offer"))
    packet[-1] ^= 0x01
    with pytest.raises(InvalidChecksumError):
        ip_udp_decode(packet)


def test_capacity():
    payload = b"1234"
    assert len(ip_udp_encode(CLIENT, SERVER, payload, capacity=28 + len(payload))) == 32
    with pytest.raises(BufferOverflowError):
        ip_udp_encode(CLIENT, SERVER, payload, capacity=27 + len(payload))
    with pytest.raises(BufferOverflowError):
        ip_udp_encode(CLIENT, SERVER, b"", capacity=10)