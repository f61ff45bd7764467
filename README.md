# edgeproto

Small, dependency-free building blocks for low-level networking in Python:

- **IPv4 and UDP packets** (`edgeproto.ip`, `edgeproto.udp`,
  `edgeproto.packet`): encode and decode headers with Internet checksums,
  and filter incoming packets by address, port and protocol.
- **UDP over raw sockets** (`edgeproto.rawudp`): `RawSocket2Udp` sends and
  receives UDP datagrams over a link-layer socket, reaching the peer by its
  MAC address, so a host can exchange datagrams before it has an IP address.
- **WebSocket frames** (`edgeproto.ws`, `edgeproto.ws_io`): build and parse
  frame headers, mask payloads, and read or write whole frames over asyncio
  streams.

## Installation

```
pip install edgeproto
```

With the test dependencies:

```
pip install "edgeproto[test]"
```

## Building and parsing UDP/IP packets

```python
from ipaddress import IPv4Address
from edgeproto.packet import ip_udp_encode, ip_udp_decode

src = (IPv4Address("192.168.0.10"), 68)
dst = (IPv4Address("255.255.255.255"), 67)

packet = ip_udp_encode(src, dst, b"hello", 1500)

result = ip_udp_decode(packet, None, None)
if result is not None:
    (src_ip, src_port), (dst_ip, dst_port), payload = result
    assert payload == b"hello"
```

Addresses are `(ip, port)` pairs. The optional `capacity` argument limits
the size of the whole packet; `BufferOverflowError` is raised when it would
not fit.

`ip_udp_decode(packet, filter_src, filter_dst)` returns `None` when the
packet is not UDP or does not match the filters. An address filter of
`0.0.0.0` matches anything, and a broadcast address in the packet passes
every address filter. Malformed packets raise one of the `PacketError`
subclasses from `edgeproto.bytesio`:

- `DataUnderflowError`: the packet is truncated
- `BufferOverflowError`: the output does not fit
- `InvalidFormatError`: not an IPv4 packet
- `InvalidChecksumError`: a header or datagram checksum does not match

The lower layers are available directly:

- `edgeproto.ip`: `Ipv4PacketHeader` with `decode`, `encode`,
  `encode_with_payload`, `decode_with_payload`, `checksum` and
  `inject_checksum`, plus the `decode` and `encode` module functions.
- `edgeproto.udp`: `UdpPacketHeader` with the same set of methods (its
  checksum includes the IPv4 pseudo-header), plus `decode` and `encode`.
- `edgeproto.checksum`: `checksum_accumulate` and `checksum_finish`, the
  ones' complement checksum helpers.
- `edgeproto.bytesio`: `BytesIn` and `BytesOut`, bounded big-endian byte
  readers and writers.

## UDP over a raw socket

`RawSocket2Udp` wraps any object with these async methods:

- `await socket.send(mac, frame)`
- `await socket.receive(size)`, returning `(frame, mac)`
- `await socket.readable()`
- `socket.split()`, returning a receiving and a sending half (only needed
  for `RawSocket2Udp.split`)

```python
from edgeproto.rawudp import RawSocket2Udp, BROADCAST_MAC

udp = RawSocket2Udp(
    raw_socket,
    filter_local=("0.0.0.0", 68),
    filter_remote=("0.0.0.0", 67),
    remote_mac=BROADCAST_MAC,
)

await udp.send(("255.255.255.255", 67), b"request")
payload, remote = await udp.receive(1500)
```

`receive` skips packets that are not IPv4, fail their checksums or do not
match the filters. `send` takes its source address from `filter_local`
(or `0.0.0.0:0`). A non-IPv4 address raises `UnsupportedProtocolError`.
The module functions `udp_send` and `udp_receive` do the same work on a
bare socket.

## WebSocket frames

```python
from edgeproto.ws import FrameHeader, FrameType, FrameKind

header = FrameHeader(FrameType(FrameKind.TEXT), payload_len=5, mask_key=0x12345678)
raw = header.serialize()
parsed, header_len = FrameHeader.deserialize(raw)
masked = header.mask(b"hello")
```

`FrameType.flag` means "fragmented" for `TEXT` and `BINARY` and "final" for
`CONTINUE`. `is_final()` and `is_fragmented()` answer in either case.
Decoding errors are `WsError` subclasses:

- `IncompleteError`: carries `missing`, the number of bytes still needed
- `InvalidFrameError`
- `PayloadOverflowError`
- `InvalidLengthError`

Over asyncio streams (`asyncio.StreamReader` / `asyncio.StreamWriter`, or
anything with `readexactly`, `write` and `drain`), use `edgeproto.ws_io`:

```python
from edgeproto.ws_io import WsConnection

conn = WsConnection(reader, writer, mask_gen=lambda: None)
await conn.send(FrameType(FrameKind.TEXT), b"Hello world!")
frame_type, payload = await conn.recv(8192)
```

The individual steps are available as functions:

- `recv_header`
- `recv_payload`
- `send_header`
- `send_payload`
- `recv`
- `send`

A stream that ends in the middle of a frame raises `InvalidFrameError`.

## What this package does not do

- It opens no sockets. Raw link-layer sockets and TCP connections come
  from the caller.
- It has no DHCP client or server, and no HTTP client or server.
- It performs no WebSocket opening handshake. `edgeproto.ws_io` works on a
  connection that has already been upgraded.
- It has no command-line tools.

## Running the tests

```
pytest
```