"""IPv4/UDP packet codecs, UDP over raw sockets, and WebSocket framing."""

__version__ = "0.1.0"

__all__ = ["bytesio", "checksum", "ip", "udp", "packet", "rawudp", "ws", "ws_io"]