"""Bounded byte readers and writers used by the packet codecs."""

from __future__ import annotations


class PacketError(Exception):
    """Base error for packet encoding and decoding."""


class BufferOverflowError(PacketError):
    """The output does not fit in the available space."""


class DataUnderflowError(PacketError):
    """The input ended before the expected data."""


class InvalidFormatError(PacketError):
    """The input is not in the expected format."""


class InvalidChecksumError(PacketError):
    """The checksum carried by a packet does not match its contents."""


class BytesIn:
    """Sequential reader over an immutable byte string."""

    def __init__(self, data):
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        """Number of bytes consumed so far."""
        return self._offset

    def is_empty(self) -> bool:
        return self._offset == len(self._data)

    def byte(self) -> int:
        return self.slice(1)[0]

    def slice(self, length: int) -> bytes:
        """Consume and return exactly ``length`` bytes."""
        available = len(self._data) - self._offset
        if length < 0 or length > available:
            raise DataUnderflowError(
                f"need {length} bytes, only {available} available"
            )
        chunk = self._data[self._offset : self._offset + length]
        self._offset += length
        return chunk

    def u16(self) -> int:
        return int.from_bytes(self.slice(2), "big")

    def u32(self) -> int:
        return int.from_bytes(self.slice(4), "big")

    def remaining(self) -> bytes:
        """Consume and return everything that is left."""
        chunk = self._data[self._offset :]
        self._offset = len(self._data)
        return chunk

    def remaining_byte(self) -> int:
        return self.remaining_slice(1)[0]

    def remaining_slice(self, length: int) -> bytes:
        """Consume ``length`` bytes, which must be all that is left."""
        if len(self._data) - self._offset > length:
            raise InvalidFormatError(f"more than {length} bytes remaining")
        return self.slice(length)


class BytesOut:
    """Append-only writer with an optional capacity limit."""

    def __init__(self, capacity: int | None = None):
        self._buf = bytearray()
        self._capacity = capacity

    def __len__(self) -> int:
        return len(self._buf)

    def byte(self, value: int) -> BytesOut:
        return self.push(bytes((value,)))

    def push(self, data) -> BytesOut:
        data = bytes(data)
        if self._capacity is not None and len(data) > self._capacity - len(self._buf):
            raise BufferOverflowError(
                f"cannot write {len(data)} bytes, "
                f"{self._capacity - len(self._buf)} bytes left"
            )
        self._buf += data
        return self

    def u16(self, value: int) -> BytesOut:
        return self.push(value.to_bytes(2, "big"))

    def u32(self, value: int) -> BytesOut:
        return self.push(value.to_bytes(4, "big"))

    def getvalue(self) -> bytes:
        return bytes(self._buf)