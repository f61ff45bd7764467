"""WebSocket frame header encoding and decoding."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar


class FrameKind(enum.Enum):
    TEXT = "Text"
    BINARY = "Binary"
    PING = "Ping"
    PONG = "Pong"
    CLOSE = "Close"
    CONTINUE = "Continue"


_DATA_KINDS = frozenset({FrameKind.TEXT, FrameKind.BINARY, FrameKind.CONTINUE})

_OPCODES = {
    FrameKind.CONTINUE: 0,
    FrameKind.TEXT: 1,
    FrameKind.BINARY: 2,
    FrameKind.CLOSE: 8,
    FrameKind.PING: 9,
    FrameKind.PONG: 10,
}
_KINDS_BY_OPCODE = {opcode: kind for kind, opcode in _OPCODES.items()}


@dataclass(frozen=True)
class FrameType:
    """A frame type.

    ``flag`` means "fragmented" for TEXT and BINARY, "final" for CONTINUE,
    and is always False for control frames.
    """

    kind: FrameKind
    flag: bool = False

    def __post_init__(self):
        if self.kind not in _DATA_KINDS and self.flag:
            object.__setattr__(self, "flag", False)

    def is_fragmented(self) -> bool:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY):
            return self.flag
        return self.kind is FrameKind.CONTINUE

    def is_final(self) -> bool:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY):
            return not self.flag
        if self.kind is FrameKind.CONTINUE:
            return self.flag
        return True

    def __str__(self) -> str:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY) and self.flag:
            return f"{self.kind.value} (fragmented)"
        if self.kind is FrameKind.CONTINUE and self.flag:
            return "Continue (final)"
        return self.kind.value


class WsError(Exception):
    """Base error for WebSocket framing."""


class IncompleteError(WsError):
    """More bytes are needed to decode the header."""

    def __init__(self, missing: int):
        self.missing = missing
        super().__init__(f"Incomplete: {missing} bytes missing")


class InvalidFrameError(WsError):
    """The frame is malformed."""


class PayloadOverflowError(WsError):
    """The payload does not fit in the allowed size."""


class InvalidLengthError(WsError):
    """A length does not match what the header declares."""


@dataclass
class FrameHeader:
    """A WebSocket frame header."""

    frame_type: FrameType
    payload_len: int = 0
    mask_key: int | None = field(default=None)

    MIN_LEN: ClassVar[int] = 2
    MAX_LEN: ClassVar[int] = 14

    @classmethod
    def deserialize(cls, buf) -> tuple[FrameHeader, int]:
        """Decode a header; return it with the offset where the payload starts."""
        buf = bytes(buf)
        expected = 2
        if len(buf) < expected:
            raise IncompleteError(expected - len(buf))

        final = bool(buf[0] & 0x80)
        if buf[0] & 0x70:
            raise InvalidFrameError("Invalid")
        opcode = buf[0] & 0x0F
        kind = _KINDS_BY_OPCODE.get(opcode)
        if kind is None:
            raise InvalidFrameError("Invalid")

        payload_len = buf[1] & 0x7F
        offset = 2
        if payload_len in (126, 127):
            width = 2 if payload_len == 126 else 8
            expected += width
            if len(buf) < expected:
                raise IncompleteError(expected - len(buf))
            payload_len = int.from_bytes(buf[offset : offset + width], "big")
            offset += width

        mask_key = None
        if buf[1] & 0x80:
            expected += 4
            if len(buf) < expected:
                raise IncompleteError(expected - len(buf))
            mask_key = int.from_bytes(buf[offset : offset + 4], "big")
            offset += 4

        if kind is FrameKind.CONTINUE:
            frame_type = FrameType(kind, final)
        elif kind in (FrameKind.TEXT, FrameKind.BINARY):
            frame_type = FrameType(kind, not final)
        else:
            frame_type = FrameType(kind)

        if kind not in _DATA_KINDS:
            payload_len = 0

        return cls(frame_type, payload_len, mask_key), offset

    def serialized_len(self) -> int:
        if self.payload_len >= 65536:
            len_len = 8
        elif self.payload_len >= 126:
            len_len = 2
        else:
            len_len = 0
        return 2 + (4 if self.mask_key is not None else 0) + len_len

    def serialize(self) -> bytes:
        if not 0 <= self.payload_len < 1 << 64:
            raise InvalidLengthError("Invalid length")

        first = _OPCODES[self.frame_type.kind]
        if self.frame_type.is_final():
            first |= 0x80

        out = bytearray((first, 0))
        if self.payload_len < 126:
            out[1] |= self.payload_len
        elif self.payload_len < 65536:
            out[1] |= 126
            out += self.payload_len.to_bytes(2, "big")
        else:
            out[1] |= 127
            out += self.payload_len.to_bytes(8, "big")

        if self.mask_key is not None:
            out[1] |= 0x80
            out += self.mask_key.to_bytes(4, "big")

        return bytes(out)

    def mask(self, data, payload_offset: int = 0) -> bytes:
        """Return ``data`` masked (or unmasked) with this header's key."""
        return self.mask_with(data, self.mask_key, payload_offset)

    @staticmethod
    def mask_with(data, mask_key: int | None, payload_offset: int = 0) -> bytes:
        """XOR ``data`` with ``mask_key``, starting at ``payload_offset`` in the payload."""
        if mask_key is None:
            return bytes(data)
        key = mask_key.to_bytes(4, "big")
        return bytes(
            byte ^ key[(payload_offset + index) % 4] for index, byte in enumerate(data)
        )

    def __str__(self) -> str:
        return (
            f"Frame {{ {self.frame_type}, payload len {self.payload_len}, "
            f"mask {self.mask_key!r} }}"
        )