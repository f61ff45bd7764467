"""Ones' complement checksum used by IPv4 and UDP."""

from __future__ import annotations


def checksum_accumulate(data, checksum_word: int | None = None) -> int:
    """Sum the big-endian 16-bit words of ``data``.

    The word at index ``checksum_word`` is skipped; an odd trailing byte is
    padded with zero.
    """
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    return sum(
        (high << 8) | low
        for index, (high, low) in enumerate(zip(data[::2], data[1::2]))
        if index != checksum_word
    )


def checksum_finish(total: int) -> int:
    """Fold the carries of ``total`` and return its ones' complement."""
    while total >> 16:
        total = (total >> 16) + (total & 0xFFFF)
    return ~total & 0xFFFF