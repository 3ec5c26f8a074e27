"""Conversion of UCS-2 code units to UTF-8 bytes."""

from __future__ import annotations


class Ucs2Error(ValueError):
    """Raised for a code point that has no UTF-8 form here."""


def ucs2_to_utf8(code_point: int) -> bytes:
    """Return the UTF-8 bytes of one code point.

    Surrogates, 0xFFFF, values from 0x10FFFF upwards and negative values
    are rejected with :class:`Ucs2Error`.
    """
    if code_point < 0:
        raise Ucs2Error(f"negative code point: {code_point}")
    if code_point < 0x80:
        return bytes([code_point])
    if code_point < 0x800:
        return bytes([(code_point >> 6) | 0xC0, (code_point & 0x3F) | 0x80])
    if code_point < 0xFFFF:
        if 0xD800 <= code_point <= 0xDFFF:
            raise Ucs2Error(f"surrogate code point: {code_point:#06x}")
        return bytes(
            [
                (code_point >> 12) | 0xE0,
                ((code_point >> 6) & 0x3F) | 0x80,
                (code_point & 0x3F) | 0x80,
            ]
        )
    if 0x10000 <= code_point < 0x10FFFF:
        return bytes(
            [
                0xF0 | (code_point >> 18),
                0x80 | ((code_point >> 12) & 0x3F),
                0x80 | ((code_point >> 6) & 0x3F),
                0x80 | (code_point & 0x3F),
            ]
        )
    raise Ucs2Error(f"code point out of range: {code_point:#x}")


def ucs2_bytes_to_utf8(data: bytes) -> bytes:
    """Convert big-endian UCS-2 bytes to UTF-8.

    Code units that cannot be converted are dropped, as is a trailing
    odd byte.
    """
    out = bytearray()
    for high, low in zip(data[0::2], data[1::2]):
        try:
            out += ucs2_to_utf8((high << 8) | low)
        except Ucs2Error:
            continue
    return bytes(out)