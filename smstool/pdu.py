"""Encoding and decoding of SMS PDUs."""

from __future__ import annotations

import calendar
import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .ucs2 import ucs2_bytes_to_utf8

SMS_MAX_PDU_LENGTH = 256
SMS_MAX_7BIT_TEXT_LENGTH = 160
SMS_MAX_TEXT_SIZE = 160

TYPE_OF_ADDRESS_UNKNOWN = 0x81
TYPE_OF_ADDRESS_INTERNATIONAL_PHONE = 0x91
TYPE_OF_ADDRESS_NATIONAL_SUBSCRIBER = 0xC8
TYPE_OF_ADDRESS_ALPHANUMERIC = 0xD0

SMS_DELIVER_ONE_MESSAGE = 0x04
SMS_SUBMIT = 0x11

GSM_7BITS_ESCAPE = 0x1B
NO_PRINTABLE_CHAR = ord("?")


class PduError(ValueError):
    """Raised when a PDU cannot be encoded or decoded."""


def _build_gsm7_to_latin1() -> bytes:
    table = bytearray(range(128))
    table[0x00:0x20] = bytes(
        [
            0x40, 0xA3, 0x24, 0xA5, 0xE8, 0xE9, 0xF9, 0xEC,
            0xF2, 0xC7, 0x0A, 0xD8, 0xF8, 0x0D, 0xC5, 0xE5,
            0x00, 0x5F, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
            0x00, 0x00, 0x00, 0x00, 0xC6, 0xE6, 0xDF, 0xC9,
        ]
    )
    table[0x24] = 0xA4
    table[0x40] = 0xA1
    table[0x5B:0x61] = bytes([0xC4, 0xD6, 0xD1, 0xDC, 0xA7, 0xBF])
    table[0x7B:0x80] = bytes([0xE4, 0xF6, 0xF1, 0xFC, 0xE0])
    return bytes(table)


_GSM7_TO_LATIN1 = _build_gsm7_to_latin1()

_GSM7_EXTENSION_TO_LATIN1 = {
    0x0A: 0x0C,
    0x14: 0x5E,
    0x28: 0x7B,
    0x29: 0x7D,
    0x2F: 0x5C,
    0x3C: 0x5B,
    0x3D: 0x7E,
    0x3E: 0x5D,
    0x40: 0x7C,
}

_LATIN1_TO_GSM7_ESCAPED = {latin1: septet for septet, latin1 in _GSM7_EXTENSION_TO_LATIN1.items()}

_LATIN1_TO_GSM7 = {
    **{c: c for c in range(0x20, 0x5B)},
    **{c: c for c in range(0x61, 0x7B)},
    0x0A: 0x0A, 0x0D: 0x0D, 0x24: 0x02, 0x40: 0x00, 0x5F: 0x11,
    0xA1: 0x40, 0xA3: 0x01, 0xA4: 0x24, 0xA5: 0x03, 0xA7: 0x5F, 0xBF: 0x60,
    0xF1: 0x7D, 0xF2: 0x08, 0xF6: 0x7C, 0xF8: 0x0C, 0xF9: 0x06, 0xFC: 0x7E,
}


def pack_7bit(septets: bytes) -> bytes:
    """Pack 7-bit characters into octets.

    When the number of characters is a multiple of eight (including zero)
    a terminating zero octet is appended.
    """
    septets = bytes(s & 0x7F for s in septets)
    value = 0
    for position, septet in enumerate(septets):
        value |= septet << (7 * position)
    packed = value.to_bytes((7 * len(septets) + 7) // 8, "little")
    if len(septets) % 8 == 0:
        packed += b"\x00"
    return packed


def unpack_7bit(buffer: bytes, max_chars: int) -> bytes:
    """Split octets into 7-bit characters, at most ``max_chars`` of them.

    A non-empty buffer always yields at least one character; a partial
    trailing character is included with its missing bits as zero.
    """
    if not buffer:
        return b""
    value = int.from_bytes(buffer, "little")
    available = -(-8 * len(buffer) // 7)
    count = min(available, max(max_chars, 1))
    return bytes((value >> (7 * k)) & 0x7F for k in range(count))


def gsm7_to_latin1(septets: bytes) -> bytes:
    """Translate GSM 7-bit characters to Latin-1, resolving escapes."""
    out = bytearray()
    chars = iter(septets)
    for septet in chars:
        if septet >= 128:
            out.append(septet)
        elif septet == GSM_7BITS_ESCAPE:
            out.append(_GSM7_EXTENSION_TO_LATIN1.get(next(chars, 0), 0))
        else:
            out.append(_GSM7_TO_LATIN1[septet])
    return bytes(out)


def latin1_to_gsm7(data: bytes | str) -> bytes:
    """Translate Latin-1 bytes to GSM 7-bit characters.

    A string is taken as UTF-8. Multi-byte UTF-8 sequences of two or
    three bytes and unmapped bytes become '?'.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    out = bytearray()
    octets = iter(data)
    for octet in octets:
        if octet in _LATIN1_TO_GSM7_ESCAPED:
            out += bytes([GSM_7BITS_ESCAPE, _LATIN1_TO_GSM7_ESCAPED[octet]])
        elif octet & 0xE0 == 0xC0:
            next(octets, None)
            out.append(NO_PRINTABLE_CHAR)
        elif octet & 0xF0 == 0xE0:
            next(octets, None)
            next(octets, None)
            out.append(NO_PRINTABLE_CHAR)
        else:
            out.append(_LATIN1_TO_GSM7.get(octet, NO_PRINTABLE_CHAR))
    return bytes(out)


def encode_phone_number(number: str) -> bytes:
    """Encode a digit string as swapped semi-octets padded with 0xF."""
    if any(c not in "0123456789" for c in number):
        raise PduError(f"phone number must hold digits only: {number!r}")
    digits = [int(c) for c in number]
    return bytes(
        (high << 4) | low
        for low, high in itertools.zip_longest(digits[0::2], digits[1::2], fillvalue=0xF)
    )


def decode_phone_number(buffer: bytes, length: int) -> str:
    """Decode ``length`` swapped semi-octet digits from ``buffer``."""
    needed = (length + 1) // 2
    if len(buffer) < needed:
        raise PduError("PDU is truncated in the phone number")
    digits = []
    for octet in buffer[:needed]:
        digits.append(chr((octet & 0x0F) + 0x30))
        digits.append(chr((octet >> 4) + 0x30))
    return "".join(digits[:length])


def pdu_encode(service_center_number: str | None, phone_number: str, text: str | bytes) -> bytes:
    """Build an SMS-SUBMIT PDU with a 7-bit message."""
    pdu = bytearray()
    if service_center_number:
        smsc = encode_phone_number(service_center_number)
        if len(smsc) + 1 > 0xFF:
            raise PduError("service center number too long")
        pdu += bytes([len(smsc) + 1, TYPE_OF_ADDRESS_INTERNATIONAL_PHONE]) + smsc
    else:
        pdu.append(0)

    if len(phone_number) > 0xFF:
        raise PduError("phone number too long")
    address_type = (
        TYPE_OF_ADDRESS_UNKNOWN if len(phone_number) < 6 else TYPE_OF_ADDRESS_INTERNATIONAL_PHONE
    )
    pdu += bytes([SMS_SUBMIT, 0x00, len(phone_number), address_type])
    pdu += encode_phone_number(phone_number)

    septets = latin1_to_gsm7(text)
    if len(septets) > SMS_MAX_7BIT_TEXT_LENGTH:
        raise PduError(f"message too long: {len(septets)} characters")
    # protocol identifier, data coding scheme, validity period of ten days
    pdu += bytes([0x00, 0x00, 0xB0, len(septets)])
    pdu += pack_7bit(septets)

    if len(pdu) > SMS_MAX_PDU_LENGTH:
        raise PduError("encoded PDU does not fit")
    return bytes(pdu)


@dataclass(frozen=True)
class DecodedSms:
    """A decoded SMS-DELIVER message."""

    sender: str
    timestamp: datetime
    text: bytes
    dcs: int
    reference: int = 0
    total_parts: int = 0
    part_number: int = 0
    skip_bytes: int = 0

    @property
    def coding(self) -> int:
        """The alphabet bits of the data coding scheme."""
        return (self.dcs // 4) % 4

    def message_text(self) -> str:
        """The message body without the user data header."""
        if self.coding == 0:
            skip = (self.skip_bytes * 8 + 6) // 7 if self.skip_bytes > 0 else 0
            return self.text[skip:].decode("latin-1")
        if self.coding == 2:
            return ucs2_bytes_to_utf8(self.text[self.skip_bytes:]).decode("utf-8")
        return ""


def _octet(buffer: bytes, index: int) -> int:
    if index >= len(buffer):
        raise PduError("PDU is truncated")
    return buffer[index]


def _swap_nibbles(octet: int) -> int:
    return (octet >> 4) + (octet & 0x0F) * 10


def _decode_timestamp(octets: bytes) -> datetime:
    year, month, day, hour, minute, second = (_swap_nibbles(o) for o in octets[:6])
    year += 2000 + (month - 1) // 12
    month = (month - 1) % 12 + 1
    seconds = calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)


def _decode_alphanumeric_sender(buffer: bytes, length: int) -> str:
    needed = -(-length // 2)
    if len(buffer) < needed:
        raise PduError("PDU is truncated in the sender address")
    septets = unpack_7bit(buffer[:needed], length)
    if septets and septets[-1] == 0:
        septets = septets[:-1]
    return gsm7_to_latin1(septets).decode("latin-1").split("\x00", 1)[0]


def pdu_decode(buffer: bytes) -> DecodedSms:
    """Decode an SMS-DELIVER PDU that starts with its SMSC field."""
    if not buffer:
        raise PduError("empty PDU")
    deliver_start = 1 + buffer[0]
    if deliver_start + 1 > len(buffer):
        raise PduError("PDU is truncated after the service center")

    header_flags = buffer[deliver_start] >> 4
    sender_length = _octet(buffer, deliver_start + 1)
    address_type = _octet(buffer, deliver_start + 2)
    address = buffer[deliver_start + 3:]
    if address_type == TYPE_OF_ADDRESS_ALPHANUMERIC:
        sender = _decode_alphanumeric_sender(address, sender_length)
    else:
        sender = decode_phone_number(address, sender_length)

    pid_start = deliver_start + 3 + (sender_length + 1) // 2
    stamp = buffer[pid_start + 2:pid_start + 8]
    if len(stamp) < 6:
        raise PduError("PDU is truncated in the timestamp")
    timestamp = _decode_timestamp(stamp)

    sms_start = pid_start + 9
    if sms_start + 1 > len(buffer):
        raise PduError("PDU is truncated before the user data")

    skip_bytes = reference = total_parts = part_number = 0
    if header_flags & 0x04:
        skip_bytes = _octet(buffer, sms_start + 1) + 1
        reference = _octet(buffer, sms_start + skip_bytes - 2)
        total_parts = _octet(buffer, sms_start + skip_bytes - 1)
        part_number = _octet(buffer, sms_start + skip_bytes)

    text_length = buffer[sms_start]
    if text_length > SMS_MAX_TEXT_SIZE:
        raise PduError(f"message too long: {text_length}")

    dcs = _octet(buffer, pid_start + 1)
    user_data = buffer[sms_start + 1:]
    if (dcs // 4) % 4 == 0:
        septets = unpack_7bit(user_data, text_length)
        if len(septets) != text_length:
            raise PduError("7-bit user data length does not match")
        text = gsm7_to_latin1(septets)
    else:
        text = bytes(user_data[:text_length])

    return DecodedSms(
        sender=sender,
        timestamp=timestamp,
        text=text,
        dcs=dcs,
        reference=reference,
        total_parts=total_parts,
        part_number=part_number,
        skip_bytes=skip_bytes,
    )