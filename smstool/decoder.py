"""Decode one hex-encoded SMS-DELIVER PDU read from standard input."""

from __future__ import annotations

import sys

from .pdu import PduError, pdu_decode


def parse_hex_line(line: str) -> bytes:
    """Turn a line of hex digit pairs into bytes.

    Reading stops at the end of the line; a lone trailing digit is dropped.
    """
    digits = line.split("\n", 1)[0].strip()
    if len(digits) % 2:
        digits = digits[:-1]
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise PduError(f"invalid hex data: {exc}") from exc


def describe_pdu(hex_line: str) -> str:
    """Return a readable description of a hex-encoded PDU."""
    sms = pdu_decode(parse_hex_line(hex_line))
    local_time = sms.timestamp.astimezone()
    lines = [
        f"From:{sms.sender}",
        f"Textlen={len(sms.text)}",
        f"Date/Time:{local_time.strftime('%D %T')}",
    ]
    if sms.total_parts > 0:
        lines.append(f"Reference number: {sms.reference}")
        lines.append(f"SMS segment {sms.part_number} of {sms.total_parts}")
    lines.append(sms.message_text())
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    """Read a PDU from standard input and print its description."""
    line = sys.stdin.readline()
    try:
        sys.stdout.write(describe_pdu(line))
    except PduError as exc:
        print(f"error decoding pdu: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())