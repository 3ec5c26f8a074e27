"""Talking to a modem over its AT command port."""

from __future__ import annotations

import re
import sys
import time
from dataclasses import dataclass
from typing import BinaryIO

import serial

from .pdu import DecodedSms, PduError, pack_7bit, pdu_decode, pdu_encode, unpack_7bit
from .ucs2 import ucs2_bytes_to_utf8

SUPPORTED_BAUDRATES = (0, 4800, 9600, 19200, 38400, 57600, 115200)

CHARSET_7BIT = 0
CHARSET_8BIT = 1
CHARSET_UCS2 = 2


class ModemError(RuntimeError):
    """Raised when the modem reports an error or answers unexpectedly."""


class NoResponseError(ModemError):
    """Raised when the modem does not answer in time."""


@dataclass(frozen=True)
class StorageStatus:
    """Usage of the preferred message storage."""

    memory: str
    used: int
    total: int


@dataclass(frozen=True)
class ListedMessage:
    """A message listed by the modem; ``sms`` is None if it did not decode."""

    index: int
    pdu: str
    sms: DecodedSms | None


def open_serial(device: str, baudrate: int) -> serial.Serial:
    """Open a serial port in raw 8N1 mode without flow control."""
    if baudrate not in SUPPORTED_BAUDRATES:
        raise ModemError(f"Unsupported baudrate: {baudrate}")
    port = serial.Serial(
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        rtscts=False,
        timeout=1.0,
    )
    if baudrate:
        port.baudrate = baudrate
    port.port = device
    try:
        port.open()
    except serial.SerialException as exc:
        raise ModemError(f"open({device}): {exc}") from exc
    return port


def ussd_coding(dcs: int) -> int | None:
    """Return the character set of a USSD data coding scheme, or None."""
    upper = (dcs & 0xF0) >> 4
    lower = dcs & 0x0F
    alphabet = (dcs & 0x0C) >> 2
    if upper == 0:
        return CHARSET_7BIT
    if upper == 1:
        return {0: CHARSET_7BIT, 1: CHARSET_UCS2}.get(lower)
    if upper == 2:
        return CHARSET_7BIT if lower <= 4 else None
    if upper in (4, 5, 6, 7, 9):
        return alphabet if alphabet < 3 else None
    return None


def _hex_to_bytes(hex_text: str) -> bytes:
    digits = hex_text.strip()
    if len(digits) % 2:
        digits = digits[:-1]
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise ModemError(f"error decoding pdu: {hex_text}") from exc


def decode_ussd(hex_text: str, dcs: int, forced_coding: int | None = None) -> str:
    """Decode the hex payload of a +CUSD answer."""
    data = _hex_to_bytes(hex_text)
    coding = ussd_coding(dcs)
    if forced_coding in (CHARSET_7BIT, CHARSET_UCS2):
        coding = forced_coding
    if coding == CHARSET_7BIT:
        raw = unpack_7bit(data, 800)
        text = raw.decode("latin-1").split("\x00", 1)[0]
    elif coding == CHARSET_UCS2:
        raw = ucs2_bytes_to_utf8(data)
        text = raw.decode("utf-8", errors="replace").split("\x00", 1)[0]
    else:
        raise ModemError(f"unknown coding scheme: {dcs}")
    if not raw:
        raise ModemError(f"error decoding pdu: {hex_text}")
    return text


def encode_ussd(code: str) -> str:
    """Pack a USSD code into 7-bit hex as sent with AT+CUSD."""
    packed = bytearray(pack_7bit(code.encode("utf-8")))
    if packed[-1] == 0:
        packed[-1] = 0x1D
    return packed.hex().upper()


_JSON_ESCAPES = {
    '"': '\\"', "\\": "\\\\", "\b": "\\b", "\n": "\\n",
    "\f": "\\f", "\r": "\\r", "\t": "\\t", "/": "\\/",
}


def json_escape_text(text: str) -> str:
    """Escape text for a JSON string the way the message listing does."""
    parts = []
    for ch in text:
        code = ord(ch)
        if code > 0xFF:
            parts.append(f"\\u{code:04x}")
        elif ch in _JSON_ESCAPES:
            parts.append(_JSON_ESCAPES[ch])
        elif code < 0x20:
            parts.append(f"\\u00{code:02x}")
        else:
            parts.append(ch)
    return "".join(parts)


_CMGL = re.compile(r"\+CMGL:\s*([-+]?\d+)")
_CPMS = re.compile(r'\+CPMS:\s*"(\S{1,2})",\s*([-+]?\d+),\s*([-+]?\d+),')
_CUSD_FULL = re.compile(r'\+CUSD:([^"]{1,7})"([^"]+)",\s*([-+]?\d+)')
_CUSD_OPEN = re.compile(r'\+CUSD:([^"]{1,7})"([^"]+)')
_CONT_FULL = re.compile(r'([^"]+)",\s*([-+]?\d+)')
_CONT_OPEN = re.compile(r'([^"]+)')


class Modem:
    """AT command conversation over a byte stream."""

    prompt_delay = 1.0

    def __init__(self, stream: BinaryIO, timeout: float = 10.0) -> None:
        self._stream = stream
        self.timeout = timeout
        self._waits = isinstance(stream, serial.Serial)
        self._deadline = time.monotonic() + timeout

    def _restart_clock(self) -> None:
        self._deadline = time.monotonic() + self.timeout

    def _write(self, text: str) -> None:
        self._stream.write(text.encode("latin-1"))
        self._stream.flush()

    def _readline(self) -> str | None:
        chunk = bytearray()
        while True:
            if time.monotonic() > self._deadline:
                raise NoResponseError("No response from modem.")
            data = self._stream.readline()
            if data:
                chunk += data
                if chunk.endswith(b"\n"):
                    return chunk.decode("latin-1")
                if not self._waits:
                    return chunk.decode("latin-1")
            elif not self._waits:
                return chunk.decode("latin-1") if chunk else None

    def _lines(self):
        while (line := self._readline()) is not None:
            yield line

    def _wait_ok(self) -> None:
        for line in self._lines():
            if line.startswith("OK"):
                return

    def _select_storage(self, storage: str | None) -> None:
        if storage:
            self._write(f'AT+CPMS="{storage}"\r\n')
            self._wait_ok()

    def send_sms(self, number: str, text: str) -> str | None:
        """Send a text message; return the reference the modem reports."""
        try:
            pdu = pdu_encode("", number, text)
        except PduError as exc:
            raise ModemError(f'error encoding to PDU: {number} "{text}') from exc
        self._restart_clock()
        self._write("AT+CMGF=0\r\n")
        self._wait_ok()
        self._write(f"AT+CMGS={len(pdu) - 1 - pdu[0]}\r\n")
        time.sleep(self.prompt_delay)
        self._write(pdu.hex().upper() + "\x1a\r\n")
        self._restart_clock()
        for line in self._lines():
            if line.startswith("+CMGS:"):
                return line[7:].strip()
            if line.startswith("+CMS ERROR:"):
                raise ModemError(f"sms not sent, code: {line[11:].strip()}")
            if line.startswith("ERROR"):
                raise ModemError("sms not sent, command error")
            if line.startswith("OK"):
                return None
        raise ModemError("reading port")

    def list_messages(self, storage: str | None = None) -> list[ListedMessage]:
        """List all stored messages in PDU mode."""
        self._restart_clock()
        self._select_storage(storage)
        self._write("AT+CMGF=0\r\n")
        self._wait_ok()
        self._write("AT+CMGL=4\r\n")
        messages = []
        for line in self._lines():
            if line.startswith("OK"):
                break
            if not line.startswith("+CMGL:"):
                continue
            match = _CMGL.match(line)
            if match is None:
                print(f"unparsable CMGL response: {line[7:]}", file=sys.stderr, end="")
                continue
            pdu_line = (self._readline() or "").strip()
            try:
                sms = pdu_decode(bytes.fromhex(pdu_line))
            except (PduError, ValueError):
                sms = None
            messages.append(ListedMessage(int(match.group(1)), pdu_line, sms))
        return messages

    def delete_messages(self, first: int, last: int) -> list[tuple[int, str | None]]:
        """Delete messages ``first`` to ``last``; pair each index with its error."""
        results = []
        for index in range(first, last + 1):
            self._restart_clock()
            self._write(f"AT+CMGD={index}\r\n")
            for line in self._lines():
                if line.startswith("OK"):
                    results.append((index, None))
                    break
                if line.startswith("+CMS ERROR:"):
                    results.append((index, line[12:].strip()))
                    break
        return results

    def storage_status(self, storage: str | None = None) -> StorageStatus | None:
        """Return usage of the first message storage."""
        self._restart_clock()
        self._select_storage(storage)
        self._write("AT+CPMS?\r\n")
        for line in self._lines():
            if line.startswith("+CPMS:"):
                match = _CPMS.match(line)
                if match is None:
                    raise ModemError(f"unparsable CPMS response: {line.strip()}")
                return StorageStatus(match.group(1), int(match.group(2)), int(match.group(3)))
            if line.startswith("OK"):
                break
        return None

    def ussd(
        self,
        code: str,
        raw_input: bool = False,
        raw_output: bool = False,
        forced_coding: int | None = None,
        debug: bool = False,
    ) -> str:
        """Run a USSD code and return the network's answer."""
        payload = code if raw_input else encode_ussd(code)
        command = f'AT+CUSD=1,"{payload}",15\r\n'
        if debug:
            print(f"debug: {command}")
        self._restart_clock()
        self._write(command)
        pieces: list[str] = []
        multiline = False
        for line in self._lines():
            if line.startswith("OK"):
                continue
            if line.startswith("+CME ERROR:"):
                raise ModemError(f"error: {line[12:].strip()}")
            if line.startswith("+CUSD:"):
                if debug:
                    print(f"debug: {line}")
                full = _CUSD_FULL.match(line)
                if full is None:
                    partial = _CUSD_OPEN.match(line)
                    if partial is None or not raw_output:
                        raise ModemError(f"unparsable CUSD response: {line.strip()}")
                    pieces.append(partial.group(2).rstrip("\r\n"))
                    multiline = True
                    continue
                if raw_output:
                    return full.group(2)
                return decode_ussd(full.group(2), int(full.group(3)), forced_coding)
            if multiline:
                ending = _CONT_FULL.match(line)
                if ending is not None:
                    pieces.append(ending.group(1))
                    return "\n".join(pieces)
                more = _CONT_OPEN.match(line)
                if more is not None:
                    pieces.append(more.group(1).rstrip("\r\n"))
        if pieces:
            return "\n".join(pieces)
        raise ModemError("no USSD response")

    def at_command(self, command: str) -> tuple[bool, list[str], str]:
        """Send a raw AT command.

        Return whether it succeeded, the lines it printed and the final
        status line.
        """
        self._restart_clock()
        self._write(command + "\r\n")
        output = []
        for line in self._lines():
            if line.startswith("OK"):
                return True, output, line
            if line.startswith(("ERROR", "COMMAND NOT SUPPORT", "+CME ERROR")):
                return False, output, line
            output.append(line)
        return True, output, ""