import io

import pytest

from smstool.modem import (
    ListedMessage,
    Modem,
    ModemError,
    StorageStatus,
    decode_ussd,
    encode_ussd,
    json_escape_text,
    ussd_coding,
)
from smstool.pdu import pack_7bit


class FakePort:
    def __init__(self, reply: str):
        self._reply = io.BytesIO(reply.encode("latin-1"))
        self.written = bytearray()

    def readline(self):
        return self._reply.readline()

    def write(self, data):
        self.written += data

    def flush(self):
        pass


def make_modem(reply: str):
    port = FakePort(reply)
    modem = Modem(port, 5.0)
    modem.prompt_delay = 0
    return modem, port


def deliver_hex(text: bytes) -> str:
    header = bytes([0x00, 0x04, 0x04, 0x81, 0x21, 0x43, 0x00, 0x00,
                    0x42, 0x10, 0x51, 0x21, 0x43, 0x65, 0x00, len(text)])
    return (header + pack_7bit(text)).hex().upper()


def test_ussd_coding_groups():
    assert ussd_coding(0x0F) == 0
    assert ussd_coding(0x11) == 2
    assert ussd_coding(0x48) == 2
    assert ussd_coding(0xF0) is None


def test_ussd_round_trip_7bit():
    assert decode_ussd(encode_ussd("*100#"), 0x0F) == "*100#"


def test_encode_ussd_replaces_trailing_zero():
    assert encode_ussd("")[-2:] == "1D"


def test_decode_ussd_ucs2():
    assert decode_ussd("00480069", 0x48) == "Hi"


def test_decode_ussd_forced_coding():
    assert decode_ussd("00480069", 0x0F, 2) == "Hi"


def test_decode_ussd_unknown_coding():
    with pytest.raises(ModemError):
        decode_ussd("00", 0xF0)


def test_json_escape_text():
    assert json_escape_text('a"/\n\x01') == 'a\\"\\/\\n\\u0001'
    assert json_escape_text("\u4f60") == "\\u4f60"


def test_send_sms_returns_reference():
    modem, port = make_modem("OK\r\n> \r\n+CMGS: 7\r\nOK\r\n")
    assert modem.send_sms("12345", "hi") == "7"
    assert bytes(port.written).startswith(b"AT+CMGF=0\r\nAT+CMGS=")
    assert bytes(port.written).endswith(b"\x1a\r\n")


def test_send_sms_error():
    modem, _ = make_modem("OK\r\n+CMS ERROR: 500\r\n")
    with pytest.raises(ModemError, match="500"):
        modem.send_sms("12345", "hi")


def test_list_messages_decodes():
    pdu = deliver_hex(b"hello")
    modem, port = make_modem(f"OK\r\n+CMGL: 3,1,,20\r\n{pdu}\r\nOK\r\n")
    messages = modem.list_messages("SM")
    assert len(messages) == 1
    assert messages[0].index == 3
    assert messages[0].pdu == pdu
    assert messages[0].sms.message_text() == "hello"
    assert b'AT+CPMS="SM"\r\n' in bytes(port.written)


def test_list_messages_bad_pdu():
    modem, _ = make_modem("OK\r\n+CMGL: 1,1,,2\r\nXYZ\r\nOK\r\n")
    assert modem.list_messages() == [ListedMessage(1, "XYZ", None)]


def test_delete_messages():
    modem, port = make_modem("OK\r\n+CMS ERROR: 321\r\n")
    assert modem.delete_messages(1, 2) == [(1, None), (2, "321")]
    assert bytes(port.written) == b"AT+CMGD=1\r\nAT+CMGD=2\r\n"


def test_storage_status():
    modem, _ = make_modem('+CPMS: "SM",3,50,"SM",3,50\r\nOK\r\n')
    assert modem.storage_status() == StorageStatus("SM", 3, 50)


def test_storage_status_unparsable():
    modem, _ = make_modem("+CPMS: junk\r\n")
    with pytest.raises(ModemError):
        modem.storage_status()


def test_ussd_raw_output():
    modem, port = make_modem('OK\r\n+CUSD: 0,"Balance 5",15\r\n')
    assert modem.ussd("*100#", raw_input=True, raw_output=True) == "Balance 5"
    assert bytes(port.written) == b'AT+CUSD=1,"*100#",15\r\n'


def test_ussd_decoded():
    modem, _ = make_modem(f'+CUSD: 0,"{encode_ussd("abc")}",15\r\n')
    assert modem.ussd("*1#") == "abc"


def test_ussd_multiline_raw():
    modem, _ = make_modem('+CUSD: 0,"first\r\nsecond",15\r\n')
    assert modem.ussd("*1#", raw_output=True) == "first\nsecond"


def test_ussd_error():
    modem, _ = make_modem("+CME ERROR: 100\r\n")
    with pytest.raises(ModemError):
        modem.ussd("*1#")


def test_at_command():
    modem, _ = make_modem("+CSQ: 20,99\r\nOK\r\n")
    ok, lines, status = modem.at_command("AT+CSQ")
    assert ok is True
    assert lines == ["+CSQ: 20,99\r\n"]
    assert status == "OK\r\n"


def test_at_command_failure():
    modem, _ = make_modem("ERROR\r\n")
    assert modem.at_command("AT+X")[0] is False