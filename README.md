# smstool

A command-line tool and small library for talking to 3G/4G/5G modems over a
serial line. It sends and receives SMS messages in PDU mode, deletes stored
messages, reports message storage usage, runs USSD codes and passes raw AT
commands through to the modem.

## Installation

```
pip install .
```

The package needs `pyserial` to open the modem's serial device. To run the
tests, install the `test` extra (`pip install .[test]`) and run `pytest`.

## Usage

```
sms_tool [options] send phoneNumber message
sms_tool [options] recv
sms_tool [options] delete msg_index | all
sms_tool [options] status
sms_tool [options] ussd code
sms_tool [options] at command
```

Options:

| Option | Meaning |
| --- | --- |
| `-b <baudrate>` | serial speed: 4800, 9600, 19200, 38400, 57600 or 115200 (default: 115200); 0 keeps the port's default |
| `-c <coding>` | coding scheme for `ussd`: 0 for 7-bit, 2 for UCS2 (default: taken from the reply) |
| `-d <tty device>` | modem device (default: `/dev/ttyUSB0`) |
| `-D` | debug output for `ussd` and `at` |
| `-f <format>` | date/time format for `recv`, in `strftime` form (default: `%D %T`); times are shown in UTC |
| `-j` | JSON output for `recv` |
| `-R` | raw input for `ussd`: pass the code to the modem as given instead of packing it into 7-bit hex |
| `-r` | raw output for `ussd` and `recv`: print the undecoded hex data |
| `-s <storage>` | preferred message storage for `recv` and `status`, such as `SM` or `ME` |

Commands:

- `send` encodes the message as a 7-bit GSM SMS of at most 160 characters
  and submits it with `AT+CMGS`, printing `sms sent sucessfully:` and the
  message reference the modem reports. Characters outside the GSM alphabet
  are sent as `?`.
- `recv` lists every stored message (`AT+CMGL=4`) with its index, sender,
  timestamp and text. Parts of a concatenated message also show their
  reference number and segment position. Messages that cannot be decoded
  are reported on standard error.
- `delete` removes a single message by index, or indexes 0 to 49 with `all`,
  and prints the outcome for each index.
- `status` prints the storage type with its used and total slots.
- `ussd` sends a USSD code such as `*100#` and prints the network's reply,
  decoded from 7-bit or UCS2.
- `at` sends an AT command and prints the modem's response lines; with `-D`
  the final status line is printed too. The exit status is 0 on `OK` and 1
  on `ERROR`, `+CME ERROR` or `COMMAND NOT SUPPORT`.

Modem errors are printed on standard error with exit status 1. If the modem
does not answer in time (5 seconds for `send` and `at`, 10 seconds for the
others), the tool reports "No response from modem." and exits with status 2.

Examples:

```
sms_tool -d /dev/ttyUSB2 recv
sms_tool -j -s SM recv
sms_tool status
sms_tool ussd '*100#'
sms_tool at 'AT+CSQ'
sms_tool delete all
```

## Decoding a PDU by hand

`pdu_decoder` reads one hex-encoded SMS-DELIVER PDU, as printed by a modem
after `AT+CMGL`, from the first line of standard input and prints the sender,
text length, date and time (in local time), segment details if any, and the
decoded text. A PDU that cannot be decoded is reported on standard error with
exit status 1.

```
echo "<hex pdu>" | pdu_decoder
```

## Library use

`smstool.pdu` encodes and decodes PDUs without a modem:

```python
from smstool.pdu import pdu_encode, pdu_decode

pdu = pdu_encode("", "12345", "hello")
sms = pdu_decode(received_bytes)
print(sms.sender, sms.timestamp, sms.message_text())
```

`pdu_encode` and `pdu_decode` raise `PduError` when a message cannot be
encoded or a PDU is malformed. `pdu_decode` returns a `DecodedSms` with the
sender, a UTC `timestamp`, the data coding scheme and the concatenation
details (`reference`, `part_number`, `total_parts`). The module also offers
the building blocks `pack_7bit`, `unpack_7bit`, `gsm7_to_latin1`,
`latin1_to_gsm7`, `encode_phone_number` and `decode_phone_number`.

`smstool.modem.Modem` runs the same conversations over any binary stream,
for example a port opened with `open_serial(device, baudrate)`. Its methods
`send_sms`, `list_messages`, `delete_messages`, `storage_status`, `ussd` and
`at_command` return results and raise `ModemError` (or `NoResponseError` on a
timeout) instead of printing. `decode_ussd`, `encode_ussd` and `ussd_coding`
handle USSD payloads on their own.

`smstool.ucs2` converts UCS-2 code units to UTF-8 with `ucs2_to_utf8` and
`ucs2_bytes_to_utf8`.

## Limitations

- Messages are sent in the 7-bit GSM alphabet only, as a single SMS of up to
  160 characters; UCS2 and multipart sending are not supported.
- `recv` shows each part of a concatenated message separately; parts are not
  joined.
- Received messages in 8-bit data coding are listed with empty text.