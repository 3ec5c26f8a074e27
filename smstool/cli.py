"""Command line front end for the modem tool."""

from __future__ import annotations

import argparse
import re
import sys

from .modem import (
    ListedMessage,
    Modem,
    ModemError,
    NoResponseError,
    json_escape_text,
    open_serial,
)

COMMANDS = ("send", "recv", "delete", "status", "ussd", "at")
_MIN_ARGS = {"send": 2, "delete": 1, "ussd": 1, "at": 1}


def _atoi(text: str) -> int:
    match = re.match(r"\s*([-+]?\d+)", text)
    return int(match.group(1)) if match else 0


def format_message_plain(message: ListedMessage, dateformat: str, raw_output: bool) -> str:
    """Render one listed message as text."""
    out = [f"MSG: {message.index}\n"]
    if raw_output:
        out.append(f"{message.pdu}\n")
        return "".join(out)
    sms = message.sms
    if sms is None:
        return "".join(out)
    out.append(f"From: {sms.sender}\n")
    out.append(f"Date/Time: {sms.timestamp.strftime(dateformat)}\n")
    if sms.total_parts > 0:
        out.append(f"Reference number: {sms.reference}\n")
        out.append(f"SMS segment {sms.part_number} of {sms.total_parts}\n")
    out.append(sms.message_text())
    out.append("\n\n")
    return "".join(out)


def _message_json(message: ListedMessage, dateformat: str, raw_output: bool) -> str:
    head = f'{{"index":{message.index},'
    if raw_output:
        return head + f'"content":"{json_escape_text(message.pdu)}"}}'
    sms = message.sms
    if sms is None:
        return head + (
            '"error":"error decoding pdu","sender":"","timestamp":"","content":""}'
        )
    body = [
        f'"sender":"{json_escape_text(sms.sender)}",',
        f'"timestamp":"{json_escape_text(sms.timestamp.strftime(dateformat))}",',
    ]
    if sms.total_parts > 0:
        body.append(
            f'"reference":{sms.reference},"part":{sms.part_number},'
            f'"total":{sms.total_parts},'
        )
    body.append(f'"content":"{json_escape_text(sms.message_text())}"}}')
    return head + "".join(body)


def format_messages_json(messages, dateformat: str, raw_output: bool) -> str:
    """Render listed messages as one JSON document."""
    items = ",".join(_message_json(m, dateformat, raw_output) for m in messages)
    return f'{{"msg":[{items}]}}\n'


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the command."""
    parser = argparse.ArgumentParser(
        prog="sms_tool",
        description="send, receive and delete SMS, run USSD and AT commands",
    )
    parser.add_argument("-b", dest="baudrate", type=_atoi, default=115200,
                        help="baudrate (default: 115200)")
    parser.add_argument("-c", dest="coding", type=_atoi, default=None,
                        help="coding scheme for ussd, 0 - 7BIT, 2 - UCS2")
    parser.add_argument("-d", dest="device", default="/dev/ttyUSB0",
                        help="tty device (default: /dev/ttyUSB0)")
    parser.add_argument("-D", dest="debug", action="store_true",
                        help="debug (for ussd and at)")
    parser.add_argument("-f", dest="dateformat", default="%D %T",
                        help="date/time format (for recv)")
    parser.add_argument("-j", dest="json", action="store_true",
                        help="json output (for recv)")
    parser.add_argument("-R", dest="raw_input", action="store_true",
                        help="use raw input (for ussd)")
    parser.add_argument("-r", dest="raw_output", action="store_true",
                        help="use raw output (for ussd and recv)")
    parser.add_argument("-s", dest="storage", default="",
                        help="preferred storage (for recv/status)")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("args", nargs="*")
    return parser


def _run(options, port) -> int:
    command, args = options.command, options.args
    timeouts = {"send": 5.0, "at": 5.0}
    modem = Modem(port, timeouts.get(command, 10.0))

    if command == "send":
        reference = modem.send_sms(args[0], args[1])
        if reference is not None:
            print(f"sms sent sucessfully: {reference}")
    elif command == "recv":
        messages = modem.list_messages(options.storage)
        for message in messages:
            if message.sms is None and not options.raw_output:
                print(f"error decoding pdu {message.index}: {message.pdu}", file=sys.stderr)
        if options.json:
            sys.stdout.write(format_messages_json(messages, options.dateformat, options.raw_output))
        else:
            for message in messages:
                sys.stdout.write(
                    format_message_plain(message, options.dateformat, options.raw_output)
                )
    elif command == "delete":
        if args[0] == "all":
            first, last = 0, 49
        else:
            first = last = _atoi(args[0])
        print(f"delete msg from {first} to {last}")
        for index, error in modem.delete_messages(first, last):
            if error is None:
                print(f"Deleted message {index}")
            else:
                print(f"Error deleting message {index}: {error}")
    elif command == "status":
        status = modem.storage_status(options.storage)
        if status is not None:
            print(f"Storage type: {status.memory}, used: {status.used}, total: {status.total}")
    elif command == "ussd":
        print(modem.ussd(args[0], options.raw_input, options.raw_output,
                         options.coding, options.debug))
    else:
        ok, lines, final = modem.at_command(args[0])
        sys.stdout.write("".join(lines))
        if options.debug and final:
            sys.stdout.write(final)
        return 0 if ok else 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool."""
    parser = build_parser()
    options = parser.parse_args(argv)
    needed = _MIN_ARGS.get(options.command, 0)
    if len(options.args) < needed:
        parser.error(f"{options.command} needs {needed} argument(s)")
    if options.command == "send" and len(options.args[1]) > 160:
        print(f"sms message too long: '{options.args[1]}'", file=sys.stderr)
    try:
        with open_serial(options.device, options.baudrate) as port:
            return _run(options, port)
    except NoResponseError as exc:
        print(exc, file=sys.stderr)
        return 2
    except ModemError as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())