"""Command-line interface for drafting, listing, reading, moving and sending e-mails."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from harness.common.events import Bus
from harness.mail.app import Application
from harness.mail.commands import ConfigureQueue, Draft, MarkRead, Move
from harness.mail.mailbox import Mailbox, parse_mailbox
from harness.mail.queries import Mail, MailListReadModel, MailReadModel, Mails

_log = logging.getLogger(__name__)


class CliError(Exception):
    """Raised for bad command lines and unreadable input files."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise CliError(message)


def _split(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _timestamp(moment: datetime, fraction: bool = True) -> str:
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if fraction and moment.microsecond:
        text += f".{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if offset is None or offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset >= timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_rfc3339(text: str) -> Optional[datetime]:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        moment = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    return moment if moment.tzinfo is not None else None


def _write_json(out: TextIO, value: Any, sort_keys: bool = False) -> None:
    out.write(json.dumps(value, indent=2, ensure_ascii=False, sort_keys=sort_keys))
    out.write("\n")


def _list_entry(mail: MailListReadModel) -> dict[str, Any]:
    return {
        "ID": mail.id,
        "ReceivedAt": _timestamp(mail.received_at),
        "From": mail.sender,
        "Subject": mail.subject,
        "To": list(mail.to),
    }


def _mail_document(mail: MailReadModel) -> dict[str, Any]:
    return {
        "Subject": mail.subject,
        "From": mail.sender,
        "To": list(mail.to),
        "Body": mail.body,
        "HtmlBody": mail.html_body,
        "Headers": [{"Name": h.name, "Value": h.value} for h in mail.headers],
        "SentAt": mail.sent_at,
        "ReadAt": mail.read_at,
    }


def _mailbox(text: str) -> Mailbox:
    try:
        return parse_mailbox(text)
    except ValueError as exc:
        raise CliError(f"invalid mailbox {_quote(text)}: {exc}") from None


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every e-mail command."""
    shared = _Parser(add_help=False)
    shared.add_argument(
        "--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON"
    )

    parser = _Parser(
        prog="email", description="A CLI for managing emails", parents=[shared]
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    draft = commands.add_parser("draft", help="Create an email draft", parents=[shared])
    draft.add_argument("--id", required=True, help="email id (required)")
    draft.add_argument(
        "--from", dest="sender", required=True, help="Sender email address (required)"
    )
    draft.add_argument(
        "--to",
        action="extend",
        type=_split,
        required=True,
        help="Recipient email addresses (required, comma-separated)",
    )
    draft.add_argument("--subject", default="", help="Email subject")
    body = draft.add_mutually_exclusive_group(required=True)
    body.add_argument("--body", help="Email body text")
    body.add_argument("--body-file", help="Read email body from file")
    draft.add_argument("--reply-to", default="", help="Reply-To address")
    draft.add_argument("--replying-to", default="", help="Email ID being replied to")

    listing = commands.add_parser(
        "list", help="List emails in a mailbox", parents=[shared]
    )
    listing.add_argument("--mailbox", required=True, help="Mailbox to list (required)")
    listing.add_argument(
        "--unread", action="store_true", default=None, help="Filter to unread emails only"
    )
    listing.add_argument(
        "--limit", type=int, default=0, help="Max emails to return (0 = all)"
    )

    move = commands.add_parser(
        "move", help="Move an email to a different mailbox", parents=[shared]
    )
    move.add_argument("--id", required=True, help="Email ID to move (required)")
    move.add_argument("--to", required=True, help="Destination mailbox (required)")

    queue = commands.add_parser("queue", help="Manage email queues", parents=[shared])
    queue_commands = queue.add_subparsers(dest="queue_command", metavar="COMMAND")
    config = queue_commands.add_parser(
        "config", help="Configure queue allow-lists for a mailbox", parents=[shared]
    )
    config.add_argument(
        "--mailbox", required=True, help="Mailbox to configure (Inbox or Outbox)"
    )
    config.add_argument(
        "--allowed-recipients",
        action="extend",
        type=_split,
        default=[],
        help="Allowed recipient email addresses (comma-separated)",
    )
    config.add_argument("--allowed-from", help="Allowed sender email address")

    read = commands.add_parser("read", help="Read a single email", parents=[shared])
    read.add_argument("--id", required=True, help="Email ID (required)")

    send = commands.add_parser("send", help="Send an existing draft", parents=[shared])
    send.add_argument("--id", required=True, help="Draft email ID to send (required)")

    return parser


def _draft(application: Application, args: argparse.Namespace, out: TextIO) -> None:
    body = args.body or ""
    if args.body_file is not None:
        try:
            body = Path(args.body_file).read_text()
        except OSError as exc:
            raise CliError(f"reading body file: {exc}") from exc

    application.commands.draft(
        Draft(
            email_id=args.id,
            sender=args.sender,
            to=args.to,
            subject=args.subject,
            body=body,
            reply_to=args.reply_to or None,
            replying_to_email_id=args.replying_to or None,
        )
    )

    if args.json:
        _write_json(out, {"status": "drafted"}, sort_keys=True)
    else:
        out.write("Draft created.\n")


def _list(application: Application, args: argparse.Namespace, out: TextIO) -> None:
    mailbox = _mailbox(args.mailbox)
    mails = application.queries.mails(
        Mails(mailbox=mailbox, filter_unread=args.unread, limit=args.limit)
    )

    if args.json:
        _write_json(out, [_list_entry(m) for m in mails])
        return

    for mail in mails:
        out.write(
            f"[{mail.id}] {mail.subject}  From: {mail.sender}  To: {', '.join(mail.to)}\n"
        )


def _move(application: Application, args: argparse.Namespace, out: TextIO) -> None:
    mailbox = _mailbox(args.to)
    application.commands.move(Move(mail_id=args.id, to=mailbox))

    if args.json:
        _write_json(out, {"id": args.id, "movedTo": args.to}, sort_keys=True)
    else:
        out.write(f"Email {_quote(args.id)} moved to {_quote(args.to)}.\n")


def _queue_config(
    application: Application, args: argparse.Namespace, out: TextIO
) -> None:
    mailbox = _mailbox(args.mailbox)
    application.commands.configure_queue(
        ConfigureQueue(
            mailbox=mailbox,
            allowed_recipients=list(args.allowed_recipients),
            allowed_from=args.allowed_from,
        )
    )

    if args.json:
        _write_json(out, {"status": "configured"}, sort_keys=True)
    else:
        out.write("Queue configured.\n")


def _read(application: Application, args: argparse.Namespace, out: TextIO) -> None:
    mail = application.queries.mail(Mail(id=args.id))

    status = "unread"
    if mail.read_at is not None:
        moment = _parse_rfc3339(mail.read_at)
        shown = _timestamp(moment, fraction=False) if moment is not None else mail.read_at
        status = f"read at {shown}"

    try:
        application.commands.mark_read(MarkRead(mail_id=args.id))
    except Exception as exc:
        _log.warning(
            "Failed to mark email as read", extra={"mail_id": args.id, "error": str(exc)}
        )

    if args.json:
        _write_json(out, _mail_document(mail))
        return

    out.write(
        f"Subject: {mail.subject}\nFrom: {mail.sender}\nTo: {', '.join(mail.to)}\n"
        f"Sent: {mail.sent_at}\nStatus: {status}\n"
    )
    for header in mail.headers:
        out.write(f"{header.name}: {header.value}\n")
    out.write(f"\n{mail.body or mail.html_body}\n")


def _send(
    application: Application, bus: Bus, args: argparse.Namespace, out: TextIO
) -> None:
    application.commands.move(Move(mail_id=args.id, to=Mailbox.OUTBOX))
    bus.drain()

    if args.json:
        _write_json(out, {"id": args.id, "status": "sent"}, sort_keys=True)
    else:
        out.write(f"Email {_quote(args.id)} sent.\n")


def run(
    application: Application, bus: Bus, argv: Sequence[str], out: TextIO
) -> None:
    """Parse ``argv`` and run the chosen command, writing its output to ``out``."""
    parser = create_parser()
    args = parser.parse_args(list(argv))
    args.json = getattr(args, "json", False)

    if args.command is None:
        out.write(parser.format_help())
    elif args.command == "draft":
        _draft(application, args, out)
    elif args.command == "list":
        _list(application, args, out)
    elif args.command == "move":
        _move(application, args, out)
    elif args.command == "queue":
        if args.queue_command is None:
            out.write(parser.format_help())
        else:
            _queue_config(application, args, out)
    elif args.command == "read":
        _read(application, args, out)
    elif args.command == "send":
        _send(application, bus, args, out)