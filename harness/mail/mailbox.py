"""The mailboxes an e-mail can live in."""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class Mailbox(IntEnum):
    INVALID = 0
    DRAFT = 1
    INBOX = 2
    OUTBOX = 3
    ARCHIVE = 4
    SENT = 5

    def __str__(self) -> str:
        return _LABELS[self]

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


_LABELS = {
    Mailbox.INVALID: "Ungültig",
    Mailbox.DRAFT: "Draft",
    Mailbox.INBOX: "Inbox",
    Mailbox.OUTBOX: "Outbox",
    Mailbox.ARCHIVE: "Archive",
    Mailbox.SENT: "Sent",
}

_BY_NAME: dict[str, Mailbox] = {}
for _mailbox, _label in _LABELS.items():
    _BY_NAME[_label] = _mailbox
    _BY_NAME[_label.lower()] = _mailbox


def parse_mailbox(text: str) -> Mailbox:
    """Look up a mailbox by its name, case-insensitively."""
    found = _BY_NAME.get(text)
    if found is None:
        found = _BY_NAME.get(text.lower())
    if found is None:
        raise ValueError(f"{text} does not belong to Mailbox values")
    return found


def mailbox_strings() -> list[str]:
    """All mailbox names in declaration order."""
    return [str(mailbox) for mailbox in Mailbox]


def mailbox_json_schema() -> dict[str, Any]:
    """A JSON schema describing a mailbox as one of its names."""
    return {"type": "string", "enum": mailbox_strings()}