"""E-mails kept in mailboxes, and the repository that stores them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Protocol

from harness.mail.mailbox import Mailbox

_ADDRESS = re.compile(
    r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*"
)


class ValidationError(ValueError):
    """Raised when e-mail data misses required fields or holds bad addresses."""


def _is_address(text: str) -> bool:
    return bool(_ADDRESS.fullmatch(text))


def _field_problems(
    email_id: str,
    sender: str,
    to: Optional[Iterable[str]],
    created_at: Optional[datetime],
) -> list[str]:
    problems = []
    if not email_id:
        problems.append("id is required")
    if not sender:
        problems.append("from is required")
    elif not _is_address(sender):
        problems.append(f"from is not a valid e-mail address: {sender!r}")
    if to is None:
        problems.append("to is required")
    else:
        problems.extend(
            f"to holds an invalid e-mail address: {address!r}"
            for address in to
            if not _is_address(address)
        )
    if created_at is None:
        problems.append("created_at is required")
    return problems


def _raise_for(problems: list[str]) -> None:
    if problems:
        raise ValidationError("; ".join(problems))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Header:
    name: str
    value: str


@dataclass
class Email:
    """An e-mail in a mailbox; ``events`` collects what happened to it."""

    id: str
    mailbox: Mailbox
    sender: str
    to: list[str]
    created_at: datetime
    subject: str = ""
    body: str = ""
    html_body: str = ""
    headers: list[Header] = field(default_factory=list)
    read_at: Optional[datetime] = None
    events: list[Any] = field(default_factory=list, repr=False, compare=False)

    def mark_as_read(self) -> None:
        """Record the read time once; later calls keep the first time."""
        if self.read_at is None:
            self.read_at = _now()

    def move(self, mailbox: Mailbox) -> None:
        self.mailbox = mailbox
        self.events.append(
            MovedEvent(
                email_id=self.id,
                mailbox=mailbox,
                to=self.to,
                sender=self.sender,
                subject=self.subject,
                body=self.body,
                html_body=self.html_body,
                headers=self.headers,
            )
        )


@dataclass
class NewEmail:
    """Data for a new e-mail, validated when turned into an Email."""

    id: str
    mailbox: Mailbox
    sender: str
    to: Optional[list[str]]
    created_at: Optional[datetime] = None
    subject: str = ""
    body: str = ""
    html_body: str = ""
    headers: list[Header] = field(default_factory=list)

    def to_email(self) -> Email:
        problems = _field_problems(self.id, self.sender, self.to, self.created_at)
        if not self.mailbox:
            problems.append("mailbox is required")
        _raise_for(problems)
        assert self.to is not None and self.created_at is not None
        return Email(
            id=self.id,
            mailbox=self.mailbox,
            sender=self.sender,
            to=list(self.to),
            created_at=self.created_at,
            subject=self.subject,
            body=self.body,
            html_body=self.html_body,
            headers=list(self.headers),
        )


@dataclass
class MovedEvent:
    email_id: str
    mailbox: Mailbox
    to: list[str]
    sender: str
    subject: str
    body: str
    html_body: str
    headers: list[Header]


@dataclass
class CreatedEvent:
    email: NewEmail


def create_email(draft: NewEmail) -> Email:
    """Validate a new e-mail and record its creation as an event."""
    email = draft.to_email()
    email.events.append(CreatedEvent(email=draft))
    return email


class EmailRepository(Protocol):
    def create(self, email: Email) -> None: ...

    def get(self, email_id: str) -> Email: ...

    def update(self, email_id: str, fn: Callable[[Email], None]) -> None: ...