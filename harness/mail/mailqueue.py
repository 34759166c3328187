"""Delivery queues guarding a mailbox with sender and recipient allow-lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from harness.mail.mailbox import Mailbox
from harness.mail.message import Header, _field_problems, _raise_for


class QueueError(Exception):
    """Base for queue refusals."""


class Discarded(QueueError):
    """The e-mail was refused by the queue's allow-lists."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"email discarded: {reason}")


class QueueFull(QueueError):
    """The queue already holds as many e-mails as its limit allows."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"queue full: queue limit reached: {limit}")
        self.limit = limit


@dataclass
class QueuedEmail:
    id: str
    sender: str
    to: list[str]
    created_at: datetime
    subject: str = ""
    body: str = ""
    html_body: str = ""
    headers: list[Header] = field(default_factory=list)


@dataclass
class QueuedEmailData:
    """Incoming e-mail data, validated when turned into a QueuedEmail."""

    id: str
    sender: str
    to: Optional[list[str]]
    created_at: Optional[datetime] = None
    subject: str = ""
    body: str = ""
    html_body: str = ""
    headers: list[Header] = field(default_factory=list)

    def to_email(self) -> QueuedEmail:
        _raise_for(_field_problems(self.id, self.sender, self.to, self.created_at))
        assert self.to is not None and self.created_at is not None
        return QueuedEmail(
            id=self.id,
            sender=self.sender,
            to=list(self.to),
            created_at=self.created_at,
            subject=self.subject,
            body=self.body,
            html_body=self.html_body,
            headers=list(self.headers),
        )


@dataclass
class EnqueuedEvent:
    email: QueuedEmailData


@dataclass
class DequeuedEvent:
    email_id: str


@dataclass
class Queue:
    """A first-in first-out queue of e-mails for one mailbox.

    A limit of 0 means unlimited; an empty recipient allow-list allows all.
    """

    mailbox: Mailbox
    allowed_recipients: list[str] = field(default_factory=list)
    allowed_from: Optional[str] = None
    limit: int = 0
    emails: list[QueuedEmail] = field(default_factory=list)
    events: list[Any] = field(default_factory=list, repr=False, compare=False)

    def enqueue(self, email: QueuedEmail) -> None:
        if self.allowed_from is not None and email.sender != self.allowed_from:
            raise Discarded(f"sender not allowed: {email.sender}")

        if self.allowed_recipients:
            rejected = [r for r in email.to if r not in self.allowed_recipients]
            if rejected:
                raise Discarded(f"recipients not allowed: [{' '.join(rejected)}]")

        if self.limit > 0 and len(self.emails) >= self.limit:
            raise QueueFull(self.limit)

        self.emails.append(email)
        self.events.append(
            EnqueuedEvent(
                email=QueuedEmailData(
                    id=email.id,
                    sender=email.sender,
                    to=email.to,
                    created_at=email.created_at,
                    subject=email.subject,
                    body=email.body,
                    html_body=email.html_body,
                    headers=email.headers,
                )
            )
        )

    def dequeue(self) -> Optional[QueuedEmail]:
        """Take the oldest e-mail, or return None when the queue is empty."""
        if not self.emails:
            return None
        email = self.emails.pop(0)
        self.events.append(DequeuedEvent(email_id=email.id))
        return email


def new_queue(mailbox: Mailbox) -> Queue:
    """Create an empty queue; only the inbox and outbox have queues."""
    if mailbox not in (Mailbox.INBOX, Mailbox.OUTBOX):
        raise ValueError(f"invalid mailbox: {mailbox}")
    return Queue(mailbox=mailbox)


class QueueRepository(Protocol):
    def update(self, mailbox: Mailbox, fn: Callable[[Queue], None]) -> None: ...