"""Commands that change e-mails and queues, and the handlers that run them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from harness.common.decorators import CommandHandler, apply_command_decorators
from harness.mail.mailbox import Mailbox
from harness.mail.mailqueue import Queue, QueuedEmailData, QueueRepository
from harness.mail.message import Email, EmailRepository, Header, NewEmail


@dataclass
class ConfigureQueue:
    mailbox: Mailbox
    allowed_recipients: list[str] = field(default_factory=list)
    allowed_from: Optional[str] = None


class QueueConfigWriter(Protocol):
    def write_queue_meta(
        self,
        mailbox: Mailbox,
        allowed_recipients: list[str],
        allowed_from: Optional[str],
    ) -> None: ...


@dataclass
class Draft:
    email_id: str
    sender: str
    to: list[str]
    subject: str = ""
    body: str = ""
    reply_to: Optional[str] = None
    replying_to_email_id: Optional[str] = None


@dataclass
class Enqueue:
    mailbox: Mailbox
    mail: QueuedEmailData


@dataclass
class MarkRead:
    mail_id: str


@dataclass
class Move:
    mail_id: str
    to: Mailbox


def configure_queue_handler(
    writer: QueueConfigWriter, logger: logging.Logger
) -> CommandHandler:
    """Store the allow-lists of a mailbox's queue."""

    def handle(command: ConfigureQueue) -> None:
        writer.write_queue_meta(
            command.mailbox, command.allowed_recipients, command.allowed_from
        )

    return apply_command_decorators(handle, logger)


def draft_handler(email_repo: EmailRepository, logger: logging.Logger) -> CommandHandler:
    """Create a draft, threading it onto the e-mail it replies to if any."""

    def handle(command: Draft) -> None:
        draft = NewEmail(
            id=command.email_id,
            mailbox=Mailbox.DRAFT,
            sender=command.sender,
            to=command.to,
            subject=command.subject,
            body=command.body,
            created_at=datetime.now(timezone.utc),
        )

        if command.replying_to_email_id is not None:
            original = email_repo.get(command.replying_to_email_id)
            message_id = next(
                (h for h in original.headers if h.name == "Message-ID"), None
            )
            if message_id is not None:
                draft.headers.append(Header(name="In-Reply-To", value=message_id.value))

        email_repo.create(draft.to_email())

    return apply_command_decorators(handle, logger)


def enqueue_handler(repo: QueueRepository, logger: logging.Logger) -> CommandHandler:
    """Validate incoming e-mail data and put it on a mailbox's queue."""

    def handle(command: Enqueue) -> None:
        def enqueue(queue: Queue) -> None:
            queue.enqueue(command.mail.to_email())

        repo.update(command.mailbox, enqueue)

    return apply_command_decorators(handle, logger)


def mark_read_handler(repo: EmailRepository, logger: logging.Logger) -> CommandHandler:
    """Mark an e-mail as read."""

    def handle(command: MarkRead) -> None:
        def mark(email: Email) -> None:
            email.mark_as_read()

        repo.update(command.mail_id, mark)

    return apply_command_decorators(handle, logger)


def move_handler(repo: EmailRepository, logger: logging.Logger) -> CommandHandler:
    """Move an e-mail to another mailbox."""

    def handle(command: Move) -> None:
        def move(email: Email) -> None:
            email.move(command.to)

        repo.update(command.mail_id, move)

    return apply_command_decorators(handle, logger)