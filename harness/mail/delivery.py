"""Event listeners that move e-mails out of queues into mailboxes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from harness.mail.mailbox import Mailbox
from harness.mail.mailqueue import (
    EnqueuedEvent,
    Queue,
    QueuedEmail,
    QueuedEmailData,
    QueueRepository,
)
from harness.mail.message import (
    Email,
    EmailRepository,
    Header,
    MovedEvent,
    NewEmail,
    create_email,
)


class MailPort(Protocol):
    def send(self, mail: QueuedEmail) -> None: ...


def _as_new_email(mail: QueuedEmail, mailbox: Mailbox) -> NewEmail:
    return NewEmail(
        id=mail.id,
        mailbox=mailbox,
        sender=mail.sender,
        to=mail.to,
        subject=mail.subject,
        body=mail.body,
        html_body=mail.html_body,
        headers=[Header(name=h.name, value=h.value) for h in mail.headers],
        created_at=mail.created_at,
    )


class InboxDeliveryHandler:
    """Delivers the oldest e-mail on the inbox queue into the inbox."""

    def __init__(self, repo: EmailRepository, queue_repo: QueueRepository) -> None:
        self._repo = repo
        self._queue_repo = queue_repo

    def handle(self, event: Any) -> None:
        if not isinstance(event, EnqueuedEvent):
            return

        def deliver(queue: Queue) -> None:
            queued = queue.dequeue()
            if queued is None:
                return
            self._repo.create(create_email(_as_new_email(queued, Mailbox.INBOX)))

        self._queue_repo.update(Mailbox.INBOX, deliver)


class OutboxDeliveryHandler:
    """Queues e-mails moved to the outbox and sends them through the mail port."""

    def __init__(
        self,
        queue_repo: QueueRepository,
        repo: EmailRepository,
        mail_port: MailPort,
    ) -> None:
        self._queue_repo = queue_repo
        self._repo = repo
        self._mail_port = mail_port

    def handle(self, event: Any) -> None:
        if isinstance(event, MovedEvent):
            if event.mailbox == Mailbox.OUTBOX:
                self._queue_for_sending(event)
        elif isinstance(event, EnqueuedEvent):
            self._send_next()

    def _queue_for_sending(self, event: MovedEvent) -> None:
        def enqueue(queue: Queue) -> None:
            data = QueuedEmailData(
                id=event.email_id,
                sender=event.sender,
                to=event.to,
                subject=event.subject,
                body=event.body,
                html_body=event.html_body,
                # Only the number of headers is carried into the queue.
                headers=[Header(name="", value="") for _ in event.headers],
                created_at=datetime.now(timezone.utc),
            )
            queue.enqueue(data.to_email())

        self._queue_repo.update(Mailbox.SENT, enqueue)

    def _send_next(self) -> None:
        def send(queue: Queue) -> None:
            queued = queue.dequeue()
            if queued is None:
                return

            self._mail_port.send(queued)

            sent = create_email(_as_new_email(queued, Mailbox.SENT))

            def mark_sent(email: Email) -> None:
                email.move(Mailbox.SENT)

            self._repo.update(sent.id, mark_sent)

        self._queue_repo.update(Mailbox.SENT, send)