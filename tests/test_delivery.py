from datetime import datetime, timezone

import pytest

from harness.mail.delivery import InboxDeliveryHandler, OutboxDeliveryHandler
from harness.mail.mailbox import Mailbox
from harness.mail.mailqueue import (
    EnqueuedEvent,
    Queue,
    QueuedEmail,
    QueuedEmailData,
)
from harness.mail.message import CreatedEvent, Email, Header, MovedEvent

CREATED = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class MemoryEmails:
    def __init__(self, *emails):
        self.emails = {email.id: email for email in emails}

    def create(self, email):
        self.emails[email.id] = email

    def get(self, email_id):
        return self.emails[email_id]

    def update(self, email_id, fn):
        fn(self.emails[email_id])


class MemoryQueues:
    def __init__(self, *queues):
        self.queues = {queue.mailbox: queue for queue in queues}

    def update(self, mailbox, fn):
        fn(self.queues.setdefault(mailbox, Queue(mailbox=mailbox)))


class RecordingPort:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, mail):
        if self.error is not None:
            raise self.error
        self.sent.append(mail)


def queued(email_id="m1"):
    return QueuedEmail(
        id=email_id,
        sender="alice@example.com",
        to=["bob@example.com"],
        created_at=CREATED,
        subject="Subject",
        body="Body",
        headers=[Header(name="X-Spam-Status", value="No")],
    )


def enqueued_event(email_id="m1"):
    mail = queued(email_id)
    return EnqueuedEvent(
        email=QueuedEmailData(
            id=mail.id, sender=mail.sender, to=mail.to, created_at=mail.created_at
        )
    )


def test_inbox_delivery_moves_queued_mail_into_inbox():
    repo = MemoryEmails()
    queues = MemoryQueues(Queue(mailbox=Mailbox.INBOX, emails=[queued()]))
    InboxDeliveryHandler(repo, queues).handle(enqueued_event())

    delivered = repo.emails["m1"]
    assert delivered.mailbox == Mailbox.INBOX
    assert delivered.sender == "alice@example.com"
    assert delivered.headers == [Header(name="X-Spam-Status", value="No")]
    assert delivered.created_at == CREATED
    assert queues.queues[Mailbox.INBOX].emails == []
    created = [e for e in delivered.events if isinstance(e, CreatedEvent)]
    assert len(created) == 1
    assert created[0].email.id == "m1"


def test_inbox_delivery_ignores_other_events():
    repo = MemoryEmails()
    queues = MemoryQueues(Queue(mailbox=Mailbox.INBOX, emails=[queued()]))
    InboxDeliveryHandler(repo, queues).handle(object())
    assert repo.emails == {}
    assert len(queues.queues[Mailbox.INBOX].emails) == 1


def test_inbox_delivery_with_empty_queue_creates_nothing():
    repo = MemoryEmails()
    queues = MemoryQueues(Queue(mailbox=Mailbox.INBOX))
    InboxDeliveryHandler(repo, queues).handle(enqueued_event())
    assert repo.emails == {}


def moved_event(mailbox):
    return MovedEvent(
        email_id="m1",
        mailbox=mailbox,
        to=["bob@example.com"],
        sender="alice@example.com",
        subject="Subject",
        body="Body",
        html_body="<p>Body</p>",
        headers=[Header(name="X-Custom", value="1")],
    )


def test_outbox_move_queues_mail_for_sending():
    queues = MemoryQueues()
    OutboxDeliveryHandler(queues, MemoryEmails(), RecordingPort()).handle(
        moved_event(Mailbox.OUTBOX)
    )
    queue = queues.queues[Mailbox.SENT]
    assert [m.id for m in queue.emails] == ["m1"]
    mail = queue.emails[0]
    assert (mail.subject, mail.body, mail.html_body) == ("Subject", "Body", "<p>Body</p>")
    assert mail.headers == [Header(name="", value="")]
    assert [type(e) for e in queue.events] == [EnqueuedEvent]


def test_move_to_other_mailbox_is_ignored():
    queues = MemoryQueues()
    OutboxDeliveryHandler(queues, MemoryEmails(), RecordingPort()).handle(
        moved_event(Mailbox.ARCHIVE)
    )
    assert Mailbox.SENT not in queues.queues


def stored(mailbox=Mailbox.OUTBOX):
    return Email(
        id="m1",
        mailbox=mailbox,
        sender="alice@example.com",
        to=["bob@example.com"],
        created_at=CREATED,
    )


def test_enqueued_event_sends_mail_and_moves_it_to_sent():
    repo = MemoryEmails(stored())
    queues = MemoryQueues(Queue(mailbox=Mailbox.SENT, emails=[queued()]))
    port = RecordingPort()
    OutboxDeliveryHandler(queues, repo, port).handle(enqueued_event())

    assert [m.id for m in port.sent] == ["m1"]
    assert repo.emails["m1"].mailbox == Mailbox.SENT
    assert isinstance(repo.emails["m1"].events[-1], MovedEvent)
    assert queues.queues[Mailbox.SENT].emails == []


def test_enqueued_event_with_empty_sent_queue_sends_nothing():
    repo = MemoryEmails(stored())
    port = RecordingPort()
    OutboxDeliveryHandler(MemoryQueues(), repo, port).handle(enqueued_event())
    assert port.sent == []
    assert repo.emails["m1"].mailbox == Mailbox.OUTBOX


def test_send_failure_leaves_mail_in_place():
    repo = MemoryEmails(stored())
    queues = MemoryQueues(Queue(mailbox=Mailbox.SENT, emails=[queued()]))
    port = RecordingPort(error=ConnectionError("down"))
    with pytest.raises(ConnectionError):
        OutboxDeliveryHandler(queues, repo, port).handle(enqueued_event())
    assert repo.emails["m1"].mailbox == Mailbox.OUTBOX