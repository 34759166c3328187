"""Queries reading e-mails through a read model."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from harness.common.decorators import QueryHandler, apply_query_decorators
from harness.mail.mailbox import Mailbox
from harness.mail.message import Header


@dataclass
class Mail:
    id: str


@dataclass
class MailReadModel:
    subject: str
    sender: str
    to: list[str]
    body: str = ""
    html_body: str = ""
    headers: list[Header] = field(default_factory=list)
    sent_at: str = ""
    read_at: Optional[str] = None


@dataclass
class Mails:
    mailbox: Mailbox
    filter_unread: Optional[bool] = None
    limit: int = 0


@dataclass
class MailListReadModel:
    id: str
    received_at: datetime
    sender: str
    subject: str
    to: list[str]


class ReadModel(Protocol):
    def get_mail(self, mail_id: str) -> MailReadModel: ...

    def list_mails(
        self, mailbox: Mailbox, filter_unread: Optional[bool], limit: int
    ) -> list[MailListReadModel]: ...


def mail_handler(logger: logging.Logger, read_model: ReadModel) -> QueryHandler:
    """Fetch one e-mail by its id."""

    def handle(query: Mail) -> MailReadModel:
        return read_model.get_mail(query.id)

    return apply_query_decorators(handle, logger)


def mails_handler(logger: logging.Logger, read_model: ReadModel) -> QueryHandler:
    """List the e-mails of a mailbox; a limit of 0 means all."""

    def handle(query: Mails) -> list[MailListReadModel]:
        return read_model.list_mails(query.mailbox, query.filter_unread, query.limit)

    return apply_query_decorators(handle, logger)