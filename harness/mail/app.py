"""The e-mail application: its command and query handlers in one place."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from harness.common.decorators import CommandHandler, QueryHandler


@dataclass
class Commands:
    draft: Optional[CommandHandler] = None
    enqueue: Optional[CommandHandler] = None
    mark_read: Optional[CommandHandler] = None
    move: Optional[CommandHandler] = None
    configure_queue: Optional[CommandHandler] = None


@dataclass
class Queries:
    mail: Optional[QueryHandler] = None
    mails: Optional[QueryHandler] = None


@dataclass
class Application:
    commands: Commands = field(default_factory=Commands)
    queries: Queries = field(default_factory=Queries)