"""The kanban application: its command and query handlers in one place."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from harness.common.decorators import CommandHandler, QueryHandler


@dataclass
class Commands:
    create_board: Optional[CommandHandler] = None
    add_card: Optional[CommandHandler] = None
    move_card: Optional[CommandHandler] = None
    archive_cards: Optional[CommandHandler] = None
    edit_card: Optional[CommandHandler] = None
    add_column: Optional[CommandHandler] = None
    remove_column: Optional[CommandHandler] = None


@dataclass
class Queries:
    cards: Optional[QueryHandler] = None
    card: Optional[QueryHandler] = None


@dataclass
class Application:
    commands: Commands = field(default_factory=Commands)
    queries: Queries = field(default_factory=Queries)