"""Commands that change kanban boards, and the handlers that run them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from harness.common.decorators import CommandHandler, apply_command_decorators
from harness.kanban.board import BoardRepository, CardEdit, NewCardData, new_board


@dataclass
class CreateBoard:
    id: str
    name: str
    columns: list[str] = field(default_factory=list)


@dataclass
class AddCard:
    board_id: str
    column: str
    id: str
    title: str
    description: str = ""
    assignee: Optional[str] = None


@dataclass
class MoveCard:
    board_id: str
    card_id: str
    column: str


@dataclass
class ArchiveCards:
    board_id: str
    column: str
    stale_duration: timedelta


@dataclass
class EditCard:
    board_id: str
    id: str
    title: Optional[str] = None
    body: Optional[str] = None
    assignee: Optional[str] = None


@dataclass
class AddColumn:
    board_id: str
    column_name: str


@dataclass
class RemoveColumn:
    board_id: str
    column_name: str


def create_board_handler(repo: BoardRepository, logger: logging.Logger) -> CommandHandler:
    """Create a board with its initial columns."""

    def handle(command: CreateBoard) -> None:
        repo.create(new_board(command.id, command.name, *command.columns))

    return apply_command_decorators(handle, logger)


def add_card_handler(repo: BoardRepository, logger: logging.Logger) -> CommandHandler:
    """Add a card to a column of a board."""

    def handle(command: AddCard) -> None:
        board = repo.get(command.board_id)
        board.add_card(
            NewCardData(
                id=command.id,
                title=command.title,
                description=command.description,
                assignee=command.assignee,
            ),
            command.column,
        )
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)


def move_card_handler(repo: BoardRepository, logger: logging.Logger) -> CommandHandler:
    """Move a card to another column."""

    def handle(command: MoveCard) -> None:
        board = repo.get(command.board_id)
        board.move_card(command.card_id, command.column)
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)


def archive_cards_handler(
    repo: BoardRepository, logger: logging.Logger
) -> CommandHandler:
    """Drop the stale cards of a column."""

    def handle(command: ArchiveCards) -> None:
        board = repo.get(command.board_id)
        board.archive_cards(command.column, command.stale_duration)
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)


def edit_card_handler(repo: BoardRepository, logger: logging.Logger) -> CommandHandler:
    """Change the title, description or assignee of a card."""

    def handle(command: EditCard) -> None:
        board = repo.get(command.board_id)
        board.edit_card(
            CardEdit(
                id=command.id,
                title=command.title,
                body=command.body,
                assignee=command.assignee,
            )
        )
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)


def add_column_handler(repo: BoardRepository, logger: logging.Logger) -> CommandHandler:
    """Append a column to a board."""

    def handle(command: AddColumn) -> None:
        board = repo.get(command.board_id)
        board.add_column(command.column_name)
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)


def remove_column_handler(
    repo: BoardRepository, logger: logging.Logger
) -> CommandHandler:
    """Remove a column, moving its cards to the nearest remaining column."""

    def handle(command: RemoveColumn) -> None:
        board = repo.get(command.board_id)
        board.remove_column(command.column_name)
        repo.update(command.board_id, board)

    return apply_command_decorators(handle, logger)