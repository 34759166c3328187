"""Queries reading cards from kanban boards."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from harness.common.decorators import QueryHandler, apply_query_decorators
from harness.kanban.board import BoardRepository, Card


@dataclass
class CardQuery:
    board_id: str
    card_id: str


@dataclass
class CardsQuery:
    board_id: str
    column: str
    limit: int = 0


@dataclass
class CardReadModel:
    id: str
    title: str
    description: str
    assignee: Optional[str]
    modified_at: datetime


def _read_model(card: Card) -> CardReadModel:
    return CardReadModel(
        id=card.id,
        title=card.title,
        description=card.description,
        assignee=card.assignee,
        modified_at=card.modified_at,
    )


def card_handler(logger: logging.Logger, repo: BoardRepository) -> QueryHandler:
    """Fetch one card of a board by its id."""

    def handle(query: CardQuery) -> CardReadModel:
        board = repo.get(query.board_id)
        return _read_model(board.card(query.card_id))

    return apply_query_decorators(handle, logger)


def cards_handler(logger: logging.Logger, repo: BoardRepository) -> QueryHandler:
    """List the cards of a column.

    The query's limit is carried along but not applied: every card is returned.
    """

    def handle(query: CardsQuery) -> list[CardReadModel]:
        board = repo.get(query.board_id)
        return [_read_model(card) for card in board.column(query.column)]

    return apply_query_decorators(handle, logger)