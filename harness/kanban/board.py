"""Kanban boards: ordered columns holding cards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional, Protocol


class BoardError(ValueError):
    """Raised when a board operation is refused."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Card:
    """A card on a board; ``modified_at`` tracks its last change."""

    id: str
    title: str
    description: str = ""
    assignee: Optional[str] = None
    modified_at: datetime = field(default_factory=_now)

    def set_description(self, description: str) -> None:
        self.description = description
        self.modified_at = _now()

    def set_assignee(self, assignee: str) -> None:
        if not assignee:
            raise BoardError("assignee cannot be empty")
        self.assignee = assignee
        self.modified_at = _now()


def new_card(card_id: str, title: str) -> Card:
    """Create a card, requiring an id and a title."""
    if not card_id:
        raise BoardError("card id cannot be empty")
    if not title:
        raise BoardError("card title cannot be empty")
    return Card(id=card_id, title=title)


class Column:
    """A named column; iterating it yields its cards."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.cards: dict[str, Card] = {}

    def __iter__(self) -> Iterator[Card]:
        return iter(list(self.cards.values()))

    def __len__(self) -> int:
        return len(self.cards)

    def __repr__(self) -> str:
        return f"Column(name={self.name!r}, cards={list(self.cards)!r})"


@dataclass
class NewCardData:
    id: str
    title: str
    description: str = ""
    assignee: Optional[str] = None


@dataclass
class CardEdit:
    """Changes to a card; fields left as None stay as they are."""

    id: str
    title: Optional[str] = None
    body: Optional[str] = None
    assignee: Optional[str] = None


class Board:
    """A board with columns kept in the order they were added."""

    def __init__(self, board_id: str, name: str) -> None:
        self.id = board_id
        self.name = name
        self._columns: dict[str, Column] = {}

    def __repr__(self) -> str:
        return f"Board(id={self.id!r}, name={self.name!r}, columns={list(self._columns)!r})"

    def column(self, name: str) -> Column:
        try:
            return self._columns[name]
        except KeyError:
            raise BoardError(f"column with name {name} not found") from None

    def card(self, card_id: str) -> Card:
        found = self.find_card(card_id)
        if found is None:
            raise BoardError(f"card with id {card_id} not found")
        return found

    def iter_columns(self) -> Iterator[Column]:
        """Yield the columns in board order."""
        yield from list(self._columns.values())

    def _existing_column(self, name: str) -> Column:
        try:
            return self._columns[name]
        except KeyError:
            raise BoardError(f"column with name '{name}' does not exist") from None

    def _locate(self, card_id: str) -> tuple[Optional[Column], Optional[Card]]:
        for col in self._columns.values():
            found = col.cards.get(card_id)
            if found is not None:
                return col, found
        return None, None

    def find_card(self, card_id: str) -> Optional[Card]:
        """Return the card with this id, or None."""
        return self._locate(card_id)[1]

    def add_card(self, data: NewCardData, column_name: str) -> None:
        created = new_card(data.id, data.title)
        created.set_description(data.description)
        if data.assignee is not None:
            created.set_assignee(data.assignee)

        target = self._existing_column(column_name)
        if created.id in target.cards:
            raise BoardError(
                f"card with id '{created.id}' already exists in column '{column_name}'"
            )
        target.cards[created.id] = created

    def move_card(self, card_id: str, column: str) -> None:
        source, moving = self._locate(card_id)
        if source is None or moving is None:
            raise BoardError(f"card with id '{card_id}' not found in any column")
        target = self._existing_column(column)
        del source.cards[card_id]
        target.cards[card_id] = moving
        moving.modified_at = _now()

    def archive_cards(self, column: str, stale: timedelta) -> None:
        """Drop the cards of a column not modified within ``stale``."""
        col = self._existing_column(column)
        now = _now()
        for card_id, existing in list(col.cards.items()):
            if existing.modified_at + stale < now:
                del col.cards[card_id]

    def edit_card(self, edit: CardEdit) -> None:
        existing = self.find_card(edit.id)
        if existing is None:
            raise BoardError(f"card with id '{edit.id}' not found in any column")
        if edit.title is not None:
            existing.title = edit.title
        if edit.body is not None:
            existing.description = edit.body
        if edit.assignee is not None:
            existing.assignee = edit.assignee
        existing.modified_at = _now()

    def add_column(self, column_name: str) -> None:
        if not column_name:
            raise BoardError("column name cannot be empty")
        if column_name in self._columns:
            raise BoardError(f"column with name '{column_name}' already exists")
        self._columns[column_name] = Column(column_name)

    def remove_column(self, column_name: str) -> None:
        """Remove a column, moving its cards to the preceding column.

        When the first column is removed its cards go to the next one. At
        least one column must remain.
        """
        if len(self._columns) == 1:
            raise BoardError("cannot remove the only column in the board")
        removed = self._existing_column(column_name)

        names = list(self._columns)
        position = names.index(column_name)
        target = names[position - 1] if position > 0 else names[position + 1]

        self._columns[target].cards.update(removed.cards)
        del self._columns[column_name]


def new_board(board_id: str, name: str, *columns: str) -> Board:
    """Create a board with at least one column."""
    if not columns:
        raise BoardError("board needs at least one column")
    if not board_id:
        raise BoardError("board id cannot be empty")
    if not name:
        raise BoardError("board name cannot be empty")
    board = Board(board_id, name)
    for column_name in columns:
        board._columns[column_name] = Column(column_name)
    return board


@dataclass
class CardSnapshot:
    id: str
    title: str
    modified_at: datetime
    description: str = ""
    assignee: Optional[str] = None


@dataclass
class ColumnSnapshot:
    name: str
    cards: list[CardSnapshot] = field(default_factory=list)


@dataclass
class BoardSnapshot:
    id: str
    name: str
    columns: list[ColumnSnapshot] = field(default_factory=list)


def restore_board(snapshot: BoardSnapshot) -> Board:
    """Rebuild a stored board without validating it."""
    board = Board(snapshot.id, snapshot.name)
    for col_snapshot in snapshot.columns:
        col = Column(col_snapshot.name)
        for c in col_snapshot.cards or []:
            col.cards[c.id] = Card(
                id=c.id,
                title=c.title,
                description=c.description,
                assignee=c.assignee,
                modified_at=c.modified_at,
            )
        board._columns[col_snapshot.name] = col
    return board


class BoardRepository(Protocol):
    def create(self, board: Board) -> None: ...

    def get(self, board_id: str) -> Board: ...

    def update(self, board_id: str, board: Board) -> None: ...