"""Command-line interface for managing kanban boards, columns and cards."""

from __future__ import annotations

import argparse
import json
import re
from datetime import datetime, timedelta
from fractions import Fraction
from pathlib import Path
from typing import Callable, Optional, Sequence, TextIO

from harness.kanban.app import Application
from harness.kanban.commands import (
    AddCard,
    AddColumn,
    ArchiveCards,
    CreateBoard,
    EditCard,
    MoveCard,
    RemoveColumn,
)
from harness.kanban.queries import CardQuery, CardsQuery

DEFAULT_STALE = timedelta(days=30)

_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class CliError(Exception):
    """Raised for bad command lines and unreadable input files."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise CliError(message)


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``168h``, ``1h30m`` or ``1.5s``."""
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise CliError(f"time: invalid duration {_quote(text)}")

    total = Fraction(0)
    position = 0
    while position < len(rest):
        match = _DURATION_PART.match(rest, position)
        if match is None:
            raise CliError(f"time: invalid duration {_quote(text)}")
        total += Fraction(match.group(1)) * _NANOSECONDS[match.group(2)]
        position = match.end()
    return timedelta(microseconds=round(sign * total / 1000))


def _split_csv(text: str) -> list[str]:
    return text.split(",") if text else []


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _rfc3339(moment: datetime) -> str:
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    offset = moment.utcoffset()
    if offset is None or offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset >= timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _read_file(path: str, what: str) -> str:
    try:
        return Path(path).read_text()
    except OSError as exc:
        raise CliError(f"reading {what} file: {exc}") from exc


def _require_board_id(board_id: str) -> None:
    if not board_id:
        raise CliError("--board-id is required: specify the board to operate on")


_Action = Callable[[Application, str, argparse.Namespace, TextIO], None]


def _create_board(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    application.commands.create_board(
        CreateBoard(id=args.id, name=args.name, columns=list(args.columns))
    )
    out.write(f"Board {_quote(args.id)} created.\n")


def _add_card(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    if args.description is None and args.description_file is None:
        raise CliError("either --description or --description-file must be provided")

    description = args.description or ""
    if args.description_file is not None:
        description = _read_file(args.description_file, "description")

    application.commands.add_card(
        AddCard(
            board_id=board_id,
            column=args.column,
            id=args.id,
            title=args.title,
            description=description,
            assignee=args.assignee,
        )
    )
    out.write(f"Card {_quote(args.id)} added to column {_quote(args.column)}.\n")


def _move_card(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    application.commands.move_card(
        MoveCard(board_id=board_id, card_id=args.id, column=args.to)
    )
    out.write(f"Card {_quote(args.id)} moved to {_quote(args.to)}.\n")


def _edit_card(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    body: Optional[str] = args.body
    if args.body_file is not None:
        body = _read_file(args.body_file, "body")

    application.commands.edit_card(
        EditCard(
            board_id=board_id,
            id=args.id,
            title=args.title,
            body=body,
            assignee=args.assignee,
        )
    )
    out.write(f"Card {_quote(args.id)} updated.\n")


def _archive_cards(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    application.commands.archive_cards(
        ArchiveCards(board_id=board_id, column=args.column, stale_duration=args.stale)
    )
    out.write(f"Stale cards archived from column {_quote(args.column)}.\n")


def _list_cards(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    cards = application.queries.cards(
        CardsQuery(board_id=board_id, column=args.column, limit=args.limit)
    )
    for card in cards:
        out.write(f"[{card.id}] {card.title}\n")


def _get_card(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    card = application.queries.card(CardQuery(board_id=board_id, card_id=args.id))
    assignee = card.assignee if card.assignee is not None else "unassigned"
    out.write(
        f"# {card.title}\n\n**ID:** {card.id}\n**Assignee:** {assignee}\n"
        f"**Modified:** {_rfc3339(card.modified_at)}\n\n---\n\n{card.description}\n"
    )


def _add_column(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    application.commands.add_column(AddColumn(board_id=board_id, column_name=args.name))
    out.write(f"Column {_quote(args.name)} added.\n")


def _remove_column(
    application: Application, board_id: str, args: argparse.Namespace, out: TextIO
) -> None:
    _require_board_id(board_id)
    application.commands.remove_column(
        RemoveColumn(board_id=board_id, column_name=args.name)
    )
    out.write(f"Column {_quote(args.name)} removed.\n")


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every kanban command."""
    shared = _Parser(add_help=False)
    shared.add_argument(
        "--board-id",
        default=argparse.SUPPRESS,
        help="ID of the board to operate on",
    )

    parser = _Parser(
        prog="kanban", description="A CLI for managing Kanban boards", parents=[shared]
    )
    parser.set_defaults(show_help=parser.format_help)
    groups = parser.add_subparsers(dest="group", metavar="COMMAND")

    def group(name: str, description: str):
        sub = groups.add_parser(name, help=description, description=description, parents=[shared])
        sub.set_defaults(show_help=sub.format_help)
        return sub.add_subparsers(dest=f"{name}_command", metavar="COMMAND")

    def leaf(commands, name: str, description: str, action: _Action):
        sub = commands.add_parser(
            name, help=description, description=description, parents=[shared]
        )
        sub.set_defaults(action=action)
        return sub

    boards = group("board", "Manage boards")
    create = leaf(boards, "create", "Create a new board", _create_board)
    create.add_argument("--id", required=True, help="Unique board ID (required)")
    create.add_argument("--name", required=True, help="Human-readable board name (required)")
    create.add_argument(
        "--columns",
        action="extend",
        type=_split_csv,
        required=True,
        help="Initial column names, comma-separated (required)",
    )

    cards = group("card", "Manage cards on a board")

    add = leaf(cards, "add", "Add a card to a column", _add_card)
    add.add_argument("--id", required=True, help="Unique card ID (required)")
    add.add_argument("--title", required=True, help="Card title (required)")
    add.add_argument("--column", required=True, help="Target column name (required)")
    description = add.add_mutually_exclusive_group()
    description.add_argument("--description", help="Card description")
    description.add_argument("--description-file", help="Read card description from file")
    add.add_argument("--assignee", help="Assignee username")

    move = leaf(cards, "move", "Move a card to a different column", _move_card)
    move.add_argument("--id", required=True, help="Card ID to move (required)")
    move.add_argument("--to", required=True, help="Destination column name (required)")

    edit = leaf(cards, "edit", "Edit an existing card", _edit_card)
    edit.add_argument("--id", required=True, help="Card ID to edit (required)")
    edit.add_argument("--title", help="New title")
    body = edit.add_mutually_exclusive_group()
    body.add_argument("--body", help="New description body")
    body.add_argument("--body-file", help="Read description body from file")
    edit.add_argument("--assignee", help="New assignee username")

    archive = leaf(cards, "archive", "Archive stale cards from a column", _archive_cards)
    archive.add_argument(
        "--column", required=True, help="Column to archive stale cards from (required)"
    )
    archive.add_argument(
        "--stale",
        type=parse_duration,
        default=DEFAULT_STALE,
        help="Duration after which a card is considered stale",
    )

    listing = leaf(cards, "list", "List cards in a column", _list_cards)
    listing.add_argument("--column", required=True, help="Column name (required)")
    listing.add_argument("--limit", type=int, default=0, help="Max cards to return (0 = all)")

    get = leaf(cards, "get", "Get a single card and display it as markdown", _get_card)
    get.add_argument("--id", required=True, help="Card ID (required)")

    columns = group("column", "Manage columns on a board")
    add_column = leaf(columns, "add", "Add a column to a board", _add_column)
    add_column.add_argument("--name", required=True, help="Column name (required)")
    remove_column = leaf(
        columns,
        "remove",
        "Remove a column from a board (cards are migrated to the nearest column)",
        _remove_column,
    )
    remove_column.add_argument("--name", required=True, help="Column name to remove (required)")

    return parser


def run(application: Application, argv: Sequence[str], out: TextIO) -> None:
    """Parse ``argv`` and run the chosen command, writing its output to ``out``."""
    parser = create_parser()
    args = parser.parse_args(list(argv))
    action: Optional[_Action] = getattr(args, "action", None)
    if action is None:
        out.write(args.show_help())
        return
    action(application, getattr(args, "board_id", ""), args, out)