from datetime import datetime, timedelta, timezone

import pytest

from harness.kanban.board import (
    BoardError,
    BoardSnapshot,
    CardEdit,
    CardSnapshot,
    ColumnSnapshot,
    NewCardData,
    new_board,
    new_card,
    restore_board,
)

PAST = datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_new_board_valid():
    b = new_board("1", "My Board", "To Do", "Done")
    assert b.id == "1"
    assert b.name == "My Board"


@pytest.mark.parametrize(
    "args",
    [("", "My Board", "To Do"), ("1", "", "To Do"), ("1", "My Board")],
)
def test_new_board_invalid(args):
    with pytest.raises(BoardError):
        new_board(*args)


def test_board_columns_in_order():
    b = new_board("1", "Board", "To Do", "In Progress", "Done")
    assert [c.name for c in b.iter_columns()] == ["To Do", "In Progress", "Done"]


def test_new_card_valid():
    c = new_card("c1", "My Card")
    assert c.id == "c1"
    assert c.title == "My Card"


@pytest.mark.parametrize("card_id,title", [("", "My Card"), ("c1", "")])
def test_new_card_invalid(card_id, title):
    with pytest.raises(BoardError):
        new_card(card_id, title)


def test_card_set_description_updates_modified_at():
    c = new_card("c1", "Title")
    c.modified_at = PAST
    c.set_description("my desc")
    assert c.description == "my desc"
    assert c.modified_at > PAST


def test_card_set_assignee():
    c = new_card("c1", "Title")
    c.modified_at = PAST
    c.set_assignee("alice")
    assert c.assignee == "alice"
    assert c.modified_at > PAST


def test_card_set_empty_assignee():
    c = new_card("c1", "Title")
    with pytest.raises(BoardError):
        c.set_assignee("")


def test_card_modified_at_can_be_restored():
    c = new_card("c1", "Title")
    ts = datetime(2020, 1, 1, tzinfo=timezone.utc)
    c.modified_at = ts
    assert c.modified_at == ts


def test_add_card_success():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    assert [c.id for c in b.column("To Do")] == ["c1"]


def test_add_card_unknown_column():
    b = new_board("1", "Board", "To Do")
    with pytest.raises(BoardError):
        b.add_card(NewCardData(id="c1", title="Card"), "Nonexistent")


def test_add_card_duplicate_id():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    with pytest.raises(BoardError):
        b.add_card(NewCardData(id="c1", title="Another"), "To Do")


def test_add_card_with_assignee():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card", assignee="alice"), "To Do")
    found = b.find_card("c1")
    assert found is not None and found.assignee == "alice"


def test_add_card_invalid_id():
    b = new_board("1", "Board", "To Do")
    with pytest.raises(BoardError):
        b.add_card(NewCardData(id="", title="Card"), "To Do")


def test_move_card_success():
    b = new_board("1", "Board", "To Do", "Done")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    b.move_card("c1", "Done")
    assert b.find_card("c1") is not None
    assert [c.id for c in b.column("Done")] == ["c1"]
    assert len(b.column("To Do")) == 0


def test_move_card_not_found():
    b = new_board("1", "Board", "To Do", "Done")
    with pytest.raises(BoardError):
        b.move_card("nonexistent", "Done")


def test_move_card_target_missing():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    with pytest.raises(BoardError):
        b.move_card("c1", "Nonexistent")


def test_archive_stale_cards():
    b = new_board("1", "Board", "Done")
    b.add_card(NewCardData(id="c1", title="Old Card"), "Done")
    b.find_card("c1").modified_at = datetime.now(timezone.utc) - timedelta(hours=48)
    b.archive_cards("Done", timedelta(hours=24))
    assert b.find_card("c1") is None


def test_archive_keeps_fresh_cards():
    b = new_board("1", "Board", "Done")
    b.add_card(NewCardData(id="c1", title="Fresh Card"), "Done")
    b.archive_cards("Done", timedelta(hours=24))
    assert b.find_card("c1").title == "Fresh Card"
    assert [c.id for c in b.column("Done")] == ["c1"]


def test_archive_unknown_column():
    b = new_board("1", "Board", "Done")
    with pytest.raises(BoardError):
        b.archive_cards("Nonexistent", timedelta(hours=1))


def test_find_card():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    assert b.find_card("c1").title == "Card"
    assert b.find_card("nonexistent") is None


def test_card_lookup_raises_when_missing():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card"), "To Do")
    assert b.card("c1").id == "c1"
    with pytest.raises(BoardError):
        b.card("nonexistent")


def test_column_lookup_raises_when_missing():
    b = new_board("1", "Board", "To Do")
    assert b.column("To Do").name == "To Do"
    with pytest.raises(BoardError):
        b.column("Nope")


def test_edit_card_success():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Old Title"), "To Do")
    b.edit_card(CardEdit(id="c1", title="New Title", body="New Body", assignee="bob"))
    c = b.find_card("c1")
    assert c.title == "New Title"
    assert c.description == "New Body"
    assert c.assignee == "bob"


def test_edit_card_partial_update():
    b = new_board("1", "Board", "To Do")
    b.add_card(
        NewCardData(id="c1", title="Original Title", description="Original Body"), "To Do"
    )
    b.edit_card(CardEdit(id="c1", body="Updated Body"))
    c = b.find_card("c1")
    assert c.title == "Original Title"
    assert c.description == "Updated Body"


def test_edit_card_not_found():
    b = new_board("1", "Board", "To Do")
    with pytest.raises(BoardError):
        b.edit_card(CardEdit(id="nonexistent", title="Title"))


def test_column_cards():
    b = new_board("1", "Board", "To Do")
    b.add_card(NewCardData(id="c1", title="Card 1"), "To Do")
    b.add_card(NewCardData(id="c2", title="Card 2"), "To Do")
    col = list(b.iter_columns())[-1]
    assert len(list(col)) == 2


def test_restore_board():
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    b = restore_board(
        BoardSnapshot(
            id="u1",
            name="Unmarshalled Board",
            columns=[
                ColumnSnapshot(
                    name="To Do",
                    cards=[
                        CardSnapshot(
                            id="c1",
                            title="Card 1",
                            description="desc",
                            assignee="alice",
                            modified_at=ts,
                        )
                    ],
                ),
                ColumnSnapshot(name="Done"),
            ],
        )
    )
    assert b.id == "u1"
    assert b.name == "Unmarshalled Board"
    c = b.find_card("c1")
    assert c is not None
    assert (c.title, c.description, c.assignee) == ("Card 1", "desc", "alice")
    assert c.modified_at == ts
    assert [col.name for col in b.iter_columns()] == ["To Do", "Done"]


def test_columns_early_exit():
    b = new_board("1", "Board", "A", "B", "C")
    columns = b.iter_columns()
    first = next(columns)
    assert first.name == "A"


def test_add_column_success():
    b = new_board("1", "Board", "To Do")
    b.add_column("Done")
    assert [c.name for c in b.iter_columns()] == ["To Do", "Done"]


@pytest.mark.parametrize("name", ["", "To Do"])
def test_add_column_invalid(name):
    b = new_board("1", "Board", "To Do")
    with pytest.raises(BoardError):
        b.add_column(name)


def test_remove_only_column():
    b = new_board("1", "Board", "To Do")
    with pytest.raises(BoardError):
        b.remove_column("To Do")


def test_remove_nonexistent_column():
    b = new_board("1", "Board", "To Do", "Done")
    with pytest.raises(BoardError):
        b.remove_column("Nonexistent")


def test_remove_column_moves_cards_to_preceding():
    b = new_board("1", "Test Board", "To Do", "In Progress", "Done")
    b.add_card(NewCardData(id="1", title="Test Card"), "Done")
    b.add_card(NewCardData(id="2", title="Test Card 2"), "Done")
    b.remove_column("Done")
    assert sorted(c.id for c in b.column("In Progress")) == ["1", "2"]
    assert [c.name for c in b.iter_columns()] == ["To Do", "In Progress"]


def test_remove_first_column_moves_cards_to_next():
    b = new_board("1", "Test Board", "To Do", "In Progress", "Done")
    b.add_card(NewCardData(id="1", title="Test Card"), "To Do")
    b.add_card(NewCardData(id="2", title="Test Card 2"), "To Do")
    b.remove_column("To Do")
    assert sorted(c.id for c in b.column("In Progress")) == ["1", "2"]
    assert [c.name for c in b.iter_columns()] == ["In Progress", "Done"]