import logging

from harness.kanban.app import Application, Commands, Queries
from harness.kanban.commands import AddCard, CreateBoard, add_card_handler, create_board_handler
from harness.kanban.queries import CardQuery, CardsQuery, card_handler, cards_handler

LOGGER = logging.getLogger("test.kanban.app")


class MemoryRepo:
    def __init__(self):
        self.boards = {}

    def create(self, board):
        self.boards[board.id] = board

    def get(self, board_id):
        return self.boards[board_id]

    def update(self, board_id, board):
        self.boards[board_id] = board


def build(repo):
    return Application(
        commands=Commands(
            create_board=create_board_handler(repo, LOGGER),
            add_card=add_card_handler(repo, LOGGER),
        ),
        queries=Queries(
            cards=cards_handler(LOGGER, repo),
            card=card_handler(LOGGER, repo),
        ),
    )


def test_default_application_has_no_handlers():
    application = Application()
    assert application.commands == Commands()
    assert application.queries.card is None
    assert application.commands.remove_column is None


def test_wired_application_runs_commands_and_queries():
    repo = MemoryRepo()
    application = build(repo)
    application.commands.create_board(CreateBoard(id="b1", name="Board", columns=["To Do"]))
    application.commands.add_card(
        AddCard(board_id="b1", column="To Do", id="c1", title="Card")
    )
    listed = application.queries.cards(CardsQuery(board_id="b1", column="To Do"))
    assert [c.id for c in listed] == ["c1"]
    single = application.queries.card(CardQuery(board_id="b1", card_id="c1"))
    assert single.title == "Card"
    assert "b1" in repo.boards