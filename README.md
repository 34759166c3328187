# harness

`harness` holds two small applications built the same way: a domain model,
command and query handlers wrapped with logging, and thin front ends on the
outside.

- **Mail** (`harness.mail`): mailboxes (Draft, Inbox, Outbox, Archive,
  Sent), queues with sender/recipient allow-lists and size limits, delivery
  handlers driven by an in-process event bus, a command-line front end and a
  WSGI app that accepts Postmark inbound webhooks behind HTTP basic
  authentication.
- **Kanban** (`harness.kanban`): boards with ordered columns and cards,
  moving, editing and archiving stale cards, and removing columns while
  their cards move to the nearest remaining column.

Install with `pip install .` (add `.[test]` for pytest).

## Kanban boards

```python
from harness.kanban.board import BoardError, new_board

board = new_board("my-board", "My Project", "To Do", "In Progress", "Done")

board.add_column("Code Review")
print([column.name for column in board.iter_columns()])
# ['To Do', 'In Progress', 'Done', 'Code Review']

try:
    board.remove_column("Missing")
except BoardError as error:
    print(error)
# column with name 'Missing' does not exist
```

A board needs an id, a name and at least one column. Removing a column
moves its cards to the column before it, or to the one after it when it is
the first; the last remaining column cannot be removed.

`Board.move_card`, `Board.edit_card`, `Board.archive_cards` and `Board.card`
raise `BoardError` for unknown cards and columns; `Board.find_card` returns
`None` instead. `restore_board` rebuilds a board from a `BoardSnapshot`
without validating it.

## Mailboxes and queues

```python
from harness.mail.mailbox import Mailbox, mailbox_strings, parse_mailbox

print(mailbox_strings())
# ['Ungültig', 'Draft', 'Inbox', 'Outbox', 'Archive', 'Sent']

assert parse_mailbox("inbox") is Mailbox.INBOX
```

Names are matched exactly or case-insensitively; anything else raises
`ValueError`.

`NewEmail.to_email` and `QueuedEmailData.to_email` raise `ValidationError`
for a missing id, sender, recipient list or creation time, and for malformed
addresses. Queues are created for the Inbox and Outbox mailboxes only
(`new_queue`). `Queue.enqueue` raises `Discarded` when the sender or a
recipient is not on the queue's allow-list and `QueueFull` when the limit is
reached; both derive from `QueueError`.

## Handlers

Every handler is a plain callable taking one command or query object. The
`*_handler` factories in `harness.mail.commands`, `harness.mail.queries`,
`harness.kanban.commands` and `harness.kanban.queries` take a repository (or
read model) and a `logging.Logger`, and log each call through
`harness.common.decorators.apply_command_decorators` or
`apply_query_decorators`. `log_level(level)` is a context manager that
raises the minimum level of those records; `retry(backoff)` builds a
decorator that retries a command while it raises `RetryableError`.

```python
import io
import logging

from harness.kanban.app import Application, Commands
from harness.kanban.cli import run
from harness.kanban.commands import create_board_handler


class MemoryBoards:
    def __init__(self):
        self.boards = {}

    def create(self, board):
        self.boards[board.id] = board

    def get(self, board_id):
        return self.boards[board_id]

    def update(self, board_id, board):
        self.boards[board_id] = board


repo = MemoryBoards()
logger = logging.getLogger("kanban")
application = Application(commands=Commands(create_board=create_board_handler(repo, logger)))

out = io.StringIO()
run(application, ["board", "create", "--id", "b1", "--name", "Demo", "--columns", "To Do,Done"], out)
print(out.getvalue())
# Board "b1" created.
```

## Event bus

```python
from harness.common.events import Bus

bus = Bus()
bus.subscribe(lambda event: print("got", event))
bus.run()
bus.publish("hello")
bus.drain()   # wait until every published event has been handled
bus.stop()
```

A listener that raises is logged and the remaining listeners still run. The
bus can also be used as a context manager, which runs and stops it.

`harness.mail.delivery.InboxDeliveryHandler` and `OutboxDeliveryHandler`
are meant to be subscribed to the bus (`bus.subscribe(handler.handle)`):
the first moves queued inbound mail into the Inbox, the second queues mail
moved to the Outbox and hands it to a `MailPort` for sending.

## Postmark webhook

`harness.mail.postmark.create_app(application, username, password)` returns
a WSGI application with a single route, `POST /webhooks/postmark/inbound`.
Requests without the right basic-auth credentials get 401, unreadable
payloads or dates get 400, accepted mail is queued into the Inbox with the
application's `enqueue` command and answered with 200, mail rejected by the
Inbox allow-list is answered with 202, and any other failure with 500.

## Command-line front ends

`harness.mail.cli.run(application, bus, argv, out)` and
`harness.kanban.cli.run(application, argv, out)` take an application, an
argument list and an output stream, so they can be embedded in your own
entry point; bad command lines raise `CliError`.

- Mail: `draft`, `list`, `move`, `read`, `send` and `queue config`, each
  with an optional `--json` output.
- Kanban: `board create`, `card add|move|edit|archive|list|get` and
  `column add|remove`; every command except `board create` requires
  `--board-id`. `card archive --stale` takes durations such as `168h` or
  `1h30m` (default 30 days). `card list --limit` is accepted but every card
  of the column is listed.

## What the package does not do

- **No storage.** `EmailRepository`, `QueueRepository`, `QueueConfigWriter`,
  `ReadModel` and `BoardRepository` are protocols; you supply the
  implementations that keep e-mails, queues and boards.
- **No outgoing mail.** Sending goes through a `MailPort` you provide; no
  Postmark (or other) sender is included.
- **No ready-made applications or commands.** Nothing wires the handlers into
  an `Application`, no console command is installed, and no server is
  started: serve the webhook app with a WSGI server of your choice.