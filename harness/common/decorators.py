"""Logging and retry wrappers for command and query handlers.

A command handler is a callable taking one command object and returning
nothing; a query handler takes one query object and returns its result.
Failures are raised as exceptions.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Union

CommandHandler = Callable[[Any], None]
QueryHandler = Callable[[Any], Any]
Backoff = Union[Iterable[float], Callable[[], Iterable[float]]]

BODY_FIELD = "command_body"

_log_level: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "harness_decorator_log_level", default=None
)


@contextlib.contextmanager
def log_level(level: int) -> Iterator[None]:
    """Raise the minimum level of handler log records inside the block."""
    token = _log_level.set(level)
    try:
        yield
    finally:
        _log_level.reset(token)


def _action_name(message: Any) -> str:
    return type(message).__name__


class _ScopedLog:
    """Emits records carrying a fixed set of fields, honouring log_level()."""

    def __init__(self, logger: logging.Logger, fields: dict[str, Any]) -> None:
        self._logger = logger
        self._fields = fields
        self._minimum = _log_level.get()

    def log(self, level: int, message: str, **extra: Any) -> None:
        if self._minimum is not None and level < self._minimum:
            return
        self._logger.log(level, message, extra={**self._fields, **extra})


def _command_logging(handler: CommandHandler, logger: logging.Logger) -> CommandHandler:
    def handle(command: Any) -> None:
        log = _ScopedLog(
            logger, {"command": _action_name(command), BODY_FIELD: repr(command)}
        )
        started = time.monotonic()
        log.log(logging.DEBUG, "Executing command")
        try:
            handler(command)
        except Exception as exc:
            log.log(logging.ERROR, "Failed to execute command", error=str(exc))
            raise
        log.log(
            logging.INFO,
            "Command executed successfully",
            duration=time.monotonic() - started,
        )

    return handle


def _query_logging(handler: QueryHandler, logger: logging.Logger) -> QueryHandler:
    def handle(query: Any) -> Any:
        log = _ScopedLog(
            logger, {"query": _action_name(query), "query_body": repr(query)}
        )
        started = time.monotonic()
        log.log(logging.DEBUG, "Executing query")
        try:
            result = handler(query)
        except Exception as exc:
            log.log(logging.ERROR, "Failed to execute query", error=str(exc))
            raise
        log.log(
            logging.DEBUG,
            "Query executed successfully",
            duration=time.monotonic() - started,
        )
        return result

    return handle


def _decorate(handler: Callable, decorators: Iterable[Any]) -> Callable:
    for decorator in decorators:
        decorate = getattr(decorator, "decorate", None)
        handler = decorate(handler) if decorate is not None else decorator(handler)
    return handler


def apply_command_decorators(
    handler: CommandHandler, logger: logging.Logger, *decorators: Any
) -> CommandHandler:
    """Wrap a command handler in logging, then in each decorator in turn.

    A decorator is either an object with a ``decorate`` method or a plain
    callable taking and returning a handler.
    """
    return _decorate(_command_logging(handler, logger), decorators)


def apply_query_decorators(
    handler: QueryHandler, logger: logging.Logger, *decorators: Any
) -> QueryHandler:
    """Wrap a query handler in logging, then in each decorator in turn."""
    return _decorate(_query_logging(handler, logger), decorators)


class RetryableError(Exception):
    """Marks an error as worth another attempt."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class RetryDecorator:
    """Retries a command while it raises RetryableError.

    ``backoff`` is an iterable of delays in seconds, or a callable returning
    one; each handled command walks a fresh sequence. When the delays run out
    the wrapped error is raised.
    """

    backoff: Backoff
    sleep: Callable[[float], None] = time.sleep

    def decorate(self, handler: CommandHandler) -> CommandHandler:
        def handle(command: Any) -> None:
            source = self.backoff() if callable(self.backoff) else self.backoff
            delays = iter(source)
            while True:
                try:
                    handler(command)
                    return
                except RetryableError as exc:
                    delay = next(delays, None)
                    if delay is None:
                        raise exc.error from None
                    self.sleep(delay)

        return handle


def retry(backoff: Backoff) -> RetryDecorator:
    """Build a retry decorator for the given backoff."""
    return RetryDecorator(backoff)