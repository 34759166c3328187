"""An in-process event bus delivering events to listeners on a worker thread."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional

Listener = Callable[[Any], None]

_log = logging.getLogger(__name__)


class Bus:
    """Buffers published events and hands each one to every listener in turn.

    Listener errors are logged and do not stop the remaining listeners.
    """

    def __init__(self, capacity: int = 100) -> None:
        self._events: queue.Queue[Any] = queue.Queue(maxsize=capacity)
        self._listeners: list[Listener] = []
        self._stopped = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def run(self) -> None:
        """Start delivering events in the background."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._stopped.clear()
        self._worker = threading.Thread(target=self._loop, name="event-bus", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        """Stop delivering events; events still buffered stay undelivered."""
        self._stopped.set()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join()

    def publish(self, event: Any) -> None:
        """Buffer an event, blocking while the buffer is full."""
        self._events.put(event)

    def drain(self) -> None:
        """Wait until every published event has been delivered."""
        self._events.join()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def __enter__(self) -> "Bus":
        self.run()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _loop(self) -> None:
        while not self._stopped.is_set():
            try:
                event = self._events.get(timeout=0.05)
            except queue.Empty:
                continue
            try:
                for listener in list(self._listeners):
                    try:
                        listener(event)
                    except Exception:
                        _log.exception("error processing event")
            finally:
                self._events.task_done()