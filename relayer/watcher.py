"""
Source Watcher

Polls the source event feed with a timestamp cursor and hands new deposit
events to a handler (normally RelayOrchestrator.handle_events).

Delivery is at-least-once: the feed is queried inclusively on the cursor,
so a restart or a shared millisecond can redeliver events. The handler's
dedup map absorbs the overlap.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Protocol

from core.config.runtime import RelayerConfig
from core.schemas.bridge import SourceEvent
from core.schemas.errors import TransientIOException

logger = logging.getLogger(__name__)


class EventFeed(Protocol):
    """Source of deposit events ordered by non-decreasing timestamp."""

    def events_since(self, cursor: int, limit: Optional[int] = None) -> list[SourceEvent]:
        ...


EventHandler = Callable[[list[SourceEvent]], Any]


class SourceWatcher:
    """Cursor-based poller over an EventFeed."""

    def __init__(
        self,
        feed: EventFeed,
        handler: EventHandler,
        *,
        config: Optional[RelayerConfig] = None,
        cursor: int = 0,
    ):
        self.config = config or RelayerConfig()
        self._feed = feed
        self._handler = handler
        self._lock = threading.Lock()

        self._cursor = cursor
        # Commitments already delivered at exactly self._cursor
        self._at_cursor: set[str] = set()

        self._polls = 0
        self._transient_failures = 0
        self._last_poll_at: Optional[float] = None
        self._last_error: Optional[str] = None
        self._running = False

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    def restore_cursor(self, cursor: int) -> None:
        """Resume from a persisted cursor. The cursor never moves backwards."""
        with self._lock:
            if cursor > self._cursor:
                self._cursor = cursor
                self._at_cursor = set()

    def poll_once(self, handler: Optional[EventHandler] = None) -> list[SourceEvent]:
        """
        Fetch one batch and deliver it.

        Transient feed failures are logged and retried on the next cycle.
        The cursor only advances after the handler accepted the batch.

        Args:
            handler: Receives this batch instead of the watcher's own handler

        Returns:
            The events handed to the handler (possibly empty)
        """
        with self._lock:
            cursor = self._cursor
            already_seen = set(self._at_cursor)
        batch_size = max(1, self.config.batch_size)

        self._polls += 1
        self._last_poll_at = time.time()
        try:
            fetched = self._feed.events_since(cursor, limit=batch_size + len(already_seen))
        except TransientIOException as e:
            self._transient_failures += 1
            self._last_error = e.message
            logger.warning(f"Transient failure polling source (cursor {cursor}): {e.message}")
            return []

        events = [
            event for event in fetched
            if not (event.timestamp == cursor and event.commitment in already_seen)
        ][:batch_size]
        if not events:
            return []

        logger.info(f"Received {len(events)} new event(s)")
        (handler or self._handler)(events)
        self._advance(events)
        return events

    def _advance(self, events: list[SourceEvent]) -> None:
        newest = max(event.timestamp for event in events)
        at_newest = {event.commitment for event in events if event.timestamp == newest}
        with self._lock:
            if newest > self._cursor:
                self._cursor = newest
                self._at_cursor = at_newest
            elif newest == self._cursor:
                self._at_cursor |= at_newest

    def run(self, stop_event: threading.Event) -> None:
        """Poll until stop_event is set."""
        self._running = True
        logger.info(f"Watching source (poll interval {self.config.poll_interval_s}s)")
        try:
            while not stop_event.is_set():
                try:
                    self.poll_once()
                except Exception as e:
                    self._last_error = str(e)
                    logger.exception("Error handling source events")
                stop_event.wait(self.config.poll_interval_s)
        finally:
            self._running = False
            logger.info("Watcher stopped")

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "cursor": self.cursor,
            "polls": self._polls,
            "transient_failures": self._transient_failures,
            "last_poll_at": self._last_poll_at,
            "last_error": self._last_error,
        }


__all__ = ["EventFeed", "EventHandler", "SourceWatcher"]
