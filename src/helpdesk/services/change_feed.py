"""
Change subscription manager.

One upstream subscription per process, fanned out locally to listeners
registered per table and event type. Connection loss is retried with a
linearly growing delay; when retries run out the manager reports
``disconnected`` to its state listeners and stops without raising.
"""

from __future__ import annotations

import json
import queue
import select
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import psycopg2
import psycopg2.extensions
from pydantic import ValidationError as PydanticValidationError

from helpdesk.models.notification import ChangeEvent, ChangeType, ConnectionState
from helpdesk.repositories.schema import CHANGE_CHANNEL
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

Listener = Callable[[ChangeEvent], None]
StateListener = Callable[[ConnectionState], None]


class ChangeSourceError(Exception):
    """The upstream change stream is unavailable."""


def decode_notification(payload: str) -> Optional[ChangeEvent]:
    """Parse a trigger payload; malformed payloads are logged and dropped."""
    try:
        return ChangeEvent.model_validate(json.loads(payload))
    except (ValueError, PydanticValidationError) as exc:
        logger.warning("Dropping malformed change payload", extra={"error": str(exc)})
        return None


class ChangeSource(ABC):

    @abstractmethod
    def connect(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def poll(self, timeout: float) -> List[ChangeEvent]:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError


class PostgresChangeSource(ChangeSource):
    """LISTEN on the channel fed by ``schema.install_change_triggers``."""

    def __init__(self, dsn: str, channel: str = CHANGE_CHANNEL):
        self.dsn = dsn
        self.channel = channel
        self._conn = None

    def connect(self) -> None:
        try:
            self._conn = psycopg2.connect(self.dsn)
            self._conn.set_isolation_level(psycopg2.extensions.ISOLATION_LEVEL_AUTOCOMMIT)
            with self._conn.cursor() as cursor:
                cursor.execute(f"LISTEN {self.channel};")
        except psycopg2.Error as exc:
            self.close()
            raise ChangeSourceError(str(exc)) from exc

    def poll(self, timeout: float) -> List[ChangeEvent]:
        if self._conn is None or self._conn.closed:
            raise ChangeSourceError("not connected")
        try:
            ready, _, _ = select.select([self._conn], [], [], timeout)
            if not ready:
                return []
            self._conn.poll()
        except (psycopg2.Error, OSError) as exc:
            raise ChangeSourceError(str(exc)) from exc

        events: List[ChangeEvent] = []
        while self._conn.notifies:
            notification = self._conn.notifies.pop(0)
            event = decode_notification(notification.payload)
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None


class QueueChangeSource(ChangeSource):
    """In-process source; tests and local tools push events into it."""

    def __init__(self):
        self.events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.connected = False

    def push(self, event: ChangeEvent) -> None:
        self.events.put(event)

    def connect(self) -> None:
        self.connected = True

    def poll(self, timeout: float) -> List[ChangeEvent]:
        if not self.connected:
            raise ChangeSourceError("not connected")
        try:
            batch = [self.events.get(timeout=timeout)]
        except queue.Empty:
            return []
        while True:
            try:
                batch.append(self.events.get_nowait())
            except queue.Empty:
                return batch

    def close(self) -> None:
        self.connected = False


class SubscriptionManager:
    """Owns the upstream connection and fans events out to local listeners."""

    def __init__(
        self,
        source: ChangeSource,
        max_retries: int = 5,
        retry_delay: float = 2.0,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.source = source
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.state: Optional[ConnectionState] = None
        self._sleep = sleep
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._listeners: Dict[int, Tuple[str, Optional[frozenset], Listener]] = {}
        self._state_listeners: Dict[int, StateListener] = {}
        self._next_id = 0

    def subscribe(
        self,
        table: str,
        callback: Listener,
        event_types: Optional[Iterable[ChangeType]] = None,
    ) -> Callable[[], None]:
        """Register ``callback`` for changes on ``table``; returns an unsubscribe callable."""
        kinds = frozenset(ChangeType(kind) for kind in event_types) if event_types else None
        with self._lock:
            token = self._next_id
            self._next_id += 1
            self._listeners[token] = (table, kinds, callback)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    def on_state_change(self, callback: StateListener) -> Callable[[], None]:
        with self._lock:
            token = self._next_id
            self._next_id += 1
            self._state_listeners[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._state_listeners.pop(token, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [
                callback
                for table, kinds, callback in self._listeners.values()
                if table == event.table and (kinds is None or event.event_type in kinds)
            ]
        for callback in targets:
            try:
                callback(event)
            except Exception as exc:
                logger.warning(
                    "Change listener failed",
                    extra={"table": event.table, "event_type": event.event_type.value, "error": str(exc)},
                )

    def _set_state(self, state: ConnectionState) -> None:
        self.state = state
        with self._lock:
            listeners = list(self._state_listeners.values())
        for callback in listeners:
            try:
                callback(state)
            except Exception as exc:
                logger.warning("State listener failed", extra={"state": state.value, "error": str(exc)})

    def _wait(self, seconds: float) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            self._stop.wait(seconds)

    def run(self, poll_timeout: float = 1.0) -> None:
        """Connect, pump events and reconnect until stopped or out of retries."""
        attempt = 0
        recovering = False
        while not self._stop.is_set():
            try:
                self.source.connect()
                self._set_state(
                    ConnectionState.RECONNECTED if recovering else ConnectionState.CONNECTED
                )
                attempt = 0
                recovering = False
                logger.info("Change feed connected")
                while not self._stop.is_set():
                    for event in self.source.poll(poll_timeout):
                        self.dispatch(event)
            except ChangeSourceError as exc:
                self.source.close()
                if self._stop.is_set():
                    break
                recovering = True
                attempt += 1
                if attempt > self.max_retries:
                    logger.error(
                        "Change feed disconnected; retries exhausted",
                        extra={"attempts": attempt - 1, "error": str(exc)},
                    )
                    self._set_state(ConnectionState.DISCONNECTED)
                    return
                delay = self.retry_delay * attempt
                logger.warning(
                    "Change feed connection lost; retrying",
                    extra={"attempt": attempt, "delay_seconds": delay, "error": str(exc)},
                )
                self._wait(delay)
        self.source.close()

    def start(self, poll_timeout: float = 1.0) -> threading.Thread:
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, kwargs={"poll_timeout": poll_timeout}, name="change-feed", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
