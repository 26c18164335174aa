"""
Notification relay.

Turns ticket and message change events into in-app alerts for one staff
viewer. The alert list is capped, newest first, persisted through an
``AlertStore`` and exposed as immutable snapshots.
"""

from __future__ import annotations

import json
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from helpdesk.models.notification import Alert, AlertKind, ChangeEvent, ChangeType, ConnectionState
from helpdesk.models.ticket import STATUS_LABELS, TicketStatus
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

AlertSink = Callable[[Alert], None]
TitleLookup = Callable[[str], Optional[str]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def status_label(status: Optional[str]) -> str:
    try:
        return STATUS_LABELS[TicketStatus(status)]
    except ValueError:
        return status or ""


class AlertStore(ABC):
    """Where the alert ledger survives between sessions."""

    @abstractmethod
    def load(self) -> List[Alert]:
        raise NotImplementedError

    @abstractmethod
    def save(self, alerts: Sequence[Alert]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class MemoryAlertStore(AlertStore):

    def __init__(self, alerts: Iterable[Alert] = ()):
        self._alerts: Tuple[Alert, ...] = tuple(alerts)

    def load(self) -> List[Alert]:
        return list(self._alerts)

    def save(self, alerts: Sequence[Alert]) -> None:
        self._alerts = tuple(alerts)

    def clear(self) -> None:
        self._alerts = ()


class JsonFileAlertStore(AlertStore):
    """Alerts as a JSON array in a local file."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[Alert]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [Alert.model_validate(item) for item in raw]
        except (ValueError, TypeError, PydanticValidationError) as exc:
            logger.error("Could not load stored alerts", extra={"path": str(self.path), "error": str(exc)})
            return []

    def save(self, alerts: Sequence[Alert]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [alert.model_dump(mode="json") for alert in alerts]
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class NotificationRelay:
    """Capped, persisted alert ledger fed by the change feed."""

    def __init__(
        self,
        store: Optional[AlertStore] = None,
        viewer_id: Optional[str] = None,
        ticket_title_lookup: Optional[TitleLookup] = None,
        max_alerts: int = 50,
        display_seconds: int = 5,
        sinks: Iterable[AlertSink] = (),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store or MemoryAlertStore()
        self.viewer_id = viewer_id
        self.ticket_title_lookup = ticket_title_lookup
        self.max_alerts = max_alerts
        self.display_window = timedelta(seconds=display_seconds)
        self.sinks: List[AlertSink] = list(sinks)
        self.clock = clock
        self.connection_state: Optional[ConnectionState] = None
        self._lock = threading.Lock()
        loaded = sorted(self.store.load(), key=lambda alert: alert.created_at, reverse=True)
        self._alerts: Tuple[Alert, ...] = tuple(loaded[: self.max_alerts])

    # Ledger

    def snapshot(self) -> Tuple[Alert, ...]:
        """All alerts, newest first."""
        return self._alerts

    @property
    def unread_count(self) -> int:
        return sum(1 for alert in self._alerts if not alert.read)

    def visible(self, now: Optional[datetime] = None) -> Tuple[Alert, ...]:
        """Unread alerts still inside their display window."""
        now = now or self.clock()
        return tuple(
            alert
            for alert in self._alerts
            if not alert.read and now - alert.created_at < self.display_window
        )

    def add(
        self,
        kind: AlertKind,
        title: str,
        message: str,
        ticket_id: Optional[str] = None,
        link: Optional[str] = None,
    ) -> Alert:
        alert = Alert(
            id=str(uuid.uuid4()),
            kind=kind,
            title=title,
            message=message,
            created_at=self.clock(),
            ticket_id=ticket_id,
            link=link,
        )
        with self._lock:
            self._replace((alert,) + self._alerts)
        self._notify_sinks(alert)
        return alert

    def mark_read(self, alert_id: str) -> bool:
        with self._lock:
            if not any(alert.id == alert_id and not alert.read for alert in self._alerts):
                return False
            self._replace(
                tuple(
                    alert.model_copy(update={"read": True}) if alert.id == alert_id else alert
                    for alert in self._alerts
                )
            )
            return True

    def mark_all_read(self) -> None:
        with self._lock:
            self._replace(tuple(alert.model_copy(update={"read": True}) for alert in self._alerts))

    def clear(self, alert_id: str) -> bool:
        with self._lock:
            remaining = tuple(alert for alert in self._alerts if alert.id != alert_id)
            if len(remaining) == len(self._alerts):
                return False
            self._replace(remaining)
            return True

    def clear_all(self) -> None:
        with self._lock:
            self._alerts = ()
            try:
                self.store.clear()
            except OSError as exc:
                logger.error("Could not clear stored alerts", extra={"error": str(exc)})

    def _replace(self, alerts: Tuple[Alert, ...]) -> None:
        self._alerts = alerts[: self.max_alerts]
        try:
            self.store.save(self._alerts)
        except OSError as exc:
            logger.error("Could not persist alerts", extra={"error": str(exc)})

    def _notify_sinks(self, alert: Alert) -> None:
        for sink in list(self.sinks):
            try:
                sink(alert)
            except Exception as exc:
                logger.warning("Alert sink failed", extra={"alert_id": alert.id, "error": str(exc)})

    # Change feed listeners

    def handle_change(self, change: ChangeEvent) -> Optional[Alert]:
        if change.table == "tickets":
            return self.handle_ticket_change(change)
        if change.table == "messages":
            return self.handle_message_change(change)
        return None

    def handle_ticket_change(self, change: ChangeEvent) -> Optional[Alert]:
        ticket_id = change.new.get("id")
        title = change.new.get("title", "")
        if change.event_type == ChangeType.INSERT:
            return self.add(
                AlertKind.INFO,
                "Novo Ticket",
                f"Um novo ticket foi criado: {title}",
                ticket_id=ticket_id,
                link=f"/tickets/{ticket_id}",
            )
        if change.event_type == ChangeType.UPDATE:
            old_status = change.old.get("status")
            new_status = change.new.get("status")
            if old_status is None or old_status == new_status:
                return None
            return self.add(
                AlertKind.SUCCESS,
                "Status Atualizado",
                f'Ticket "{title}" mudou para {status_label(new_status)}',
                ticket_id=ticket_id,
                link=f"/tickets/{ticket_id}",
            )
        return None

    def handle_message_change(self, change: ChangeEvent) -> Optional[Alert]:
        if change.event_type != ChangeType.INSERT:
            return None
        author = change.new.get("user_id")
        if self.viewer_id is not None and author == self.viewer_id:
            return None
        ticket_id = change.new.get("ticket_id")
        if not ticket_id or self.ticket_title_lookup is None:
            return None
        try:
            title = self.ticket_title_lookup(ticket_id)
        except Exception as exc:
            logger.warning("Ticket title lookup failed", extra={"ticket_id": ticket_id, "error": str(exc)})
            return None
        if title is None:
            return None
        return self.add(
            AlertKind.INFO,
            "Nova Mensagem",
            f'Nova mensagem no ticket "{title}"',
            ticket_id=ticket_id,
            link=f"/tickets/{ticket_id}",
        )

    def handle_connection_state(self, state: ConnectionState) -> Optional[Alert]:
        """Surface connection loss and recovery as alerts."""
        self.connection_state = state
        if state == ConnectionState.DISCONNECTED:
            return self.add(
                AlertKind.WARNING,
                "Erro de Conexão",
                "Falha ao conectar com notificações de tickets",
            )
        if state == ConnectionState.RECONNECTED:
            return self.add(AlertKind.SUCCESS, "Reconectado", "Notificações de tickets reconectadas")
        return None

    def attach(self, manager) -> Callable[[], None]:
        """Subscribe to a ``SubscriptionManager``; returns a callable that detaches."""
        unsubscribers = [
            manager.subscribe("tickets", self.handle_ticket_change),
            manager.subscribe("messages", self.handle_message_change, event_types=[ChangeType.INSERT]),
            manager.on_state_change(self.handle_connection_state),
        ]

        def detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return detach
