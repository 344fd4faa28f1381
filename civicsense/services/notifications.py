"""
Best-effort lifecycle notifications.

Publishing never raises: a failing subscriber is logged and skipped, so the
state change that triggered the event is never affected. Events are also
kept in a bounded buffer that polling clients read with ``recent()``.
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional

from civicsense.models.common import utcnow

logger = logging.getLogger(__name__)

REPORT_CREATED = "report.created"
REPORT_STATUS_CHANGED = "report.status_changed"
REPORT_ASSIGNED = "report.assigned"
REPORT_UNASSIGNED = "report.unassigned"


@dataclass
class Notification:
    seq: int
    type: str
    data: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: utcnow().isoformat())

    def to_dict(self) -> dict:
        return {"seq": self.seq, "type": self.type, "data": self.data, "timestamp": self.timestamp}


Subscriber = Callable[[Notification], None]


class NotificationBus:
    def __init__(self, buffer_size: int = 500):
        self._subscribers: List[Subscriber] = []
        self._buffer: Deque[Notification] = deque(maxlen=buffer_size)
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def last_seq(self) -> int:
        return self._buffer[-1].seq if self._buffer else 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, type: str, data: Optional[Dict[str, Any]] = None) -> Optional[Notification]:
        try:
            with self._lock:
                event = Notification(seq=next(self._seq), type=type, data=dict(data or {}))
                self._buffer.append(event)
        except Exception:
            logger.exception("Failed to record notification %s", type)
            return None

        self.dispatch(event)
        return event

    def dispatch(self, event: Notification) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Notification subscriber failed for %s", event.type)

    def recent(self, after: int = 0, limit: int = 100) -> List[Notification]:
        with self._lock:
            events = [e for e in self._buffer if e.seq > after]
        return events[:limit]


class NotificationService:
    """
    In-app events go to the bus. E-mail and WhatsApp messages are only
    queued; no transport is wired up.
    """

    def __init__(self, bus: NotificationBus):
        self.bus = bus
        self.email_queue: List[dict] = []
        self.whatsapp_queue: List[dict] = []
        self._ids = itertools.count(1)

    def send_in_app(self, type: str, data: Dict[str, Any]) -> Optional[Notification]:
        logger.info("In-app notification: %s", type)
        return self.bus.publish(type, data)

    def queue_email(self, to: str, subject: str, body: str, data: Optional[dict] = None) -> dict:
        item = {
            "id": str(next(self._ids)),
            "to": to,
            "subject": subject,
            "body": body,
            "data": data or {},
            "created_at": utcnow().isoformat(),
            "status": "queued",
        }
        self.email_queue.append(item)
        logger.info("Email queued for %s: %s", to, subject)
        return item

    def queue_whatsapp(self, to: str, message: str, data: Optional[dict] = None) -> dict:
        item = {
            "id": str(next(self._ids)),
            "to": to,
            "message": message,
            "data": data or {},
            "created_at": utcnow().isoformat(),
            "status": "queued",
        }
        self.whatsapp_queue.append(item)
        logger.info("WhatsApp queued for %s", to)
        return item

    def queue_status(self) -> dict:
        return {
            "email": {
                "queued": sum(1 for n in self.email_queue if n["status"] == "queued"),
                "total": len(self.email_queue),
            },
            "whatsapp": {
                "queued": sum(1 for n in self.whatsapp_queue if n["status"] == "queued"),
                "total": len(self.whatsapp_queue),
            },
            "last_seq": self.bus.last_seq,
        }

    def notify_report_created(
        self,
        tracking_id: str,
        category: str,
        has_location: bool,
        contact_info: Optional[str],
        anonymous: bool,
    ) -> None:
        try:
            self.send_in_app(REPORT_CREATED, {
                "tracking_id": tracking_id,
                "category": category,
                "has_location": has_location,
            })
            if anonymous or not contact_info:
                return
            self.queue_email(
                contact_info,
                f"Report Submitted - {tracking_id}",
                f"Your report has been submitted successfully. Tracking ID: {tracking_id}",
                {"tracking_id": tracking_id},
            )
            self.queue_whatsapp(
                contact_info,
                f"Your report {tracking_id} has been submitted successfully. "
                "We'll keep you updated on the progress.",
                {"tracking_id": tracking_id},
            )
        except Exception:
            logger.exception("Report created notification failed for %s", tracking_id)

    def notify_status_change(
        self,
        tracking_id: str,
        old_status: str,
        new_status: str,
        note: Optional[str],
        updated_by: str,
        contact_info: Optional[str],
        anonymous: bool,
    ) -> None:
        try:
            self.send_in_app(REPORT_STATUS_CHANGED, {
                "tracking_id": tracking_id,
                "old_status": old_status,
                "new_status": new_status,
                "note": note,
                "updated_by": updated_by,
            })
            if anonymous or not contact_info:
                return
            suffix = f". Note: {note}" if note else ""
            self.queue_email(
                contact_info,
                f"Report Update - {tracking_id}",
                f"Your report status has been updated to: {new_status}{suffix}",
                {"tracking_id": tracking_id, "old_status": old_status, "new_status": new_status},
            )
            self.queue_whatsapp(
                contact_info,
                f"Update on your report {tracking_id}: Status changed to {new_status}{suffix}",
                {"tracking_id": tracking_id, "new_status": new_status},
            )
        except Exception:
            logger.exception("Status change notification failed for %s", tracking_id)
