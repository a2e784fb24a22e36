"""Notification aggregate — a log of every notice shown to a user.

State Machine:
    PENDING → SENT
    PENDING → FAILED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from streetmarket.domain import streetmarket
from streetmarket.notifications.events import NotificationFailed, NotificationSent


class NotificationKind(Enum):
    PROXIMITY = "proximity"
    ORDER_READY = "order_ready"
    ORDER_PLACED = "order_placed"
    ORDER_STATUS = "order_status"
    SYSTEM = "system"


class NotificationChannel(Enum):
    TOAST = "toast"
    PLATFORM = "platform"


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.SENT: set(),  # Terminal
    NotificationStatus.FAILED: set(),  # Terminal
}


@streetmarket.aggregate(limit=-1)
class Notification:
    recipient_id = Identifier()
    kind = String(choices=NotificationKind, required=True)
    channel = String(choices=NotificationChannel, required=True)
    title = String(required=True, max_length=300)
    body = Text()
    status = String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    fallback = Boolean(default=False)
    failure_reason = String(max_length=500)
    created_at = DateTime()
    sent_at = DateTime()
    updated_at = DateTime()
    sequence = Integer(default=0)

    @classmethod
    def create(cls, recipient_id, kind, channel, title, body=None, created_at=None, sequence=0):
        now = created_at or datetime.now(UTC)
        return cls(
            recipient_id=recipient_id,
            kind=kind,
            channel=channel,
            title=title,
            body=body,
            status=NotificationStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            sequence=sequence,
        )

    def _assert_can_transition(self, target_status):
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, channel=None, fallback=False, sent_at=None):
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        if channel is not None:
            self.channel = channel
        self.fallback = fallback
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id) if self.recipient_id else None,
                kind=self.kind,
                channel=self.channel,
                fallback=fallback,
            )
        )

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        self.status = NotificationStatus.FAILED.value
        self.failure_reason = str(reason)[:500]
        self.updated_at = datetime.now(UTC)
        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id) if self.recipient_id else None,
                kind=self.kind,
                reason=self.failure_reason,
            )
        )
