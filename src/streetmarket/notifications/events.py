from protean.fields import Boolean, Identifier, String

from streetmarket.domain import streetmarket


@streetmarket.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id = Identifier(required=True)
    recipient_id = Identifier()
    kind = String(required=True)
    channel = String(required=True)
    fallback = Boolean(default=False)


@streetmarket.event(part_of="Notification")
class NotificationFailed:
    __version__ = 1

    notification_id = Identifier(required=True)
    recipient_id = Identifier()
    kind = String(required=True)
    reason = String()
