from streetmarket.domain import streetmarket
from streetmarket.notifications.notification import Notification


@streetmarket.repository(part_of=Notification)
class NotificationRepository:
    def newest_first(self) -> list[Notification]:
        return sorted(self._dao.query.all().items, key=lambda n: n.sequence, reverse=True)

    def for_recipient(self, recipient_id, limit: int | None = None) -> list[Notification]:
        """Notices addressed to ``recipient_id``, newest first."""
        found = [n for n in self.newest_first() if n.recipient_id and str(n.recipient_id) == str(recipient_id)]
        return found[:limit] if limit else found

    def prune(self, keep: int) -> int:
        """Drop all but the newest ``keep`` notifications. Returns how many went."""
        stale = self.newest_first()[keep:]
        for notification in stale:
            self._dao.delete(notification)
        return len(stale)
