"""Notifier — shows a notice to the user and logs it as a Notification.

In ``popup`` mode every notice is an in-app toast. In ``browser`` mode the
platform notification channel is tried first and a toast is shown when the
platform refuses (unsupported, or permission not granted). Presenter errors
are recorded on the Notification and logged; they never reach the caller.
"""

from enum import Enum

import structlog
from protean.utils.globals import current_domain

from streetmarket.notifications.notification import Notification, NotificationChannel
from streetmarket.notifications.presentation_port import PresentationPort

logger = structlog.get_logger(__name__)

# Only the newest notices are kept in the log
NOTIFICATION_LOG_LIMIT = 200


class NotificationMode(Enum):
    POPUP = "popup"
    BROWSER = "browser"


def toast_text(title: str, body: str | None) -> str:
    return f"{title}: {body}" if body else title


class Notifier:
    def __init__(
        self,
        presenter: PresentationPort,
        mode: str = NotificationMode.POPUP.value,
        clock=None,
        log_limit: int = NOTIFICATION_LOG_LIMIT,
    ):
        self.presenter = presenter
        self.mode = NotificationMode(mode).value
        self.clock = clock
        self.log_limit = log_limit

    def set_mode(self, mode: str):
        self.mode = NotificationMode(mode).value

    def notify(self, recipient_id, kind, title, body=None, duration_ms=5000) -> Notification:
        browser = self.mode == NotificationMode.BROWSER.value
        now = self.clock.now() if self.clock else None
        repo = current_domain.repository_for(Notification)
        newest = repo.newest_first()[:1]
        notification = Notification.create(
            recipient_id=str(recipient_id) if recipient_id else None,
            kind=kind,
            channel=NotificationChannel.PLATFORM.value if browser else NotificationChannel.TOAST.value,
            title=title,
            body=body,
            created_at=now,
            sequence=(newest[0].sequence + 1) if newest else 1,
        )

        try:
            if browser and self.presenter.platform_notify(title, body or ""):
                notification.mark_sent(NotificationChannel.PLATFORM.value, sent_at=now)
            else:
                self.presenter.toast(toast_text(title, body), duration_ms)
                notification.mark_sent(NotificationChannel.TOAST.value, fallback=browser, sent_at=now)
        except Exception as exc:
            logger.exception("Notification dispatch failed", kind=kind, recipient_id=str(recipient_id), error=str(exc))
            notification.mark_failed(str(exc))

        repo.add(notification)
        repo.prune(self.log_limit)
        logger.info(
            "Notification dispatched",
            notification_id=str(notification.id),
            kind=kind,
            channel=notification.channel,
            status=notification.status,
            fallback=notification.fallback,
        )
        return notification
