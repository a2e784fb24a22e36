"""Tests for notification dispatch, fallback and the notification log."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from streetmarket.notifications.notification import (
    Notification,
    NotificationChannel,
    NotificationKind,
    NotificationStatus,
)
from streetmarket.notifications.notifier import NOTIFICATION_LOG_LIMIT, NotificationMode, Notifier, toast_text
from streetmarket.notifications.recording_presenter import Permission, RecordingPresenter


class _ExplodingPresenter(RecordingPresenter):
    def toast(self, text, duration_ms=3000):
        raise RuntimeError("display gone")


def _notify(notifier, title="Fresh Samosas is nearby (0.02 km)", body="Hot snacks"):
    return notifier.notify("user-001", NotificationKind.PROXIMITY.value, title, body, duration_ms=5000)


class TestToastText:
    def test_with_body(self):
        assert toast_text("Order abc placed", "vendor will be notified") == "Order abc placed: vendor will be notified"

    def test_without_body(self):
        assert toast_text("Order abc accepted", None) == "Order abc accepted"


class TestPopupMode:
    def test_shows_a_toast(self, presenter, clock):
        notification = _notify(Notifier(presenter, clock=clock))

        assert presenter.toasts == [{"text": "Fresh Samosas is nearby (0.02 km): Hot snacks", "duration_ms": 5000}]
        assert presenter.platform_notifications == []
        assert notification.status == NotificationStatus.SENT.value
        assert notification.channel == NotificationChannel.TOAST.value
        assert notification.fallback is False
        assert notification.sent_at == clock.now()

    def test_is_logged(self, presenter):
        notification = _notify(Notifier(presenter))
        stored = current_domain.repository_for(Notification).get(notification.id)
        assert stored.title == "Fresh Samosas is nearby (0.02 km)"
        assert stored.recipient_id == "user-001"


class TestBrowserMode:
    def test_uses_platform_channel_when_granted(self, presenter):
        notification = _notify(Notifier(presenter, mode=NotificationMode.BROWSER.value))

        assert presenter.platform_notifications == [{"title": "Fresh Samosas is nearby (0.02 km)", "body": "Hot snacks"}]
        assert presenter.toasts == []
        assert notification.channel == NotificationChannel.PLATFORM.value

    @pytest.mark.parametrize("permission", [Permission.DENIED.value, Permission.UNSUPPORTED.value])
    def test_falls_back_to_toast(self, permission):
        presenter = RecordingPresenter(permission=permission)
        notification = _notify(Notifier(presenter, mode=NotificationMode.BROWSER.value))

        assert presenter.platform_notifications == []
        assert len(presenter.toasts) == 1
        assert notification.channel == NotificationChannel.TOAST.value
        assert notification.fallback is True

    def test_mode_can_change(self, presenter):
        notifier = Notifier(presenter)
        notifier.set_mode("browser")
        _notify(notifier)
        assert len(presenter.platform_notifications) == 1

    def test_unknown_mode_rejected(self, presenter):
        with pytest.raises(ValueError):
            Notifier(presenter, mode="carrier-pigeon")


class TestFailures:
    def test_presenter_errors_are_recorded_not_raised(self):
        notification = _notify(Notifier(_ExplodingPresenter()))

        assert notification.status == NotificationStatus.FAILED.value
        assert notification.failure_reason == "display gone"
        stored = current_domain.repository_for(Notification).get(notification.id)
        assert stored.status == NotificationStatus.FAILED.value

    def test_sent_notification_cannot_fail(self, presenter):
        notification = _notify(Notifier(presenter))
        with pytest.raises(ValidationError):
            notification.mark_failed("too late")


class TestNotificationLog:
    def test_keeps_only_the_newest(self, presenter):
        notifier = Notifier(presenter, log_limit=3)
        for n in range(5):
            _notify(notifier, title=f"Notice {n}", body=None)

        stored = current_domain.repository_for(Notification).newest_first()
        assert [n.title for n in stored] == ["Notice 4", "Notice 3", "Notice 2"]
        # Every notice was still shown
        assert len(presenter.toasts) == 5

    def test_default_limit(self, presenter):
        assert Notifier(presenter).log_limit == NOTIFICATION_LOG_LIMIT

    def test_for_recipient(self, presenter):
        notifier = Notifier(presenter)
        _notify(notifier, title="First")
        notifier.notify("user-002", NotificationKind.SYSTEM.value, "Someone else")
        _notify(notifier, title="Second")

        repo = current_domain.repository_for(Notification)
        assert [n.title for n in repo.for_recipient("user-001")] == ["Second", "First"]
        assert [n.title for n in repo.for_recipient("user-001", limit=1)] == ["Second"]
        assert repo.for_recipient("user-003") == []
