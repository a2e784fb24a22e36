"""In-memory presenter — records render requests, toasts and notifications."""

from enum import Enum

from streetmarket.notifications.presentation_port import PresentationPort, View


class Permission(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


class RecordingPresenter(PresentationPort):
    """Presenter backing the HTTP API and the tests.

    The API reads ``toasts`` and ``platform_notifications`` back to clients;
    tests assert on them directly.
    """

    def __init__(self, permission: str = Permission.GRANTED.value):
        self.renders: list[str] = []
        self.toasts: list[dict] = []
        self.platform_notifications: list[dict] = []
        self.permission = Permission(permission).value

    def configure(self, permission: str = Permission.GRANTED.value):
        """Change what the platform notification channel does next."""
        self.permission = Permission(permission).value

    def render(self, view: View) -> None:
        self.renders.append(View(view).value)

    def toast(self, text: str, duration_ms: int = 3000) -> None:
        self.toasts.append({"text": text, "duration_ms": duration_ms})

    def platform_notify(self, title: str, body: str) -> bool:
        if self.permission != Permission.GRANTED.value:
            return False
        self.platform_notifications.append({"title": title, "body": body})
        return True

    def drain_toasts(self) -> list[dict]:
        """Return and forget the toasts recorded so far."""
        toasts, self.toasts = self.toasts, []
        return toasts

    def reset(self):
        self.renders.clear()
        self.toasts.clear()
        self.platform_notifications.clear()
        self.permission = Permission.GRANTED.value
