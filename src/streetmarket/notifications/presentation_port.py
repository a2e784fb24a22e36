"""Presentation port — abstract interface to whatever shows things to the user."""

from abc import ABC, abstractmethod
from enum import Enum


class View(Enum):
    VENDORS = "vendors"
    CART = "cart"
    ORDERS = "orders"
    FAVORITES = "favorites"
    ACTIVITY = "activity"


class PresentationPort(ABC):
    """Receives render requests, in-app toasts and platform notifications."""

    @abstractmethod
    def render(self, view: View) -> None:
        """Ask the presentation layer to refresh ``view``."""
        ...

    @abstractmethod
    def toast(self, text: str, duration_ms: int = 3000) -> None:
        """Show a transient in-app message."""
        ...

    @abstractmethod
    def platform_notify(self, title: str, body: str) -> bool:
        """Show an OS-level notification.

        Returns:
            False when the platform does not support notifications or the
            user has not granted permission.
        """
        ...
