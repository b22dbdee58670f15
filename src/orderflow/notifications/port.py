"""Notifier port — abstract interface for outbound order notifications.

Notifications are fire-and-forget: adapters raise ``NotificationFailed`` when
delivery fails, and callers log it without touching the order.
"""

from abc import ABC, abstractmethod


class NotificationFailed(Exception):
    """The adapter could not deliver a notification."""


class NotificationPort(ABC):
    """Abstract interface for notifier adapters."""

    @abstractmethod
    def order_rejected(self, order_id: str, order_number: str, reason: str) -> None:
        """Tell the seller that cartera rejected the order."""
        ...

    @abstractmethod
    def order_ready(self, order_id: str, order_number: str) -> None:
        """Tell dispatch that the order is packed and ready."""
        ...
