"""Notification sinks for settled remote-call failures."""

from leavedesk.notifications.base import (
    ErrorNotifier,
    ErrorToast,
    NotificationManager,
    ToastLevel,
)
from leavedesk.notifications.console import ToastNotifier

__all__ = [
    "ErrorNotifier",
    "ErrorToast",
    "NotificationManager",
    "ToastLevel",
    "ToastNotifier",
]
