"""Notification services package."""

from fintrack.services.notifications.center import (
    NotificationCenter,
    NotifierInterface,
)

__all__ = [
    "NotificationCenter",
    "NotifierInterface",
]
