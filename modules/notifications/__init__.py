"""
Notifications module - in-app notifications for profiles.

Public interface:
- INotifier: Used by other modules to notify a profile
- INotificationRepository: Notification persistence
- Notification, NotificationType, NotificationsState: Data models
"""

from .interfaces import INotificationRepository, INotifier
from .models import Notification, NotificationsState, NotificationType

__all__ = [
    "INotificationRepository",
    "INotifier",
    "Notification",
    "NotificationsState",
    "NotificationType",
]
