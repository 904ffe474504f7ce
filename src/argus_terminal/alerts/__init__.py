"""Price alerts and the in-app notification feed."""

from .models import AlertCondition, Notification, NotificationType, PriceAlert
from .monitor import ALERT_CHECK_INTERVAL_SECONDS, AlertBook, AlertListener, AlertMonitor
from .notifier import MAX_NOTIFICATIONS, NotificationListener, Notifier

__all__ = [
    "ALERT_CHECK_INTERVAL_SECONDS",
    "AlertBook",
    "AlertCondition",
    "AlertListener",
    "AlertMonitor",
    "MAX_NOTIFICATIONS",
    "Notification",
    "NotificationListener",
    "NotificationType",
    "Notifier",
    "PriceAlert",
]
