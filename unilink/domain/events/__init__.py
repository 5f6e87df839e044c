"""
EVENTS - Domain occurrences pushed to clients. Never persisted.
"""

from unilink.domain.events.notification_event import NewMessageEvent, NotificationEvent

__all__ = [
    "NotificationEvent",
    "NewMessageEvent",
]
