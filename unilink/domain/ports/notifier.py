"""
Notifier Port - push a NotificationEvent to every live session of a user.

Implementations:
- unilink/infrastructure/realtime/notification_bus.py (in-process)
- unilink/infrastructure/realtime/redis_relay.py (across processes)
"""

from abc import ABC, abstractmethod

from unilink.domain.events.notification_event import NotificationEvent
from unilink.domain.value_objects.user_id import UserId


class Notifier(ABC):
    @abstractmethod
    async def broadcast(self, target_user_id: UserId, event: NotificationEvent) -> int:
        """
        Best-effort delivery of ``event`` to the user's open channels.

        Returns how many deliveries were started. Zero is not an error: the
        user may simply be offline.
        """
        ...
