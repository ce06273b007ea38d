"""Notification delivery.

Notifications are persisted first and then pushed to whoever is
listening for the addressed user.  :class:`NotificationHub` is the
in-process publish/subscribe point used by the websocket stream, and
:class:`NotificationFeed` is the per-session mirror a client keeps:
newest first, one ``info`` toast per pushed notification.
"""

import inspect
import logging
from collections import defaultdict
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import create_notification
from app.errors import StoreError
from app.models import Notification
from app.schemas import NotificationRead, Toast

logger = logging.getLogger(__name__)

NOTIFICATION_APPROVAL = "approval"
NOTIFICATION_CERTIFICATE = "certificate"
NOTIFICATION_NEW_COURSE = "new_course"
NOTIFICATION_BADGE = "badge"
NOTIFICATION_ADMIN_MESSAGE = "admin_message"

NOTIFICATION_TYPES = [
    NOTIFICATION_APPROVAL,
    NOTIFICATION_CERTIFICATE,
    NOTIFICATION_NEW_COURSE,
    NOTIFICATION_BADGE,
    NOTIFICATION_ADMIN_MESSAGE,
]


class NotificationHub:
    """Fan out new notifications to the subscribers of their user."""

    def __init__(self):
        self._subscribers: dict[int, list[Callable]] = defaultdict(list)

    def subscribe(self, user_id: int, callback: Callable) -> Callable[[], None]:
        """Register ``callback`` for ``user_id`` and return an unsubscriber.

        ``callback`` receives a :class:`NotificationRead` and may be a
        plain function or a coroutine function.
        """
        self._subscribers[user_id].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(user_id)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[user_id]

        return unsubscribe

    def subscriber_count(self, user_id: int) -> int:
        return len(self._subscribers.get(user_id, ()))

    async def publish(self, notification: NotificationRead) -> int:
        """Deliver to every subscriber of the addressed user, in order.

        Returns the number of subscribers that accepted the notification.
        """
        delivered = 0
        for callback in list(self._subscribers.get(notification.user_id, ())):
            try:
                result = callback(notification)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Notification subscriber for user %s failed",
                    notification.user_id,
                )
                continue
            delivered += 1
        return delivered


hub = NotificationHub()


class NotificationFeed:
    """Client-side view of one user's notifications."""

    def __init__(self, user_id: int, notifications: Iterable[NotificationRead] = ()):
        self.user_id = user_id
        self.notifications: list[NotificationRead] = sorted(
            notifications, key=lambda n: n.timestamp, reverse=True
        )
        self.toasts: list[Toast] = []

    def receive(self, notification: NotificationRead) -> bool:
        """Append a pushed notification; ignore foreign or repeated ones."""
        if notification.user_id != self.user_id:
            return False
        if any(n.id == notification.id for n in self.notifications):
            return False
        self.notifications.insert(0, notification)
        self.toasts.append(Toast(message=notification.message, type="info"))
        return True

    def mark_read(self, notification_id: int) -> bool:
        for index, n in enumerate(self.notifications):
            if n.id == notification_id:
                self.notifications[index] = n.model_copy(update={"read": True})
                return True
        return False

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def drain_toasts(self) -> list[Toast]:
        toasts, self.toasts = self.toasts, []
        return toasts


async def notify(
    db: AsyncSession,
    user_id: int,
    type: str,
    message: str,
    notification_hub: NotificationHub | None = None,
) -> Notification:
    """Persist a notification for ``user_id`` and push it to listeners."""
    try:
        notification = await create_notification(
            db, Notification(user_id=user_id, type=type, message=message)
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Could not store %s notification for user %s: %s", type, user_id, exc)
        raise StoreError("Could not send the notification.") from exc
    await (notification_hub or hub).publish(
        NotificationRead.model_validate(notification)
    )
    return notification
