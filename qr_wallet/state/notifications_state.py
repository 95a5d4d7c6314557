import logging
from typing import List, Optional

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException
from ..schemas import NotificationModel
from ..schemas.base import CamelModel
from ..services.notification_service import NotificationService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)


class NotificationsState(CamelModel):
    notifications: List[NotificationModel] = []
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)


class NotificationsNotifier(StateNotifier[NotificationsState]):
    """Mark-read and delete are applied locally first, then mirrored to the backend."""

    def __init__(self, service: NotificationService):
        super().__init__(NotificationsState())
        self.service = service

    def refresh(self) -> None:
        sequence = self._next_sequence()
        self._update(is_loading=True, error=None)
        try:
            notifications = self.service.get_notifications()
        except AppException as e:
            logger.error(f"Notifications refresh failed: {e}")
            self._update_if_latest(sequence, is_loading=False, error=ErrorHandler.user_friendly_message(e))
            return
        self._update_if_latest(sequence, notifications=notifications, is_loading=False)

    def _mirror(self, action, *args) -> bool:
        try:
            action(*args)
        except AppException as e:
            logger.error(f"Notification update failed: {e}")
            self._update(error=ErrorHandler.user_friendly_message(e))
            return False
        return True

    def mark_as_read(self, notification_id: str) -> bool:
        self._modify(
            lambda state: state.copy_with(
                notifications=[
                    n.copy_with(is_read=True) if n.id == notification_id else n for n in state.notifications
                ]
            )
        )
        return self._mirror(self.service.mark_as_read, notification_id)

    def mark_all_as_read(self) -> bool:
        self._modify(
            lambda state: state.copy_with(notifications=[n.copy_with(is_read=True) for n in state.notifications])
        )
        return self._mirror(self.service.mark_all_as_read)

    def delete(self, notification_id: str) -> bool:
        self._modify(
            lambda state: state.copy_with(
                notifications=[n for n in state.notifications if n.id != notification_id]
            )
        )
        return self._mirror(self.service.delete, notification_id)

    @property
    def unread_count(self) -> int:
        return self.state.unread_count

    def clear(self) -> None:
        self._set_state(NotificationsState())
