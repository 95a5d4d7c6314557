import logging
from typing import List

from ..schemas import NotificationModel
from .backend import BackendClient

logger = logging.getLogger(__name__)

NOTIFICATIONS_LIMIT = 50


class NotificationService:
    def __init__(self, backend: BackendClient):
        self.backend = backend

    def _parent(self) -> str:
        return f"users/{self.backend.user_id}"

    def get_notifications(self, limit: int = NOTIFICATIONS_LIMIT) -> List[NotificationModel]:
        """Newest first."""
        if self.backend.user_id is None:
            return []
        rows = self.backend.query_collection(
            self._parent(), "notifications", order_by="createdAt", descending=True, limit=limit
        )
        return [NotificationModel.from_json(row) for row in rows]

    def mark_as_read(self, notification_id: str) -> None:
        if self.backend.user_id is None:
            return
        self.backend.update_document(f"{self._parent()}/notifications/{notification_id}", {"isRead": True})

    def mark_all_as_read(self) -> int:
        if self.backend.user_id is None:
            return 0
        unread = self.backend.query_collection(self._parent(), "notifications", filters=[("isRead", False)])
        for row in unread:
            self.mark_as_read(row["id"])
        logger.info(f"Marked {len(unread)} notifications as read")
        return len(unread)

    def delete(self, notification_id: str) -> None:
        if self.backend.user_id is None:
            return
        self.backend.delete_document(f"{self._parent()}/notifications/{notification_id}")
