from fastapi import APIRouter, Depends, HTTPException

from ...deps import WalletClient, require_signed_in
from ....schemas import system_schemas
from ....state import NotificationsState

router = APIRouter()


def _notifications(state: NotificationsState) -> dict:
    return {"unreadCount": state.unread_count, "notifications": state.notifications, "error": state.error}


@router.get("", response_model=system_schemas.NotificationsResponse)
def get_notifications(client: WalletClient = Depends(require_signed_in)):
    return _notifications(client.notifications.state)


@router.post("/refresh", response_model=system_schemas.NotificationsResponse)
def refresh_notifications(client: WalletClient = Depends(require_signed_in)):
    client.notifications.refresh()
    return _notifications(client.notifications.state)


@router.post("/read-all", response_model=system_schemas.NotificationsResponse)
def mark_all_as_read(client: WalletClient = Depends(require_signed_in)):
    if not client.notifications.mark_all_as_read():
        raise HTTPException(status_code=502, detail=client.notifications.state.error)
    return _notifications(client.notifications.state)


@router.post("/{notification_id}/read", response_model=system_schemas.NotificationsResponse)
def mark_as_read(notification_id: str, client: WalletClient = Depends(require_signed_in)):
    if not client.notifications.mark_as_read(notification_id):
        raise HTTPException(status_code=502, detail=client.notifications.state.error)
    return _notifications(client.notifications.state)


@router.delete("/{notification_id}", response_model=system_schemas.NotificationsResponse)
def delete_notification(notification_id: str, client: WalletClient = Depends(require_signed_in)):
    if not client.notifications.delete(notification_id):
        raise HTTPException(status_code=502, detail=client.notifications.state.error)
    return _notifications(client.notifications.state)
