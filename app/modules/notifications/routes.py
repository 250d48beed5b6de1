from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_supabase
from app.modules.notifications import hub
from app.modules.notifications.schemas import NotificationListResponse
from app.core.dependencies import get_current_user, is_admin, get_access_cache
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _list_response(user_id: str, admin: bool) -> NotificationListResponse:
    items = hub.list_for(user_id, admin)
    return NotificationListResponse(
        notifications=items,
        unread_count=sum(1 for item in items if not item["read"])
    )


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    request: Request,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
):
    """Notifications for the caller, newest first"""
    admin = is_admin(user_data, supabase, get_access_cache(request))
    return _list_response(user_data["id"], admin)


@router.post("/read", response_model=NotificationListResponse)
async def mark_notifications_read(
    request: Request,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
):
    hub.mark_all_read(user_data["id"])
    admin = is_admin(user_data, supabase, get_access_cache(request))
    return _list_response(user_data["id"], admin)


@router.delete("", status_code=204)
async def clear_notifications(user_data: Dict = Depends(get_current_user)):
    hub.clear(user_data["id"])
    return None
