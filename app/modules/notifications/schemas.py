from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    type: str
    message: str
    product_name: Optional[str] = None
    order_id: Optional[str] = None
    timestamp: datetime
    read: bool = False


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
