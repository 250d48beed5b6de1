from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime

AppRole = Literal["admin", "user"]


class RoleAssign(BaseModel):
    user_id: str
    role: AppRole


class UserRoleResponse(BaseModel):
    id: str
    user_id: str
    role: AppRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
