from supabase import Client
from app.modules.roles.schemas import RoleAssign, UserRoleResponse
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_user_roles(self, user_id: str) -> List[UserRoleResponse]:
        """List role assignments of a user"""
        try:
            result = self.supabase.table("user_roles")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
            return [UserRoleResponse(**r) for r in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def assign_role(self, role_data: RoleAssign) -> UserRoleResponse:
        """Assign a role to a user"""
        try:
            existing = self.supabase.table("user_roles")\
                .select("id")\
                .eq("user_id", role_data.user_id)\
                .eq("role", role_data.role)\
                .execute()

            if existing.data:
                raise HTTPException(status_code=400, detail="User already has this role")

            result = self.supabase.table("user_roles").insert({
                "user_id": role_data.user_id,
                "role": role_data.role
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to assign role")

            logger.info(f"Assigned role {role_data.role} to user {role_data.user_id}")
            return UserRoleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def revoke_role(self, user_id: str, role: str) -> bool:
        """Remove a role from a user"""
        try:
            result = self.supabase.table("user_roles")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("role", role)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Role assignment not found")

            logger.info(f"Revoked role {role} from user {user_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
