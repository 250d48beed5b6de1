from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase
from app.modules.roles.schemas import AppRole, RoleAssign, UserRoleResponse
from app.modules.roles.service import RoleService
from app.core.dependencies import require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


@router.get("/{user_id}", response_model=List[UserRoleResponse])
async def list_user_roles(
    user_id: str,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """List roles assigned to a user (admin only)"""
    return service.list_user_roles(user_id)


@router.post("", response_model=UserRoleResponse, status_code=201)
async def assign_role(
    role_data: RoleAssign,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Assign a role to a user (admin only)"""
    return service.assign_role(role_data)


@router.delete("/{user_id}/{role}", status_code=204)
async def revoke_role(
    user_id: str,
    role: AppRole,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Revoke a role (admin only). Admins cannot drop their own admin role."""
    if user_id == user_data["id"] and role == "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own admin role")
    service.revoke_role(user_id, role)
    return None
