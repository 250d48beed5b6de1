"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (roles)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user when a bearer token is sent, None for anonymous storefront visitors"""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def get_user_roles(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[str]:
    """Return role names from user_roles. Uses request-scoped cache when provided."""
    if cache is not None and "roles" in cache:
        return cache["roles"]
    try:
        result = supabase.table("user_roles")\
            .select("role")\
            .eq("user_id", user_id)\
            .execute()
        roles = [r["role"] for r in result.data] if result.data else []
        if cache is not None:
            cache["roles"] = roles
        return roles
    except Exception as e:
        logger.error(f"Error fetching roles for user {user_id}: {e}")
        return []


def is_admin(user_data: Optional[dict], supabase: Client, cache: Optional[Dict[str, Any]] = None) -> bool:
    if not user_data:
        return False
    return ADMIN_ROLE in get_user_roles(user_data["id"], supabase, cache)


def require_admin(
    request: Request,
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Dependency that only lets users holding the admin role through"""
    cache = _get_request_cache(request)
    if not is_admin(user_data, supabase, cache):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user_data


def get_access_cache(request: Request) -> Dict[str, Any]:
    """Dependency that returns request-scoped access cache (populated by require_admin when used)."""
    return _get_request_cache(request)


def check_order_access(order: Dict[str, Any], user_data: dict, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> dict:
    """Allow the order's owner or an admin"""
    if order.get("user_id") == user_data["id"]:
        return user_data
    if is_admin(user_data, supabase, cache):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only access your own orders"
    )
