from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_auth_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OtpRequest, OtpVerifyRequest, PasswordResetRequest, CurrentUserResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_current_user, get_user_roles, get_access_cache, ADMIN_ROLE
from supabase import Client
from typing import Dict, Any

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_auth_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new customer"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/otp", status_code=200)
async def send_otp(
    otp_data: OtpRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a one-time login code by email or SMS"""
    service.send_otp(otp_data)
    channel = "email" if otp_data.email else "phone"
    return {"message": f"Check your {channel} for the login code."}


@router.post("/otp/verify", response_model=TokenResponse)
async def verify_otp(
    verify_data: OtpVerifyRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Verify a one-time code and get access token"""
    return service.verify_otp(verify_data)


@router.post("/password-reset", status_code=200)
async def password_reset(
    reset_data: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.send_password_reset(reset_data.email)
    return {"message": "We've sent you a password reset link."}


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Dict[str, Any] = Depends(get_current_user),
    cache: Dict[str, Any] = Depends(get_access_cache),
    supabase: Client = Depends(get_supabase),
):
    """Get current authenticated user and their roles (for frontend UI)."""
    roles = get_user_roles(current_user["id"], supabase, cache)
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        roles=roles,
        is_admin=ADMIN_ROLE in roles,
    )
