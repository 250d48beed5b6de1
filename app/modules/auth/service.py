import hashlib
import time
import logging
from supabase import Client
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OtpRequest, OtpVerifyRequest
)
from app.config.settings import settings
from fastapi import HTTPException
from typing import Dict, Any

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _token_response(self, auth_response, fallback_email: str = None) -> TokenResponse:
        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or fallback_email
        )

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new customer using Supabase Auth"""
        try:
            user_metadata = {}
            if register_data.username:
                user_metadata["username"] = register_data.username.strip()
            if register_data.phone:
                user_metadata["phone"] = register_data.phone.strip()

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata,
                    "email_redirect_to": settings.auth_redirect_url
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            logger.info(f"Registered user {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user with email and password"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
            return self._token_response(auth_response, login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def send_otp(self, otp_data: OtpRequest) -> bool:
        """Send a one-time login code by email or SMS"""
        try:
            if otp_data.email:
                self.supabase.auth.sign_in_with_otp({
                    "email": otp_data.email,
                    "options": {"email_redirect_to": settings.auth_redirect_url}
                })
            else:
                self.supabase.auth.sign_in_with_otp({"phone": otp_data.phone})
            return True
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Failed to send OTP: {str(e)}")

    def verify_otp(self, verify_data: OtpVerifyRequest) -> TokenResponse:
        """Exchange a one-time code for a session"""
        try:
            if verify_data.email:
                params = {"email": verify_data.email, "token": verify_data.token, "type": "email"}
            else:
                params = {"phone": verify_data.phone, "token": verify_data.token, "type": "sms"}
            auth_response = self.supabase.auth.verify_otp(params)
            return self._token_response(auth_response, verify_data.email)
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"OTP verification failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired code")

    def send_password_reset(self, email: str) -> bool:
        """Send a password reset link"""
        try:
            self.supabase.auth.reset_password_for_email(
                email, {"redirect_to": settings.password_reset_redirect_url}
            )
            return True
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Failed to send reset link: {str(e)}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
            # This client holds no session, so revoke by the caller's token
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
