import hashlib
import logging
import threading
import time
from supabase import Client
from app.core.errors import external_error_message
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.profiles.schemas import ProfileCreate
from app.modules.profiles.service import ProfileService
from fastapi import HTTPException
from typing import Dict, Any

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS_MESSAGE = (
    "Registration successful. Please verify your email to activate your account."
)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500
_AUTH_CACHE_LOCK = threading.Lock()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up with Supabase Auth, then insert the user's profile row"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "display_name": register_data.display_name,
                        "phone": register_data.phone
                    }
                }
            })
        except Exception as e:
            error_message = external_error_message(e)
            logger.info(f"Sign-up rejected for {register_data.email}: {error_message}")
            raise HTTPException(status_code=400, detail=error_message)

        user = auth_response.user
        if not user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        try:
            ProfileService(self.supabase).create_profile(ProfileCreate(
                id=user.id,
                display_name=register_data.display_name,
                email=register_data.email,
                phone=register_data.phone
            ))
        except HTTPException as e:
            # The auth user stays without a profile row; nothing reconciles it.
            logger.warning(f"User {user.id} registered but profile insert failed: {e.detail}")
            raise

        logger.info(f"Registered user {user.id} ({register_data.email})")
        return RegisterResponse(
            user_id=user.id,
            email=user.email or register_data.email,
            message=REGISTRATION_SUCCESS_MESSAGE
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = external_error_message(e)
            logger.info(f"Sign-in failed for {login_data.email}: {error_message}")
            lowered = error_message.lower()
            if "invalid" in lowered or "credentials" in lowered or "confirm" in lowered:
                raise HTTPException(status_code=401, detail=error_message)
            raise HTTPException(status_code=500, detail=error_message)

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid login credentials")

        logger.info(f"Signed in {login_data.email}")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def logout(self) -> None:
        """Sign out the session held by this client"""
        try:
            self.supabase.auth.sign_out()
        except Exception as e:
            error_message = external_error_message(e)
            logger.error(f"Sign-out failed: {error_message}")
            raise HTTPException(status_code=500, detail=error_message)

    def revoke_token(self, token: str) -> None:
        """Sign out the session behind a bearer token (API clients hold no client-side session)"""
        try:
            self.supabase.auth.admin.sign_out(token)
        except Exception as e:
            error_message = external_error_message(e)
            logger.error(f"Token revocation failed: {error_message}")
            raise HTTPException(status_code=500, detail=error_message)
        finally:
            forget_token(token)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            with _AUTH_CACHE_LOCK:
                cached = _AUTH_USER_CACHE.get(cache_key)
                if cached is not None and now < cached[1]:
                    return cached[0]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            with _AUTH_CACHE_LOCK:
                if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
                    _prune_expired(now)
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


def _prune_expired(now: float) -> None:
    # Caller holds _AUTH_CACHE_LOCK
    for key in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
        del _AUTH_USER_CACHE[key]


def forget_token(token: str) -> None:
    """Drop a token from the user cache (after logout)."""
    with _AUTH_CACHE_LOCK:
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
