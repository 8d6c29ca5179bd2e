import hashlib
import logging
import time
from typing import Any, Dict, Optional

from supabase import AsyncClient

from growlog.core.exceptions import Unauthenticated
from growlog.core.principal import SessionPrincipal, TokenPrincipal
from growlog.modules.auth.schemas import LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

# Token -> user data, to avoid one Supabase Auth round trip per request with the same token
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: AsyncClient, session: Optional[SessionPrincipal] = None):
        self.supabase = supabase
        self.session = session

    async def login(self, login_data: LoginRequest) -> TokenResponse:
        """Sign in with email/password and bind the session principal"""
        try:
            auth_response = await self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            logger.warning(f"Login failed for {login_data.email}: {e}")
            raise Unauthenticated("Invalid email or password") from e

        if not auth_response.user or not auth_response.session:
            raise Unauthenticated("Invalid email or password")

        if self.session is not None:
            self.session.sign_in(auth_response.user.id)
        logger.info(f"User {auth_response.user.id} signed in")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    async def logout(self) -> None:
        """Sign out; the session principal is cleared even if the remote call fails"""
        try:
            await self.supabase.auth.sign_out()
        except Exception as e:
            logger.warning(f"Remote sign out failed: {e}")
        finally:
            if self.session is not None:
                self.session.sign_out()

    async def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from a Supabase Auth token. Uses short TTL cache."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_response = await self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise Unauthenticated("Invalid or expired token") from e
            raise Unauthenticated("Authentication failed") from e
        if user_response is None or not user_response.user:
            raise Unauthenticated("Invalid or expired token")
        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
        }
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data

    async def resolve_principal(self, token: Optional[str]) -> TokenPrincipal:
        """Resolve a bearer token into a fixed principal"""
        if not token:
            raise Unauthenticated("Missing access token")
        user_data = await self.get_current_user(token)
        return TokenPrincipal(user_data["id"], user_data.get("email"))
