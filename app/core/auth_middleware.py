"""Authentication for FastAPI routes, backed by Supabase Auth."""

import asyncio
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from app.core.dependencies import ChatDependencies, get_chat_dependencies
from app.core.logging import get_logger

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


class AuthContext:
    """Context object containing authenticated user info."""

    def __init__(self, user_id: str, token: str, email: Optional[str] = None):
        self.user_id = user_id
        self.token = token
        self.email = email

    def owns(self, owner_id: Optional[str]) -> bool:
        return owner_id is not None and str(owner_id) == str(self.user_id)


class SupabaseAuthenticator:
    """Resolves a Supabase access token to a caller identity."""

    def __init__(self, client: Client):
        self._client = client

    async def authenticate(self, token: Optional[str]) -> Optional[AuthContext]:
        """
        Verify a bearer token.

        Returns:
            AuthContext, or None if the token is missing, invalid or expired
        """
        if not token:
            return None

        try:
            # Validates the JWT signature and expiration
            auth_response = await asyncio.to_thread(self._client.auth.get_user, token)
        except Exception as e:
            logger.warning(f"Auth error: {e}")
            return None

        if not auth_response or not auth_response.user:
            return None

        return AuthContext(
            user_id=str(auth_response.user.id),
            token=token,
            email=auth_response.user.email,
        )


def bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    deps: ChatDependencies = Depends(get_chat_dependencies),
) -> Optional[AuthContext]:
    """Current caller, or None if no valid auth is present."""
    return await deps.authenticator.authenticate(bearer_token(credentials))


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user),
) -> AuthContext:
    """Require authentication. Raises 401 if not authenticated."""
    if not auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth
