import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt

from .config import Settings
from .domain.contracts.actors import Actor, Role

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(
    settings: Settings,
    user_id: str,
    role: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token

    Args:
        user_id: Stored in the "sub" claim
        role: freelancer, client or admin
        expires_delta: Token expiration time (default 60 minutes)
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode: dict[str, Any] = {"sub": user_id, "role": role, "exp": expire}
    if email:
        to_encode["email"] = email
    return jose_jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """Verify and decode a JWT token, raising 401 when it is invalid or expired"""
    try:
        return jose_jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token") from e


async def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """Resolve the bearer token into the calling Actor"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    settings: Settings = request.app.state.settings
    claims = decode_access_token(settings, credentials.credentials)

    user_id = claims.get("sub")
    if not user_id:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    try:
        role = Role(claims.get("role"))
    except ValueError as e:
        logger.error(f"❌ Token carries unknown role: {claims.get('role')!r}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    logger.debug(f"✅ Authenticated {user_id} as {role.value}")
    return Actor(user_id=str(user_id), role=role, email=claims.get("email"))
