"""
Authentication Dependency for FastAPI.

Guidelines:
- Extracts and validates the JWT issued by the external identity provider
- Returns AuthUser for use in route handlers
- Raises HTTPException 401 if unauthorized

The "sub" claim is the opaque user id used everywhere else (messages,
notification channels).

Config needed (from unilink.config.settings):
- SERVICE_AUTH_SECRET
- SERVICE_AUTH_ISSUER
- SERVICE_AUTH_AUDIENCE
"""

import logging
import jwt
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from unilink.domain.value_objects.user_id import UserId
from unilink.config.settings import Config

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    id: UserId
    email: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("AuthUser must have an id defined.")


security = HTTPBearer()


def decode_token(token: str) -> dict:
    """
    Verify signature, expiry, issuer and audience of a service token.

    Raises:
        jwt.InvalidTokenError (or a subclass) if the token is not acceptable
    """
    return jwt.decode(
        token,
        Config.SERVICE_AUTH_SECRET,
        algorithms=["HS256"],
        audience=Config.SERVICE_AUTH_AUDIENCE,
        issuer=Config.SERVICE_AUTH_ISSUER,
        options={"require": ["exp", "iat", "sub"]},
    )


def verify_identity_token(user_id: UserId, token: Optional[str]) -> bool:
    """
    Check that ``token`` is valid and was issued for ``user_id``.

    Used by the notification bus when auth frames must carry a token.
    """
    if not token:
        return False
    try:
        claims = decode_token(token)
    except jwt.InvalidTokenError as e:
        logger.info(f"[Auth] Rejected realtime token for {user_id}: {e}")
        return False
    return claims.get("sub") == user_id.value


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthUser:
    """
    Extract and validate user from JWT token.

    Raises:
        HTTPException 401 if token is invalid, expired, or missing required claims
    """
    claims = None
    try:
        token = credentials.credentials
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )

    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        )

    try:
        user_id = UserId(str(claims.get("sub") or ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing required claims in token",
        )

    return AuthUser(id=user_id, email=claims.get("email"))
