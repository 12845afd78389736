"""Bearer-token identity for the staff console.

The portal's identity provider signs HS256 tokens with the shared
``JWT_SECRET``; this service only verifies them.  Claims used:
``sub`` (user ID), ``name`` and ``email``.

Staff actions additionally require the caller's email to be listed in
``ADMIN_EMAILS`` (an empty list admits every authenticated user).  With
``AUTH_ENABLED=false`` every request acts as a local admin.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from municipal_assistant.config import Settings

ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False, description="Token from the portal's identity provider")


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    name: str
    email: str

    @classmethod
    def from_claims(cls, claims: dict) -> AuthenticatedUser:
        return cls(
            user_id=str(claims["sub"]),
            name=claims.get("name", ""),
            email=claims.get("email", ""),
        )


LOCAL_ADMIN = AuthenticatedUser(user_id="dev-admin", name="Dev Admin", email="dev-admin@localhost")


def create_token(settings: Settings, user_id: str, name: str, email: str) -> str:
    """Sign a token the way the identity provider does (local tooling and tests)."""
    issued = datetime.now(UTC)
    claims = {
        "sub": user_id,
        "name": name,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(hours=settings.jwt_expiry_hours),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(settings: Settings, token: str) -> dict:
    """Verify signature and expiry; raises ``jwt.InvalidTokenError`` subclasses."""
    return jwt.decode(
        token, settings.jwt_secret, algorithms=[ALGORITHM], options={"require": ["sub", "exp"]}
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from the Bearer token."""
    settings: Settings = request.app.state.settings
    if not settings.auth_enabled:
        return LOCAL_ADMIN

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    try:
        claims = decode_token(settings, credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected bearer token | path={} | {}", request.url.path, exc)
        raise HTTPException(status_code=401, detail="Invalid token")

    return AuthenticatedUser.from_claims(claims)


async def require_admin(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Like ``get_current_user`` but only admits configured administrators."""
    admins = {e.lower() for e in request.app.state.settings.admin_emails}
    if user is LOCAL_ADMIN or not admins or user.email.lower() in admins:
        return user
    logger.warning("Status change refused for non-admin {}", user.email)
    raise HTTPException(status_code=403, detail="Administrator access required")
