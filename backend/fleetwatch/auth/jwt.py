from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from fleetwatch.config import settings
from fleetwatch.utils.time import utc_now

logger = logging.getLogger("fleetwatch.auth")

ROLES = ("admin", "operator", "viewer")

_bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(subject: str, role: str = "viewer") -> str:
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    now = utc_now()
    exp = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload: Dict[str, Any] = {
        "sub": subject,
        "role": role,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token. Raises JWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid Bearer token.

    In development mode (non-production) this is *optional*:
    missing or invalid tokens are ignored so the dashboard and the
    device simulator work without authentication.

    In production the token is **required**.
    """
    if creds is None or creds.credentials == "":
        if settings.is_production:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return None  # dev / staging: allow anonymous

    try:
        return decode_token(creds.credentials)
    except JWTError as exc:
        if settings.is_production:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token: {exc}",
                headers={"WWW-Authenticate": "Bearer"},
            )
        logger.warning("Invalid JWT ignored in dev mode: %s", exc)
        return None


def require_role(*roles: str) -> Callable[..., Any]:
    """Dependency factory: reject authenticated users whose role is not listed.

    Anonymous callers only get this far outside production.
    """
    allowed = set(roles)

    async def _check(user: Optional[Dict[str, Any]] = Depends(get_current_user)) -> Optional[Dict[str, Any]]:
        if user is None:
            return None
        role = user.get("role", "viewer")
        if role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{role}' not permitted; requires one of: {', '.join(sorted(allowed))}",
            )
        return user

    return _check
