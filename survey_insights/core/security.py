# survey_insights/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from survey_insights.core.config import Settings

# Tokens are issued by the hosted auth provider; this is only for docs/Swagger
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_access_token(subject: dict[str, Any], settings: Settings, expires_minutes: int | None = None) -> str:
    """
    Signs a session JWT with 'exp' and 'iat'.
    - 'sub' is normalized to str.
    """
    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    claims = dict(subject)
    if "sub" in claims and not isinstance(claims["sub"], str):
        claims["sub"] = str(claims["sub"])

    to_encode = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": exp,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decodes a session token, requiring 'exp' and 'iat'. Raises jwt.InvalidTokenError
    (ExpiredSignatureError included) on any failure.
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "iat"], "verify_exp": True, "verify_aud": False},
        leeway=5,  # small clock skew margin
    )


def owner_id_from_claims(claims: dict[str, Any]) -> UUID:
    sub = claims.get("sub")
    if not sub:
        raise jwt.InvalidTokenError("Token without subject")
    try:
        return UUID(str(sub))
    except ValueError as e:
        raise jwt.InvalidTokenError("Token with invalid 'sub'") from e


def get_current_owner(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_app_settings),
) -> UUID:
    """
    Id of the signed-in owner. Every owner-facing route depends on it.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return owner_id_from_claims(decode_token(token, settings))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
