"""Shared admin secret check for the solution-link endpoints."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from loguru import logger

from .config import Settings, get_settings

_basic = HTTPBasic(auto_error=False)


def credentials_match(settings: Settings, username: str, password: str) -> bool:
    if not settings.admin_enabled:
        return False
    user_ok = secrets.compare_digest(username.encode(), settings.admin_username.encode())
    pass_ok = secrets.compare_digest(password.encode(), (settings.admin_password or "").encode())
    return user_ok and pass_ok


def require_admin(
    credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Return the admin username or raise 401/503."""

    if not settings.admin_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin credentials are not configured",
        )
    if credentials is None or not credentials_match(
        settings, credentials.username, credentials.password
    ):
        logger.warning("Rejected admin request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
