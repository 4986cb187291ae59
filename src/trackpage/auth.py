"""Admin authentication with a single shared credential (HTTP Basic)."""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import Settings

security = HTTPBasic()


def authenticate_admin(settings: Settings, username: str, password: str) -> bool:
    """Check a username/password pair against the configured admin credential."""
    user_ok = secrets.compare_digest(username.encode("utf-8"), settings.admin_username.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    return user_ok and pass_ok


def require_admin(
    request: Request,
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """FastAPI dependency guarding admin routes; returns the username."""
    settings: Settings = request.app.state.context.settings
    if not authenticate_admin(settings, credentials.username, credentials.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
