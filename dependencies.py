"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. The services themselves are built once in the
app lifespan and stored on app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from config import AppSettings
from errors import AuthenticationError
from services.auth_service import AuthService
from services.password_reset_service import PasswordResetService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_password_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.password_reset_service


def get_session_token(request: Request) -> str:
    """Session token from ``Authorization: Bearer`` or the session cookie.

    Raises:
        AuthenticationError: when neither is present.
    """
    token: Optional[str] = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
    if not token:
        cookie_name = request.app.state.settings.jwt.cookie_name
        token = request.cookies.get(cookie_name)
    if not token:
        raise AuthenticationError("Unauthorized")
    return token
