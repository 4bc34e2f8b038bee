"""
Authentication and password recovery endpoints.

POST /api/auth/register         - create account, returns a session token
POST /api/auth/login            - password login, sets the session cookie
POST /api/auth/logout           - expires the session cookie
POST /api/auth/forgot-password  - step 1 of recovery, issues a reset token
POST /api/auth/verify-identity  - step 2, reset token + names → code
POST /api/auth/reset-password   - step 3, code + new password
GET  /api/auth/user             - current user from the session token

Bodies are validated by the request DTOs before any service runs.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from config import AppSettings
from dependencies import (
    get_auth_service,
    get_password_reset_service,
    get_session_token,
    get_settings,
)
from schemas.dto.requests.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyIdentityRequest,
)
from schemas.dto.responses.auth import (
    CurrentUserResponse,
    ForgotPasswordResponse,
    LoginResponse,
    RegisterResponse,
    UserProfileResponse,
    UserSummary,
    VerifyIdentityResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.auth_service import AuthService
from services.password_reset_service import PasswordResetService

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


def set_session_cookie(response: Response, token: str, settings: AppSettings) -> None:
    response.set_cookie(
        key=settings.jwt.cookie_name,
        value=token,
        max_age=settings.jwt.session_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response, settings: AppSettings) -> None:
    response.set_cookie(
        key=settings.jwt.cookie_name,
        value="",
        max_age=0,
        expires=0,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    user, token = await auth.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
        phone=body.phone,
    )
    return RegisterResponse(
        message="User registered successfully",
        token=token,
        user=UserSummary.from_user(user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> LoginResponse:
    user, token = await auth.login(email=body.email, password=body.password)
    set_session_cookie(response, token, settings)
    return LoginResponse(
        message="Login successful",
        token=token,
        user=UserProfileResponse.from_user(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    settings: AppSettings = Depends(get_settings),
) -> MessageResponse:
    # Stateless sessions: the token itself stays valid until it expires.
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logout successful")


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
async def forgot_password(
    body: ForgotPasswordRequest,
    recovery: PasswordResetService = Depends(get_password_reset_service),
) -> ForgotPasswordResponse:
    result = await recovery.request_reset(body.email)
    return ForgotPasswordResponse(message=result.message, **result.delivery)


@router.post(
    "/verify-identity",
    response_model=VerifyIdentityResponse,
    response_model_exclude_none=True,
)
async def verify_identity(
    body: VerifyIdentityRequest,
    recovery: PasswordResetService = Depends(get_password_reset_service),
) -> VerifyIdentityResponse:
    result = await recovery.verify_identity(body.token, body.first_name, body.last_name)
    return VerifyIdentityResponse(
        message=result.message,
        verified=result.verified,
        user_id=result.user_id,
        **result.delivery,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    recovery: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    message = await recovery.reset_password(
        body.user_id, body.verification_code, body.new_password
    )
    return MessageResponse(message=message)


@router.get("/user", response_model=CurrentUserResponse)
async def current_user(
    token: str = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUserResponse:
    user = await auth.current_user(token)
    return CurrentUserResponse(user=UserProfileResponse.from_user(user))
