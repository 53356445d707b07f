from fastapi import APIRouter, Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from dependencies import get_session
from schemas.authentication import AuthResponse, LoginRequest, TokenPair
from schemas.user import UserCreate, UserPublic
from settings import settings
from utilities.authentication import (
    login_user,
    refresh_header_scheme,
    refresh_user_tokens,
    register_user,
)
from utilities.exceptions import AuthenticationFailed
from utilities.tokens import issue_refresh_token


router = APIRouter()


def _auth_response(token: str, user) -> AuthResponse:
    return AuthResponse(
        token=token,
        refresh_token=issue_refresh_token(user),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserPublic.model_validate(user, from_attributes=True),
    )


@router.post(
    "/api/auth/register",
    response_model=AuthResponse,
)
async def register(
        *,
        session: AsyncSession = Depends(get_session),
        user_create: UserCreate,
):
    """
    Register a new account. New accounts always get the USER role.
    """
    token, user = await register_user(user_create, session)
    return _auth_response(token, user)


@router.post(
    "/api/auth/login",
    response_model=AuthResponse,
)
async def login(
        *,
        session: AsyncSession = Depends(get_session),
        credentials: LoginRequest,
):
    token, user = await login_user(credentials.username, credentials.password, session)
    return _auth_response(token, user)


@router.post(
    "/api/auth/refresh",
    response_model=TokenPair,
)
async def refresh_token(
    request: Request,
    session: AsyncSession = Depends(get_session),
    refresh_header: str | None = Depends(refresh_header_scheme),
):
    """
    Refresh access and refresh tokens.

    Accepts the refresh token either in the `Authorization-Refresh` header or
    in the standard Authorization header (Bearer). Disabled or deleted users
    cannot refresh.
    """
    token = None
    if refresh_header:
        token = refresh_header.removeprefix("Bearer").strip()

    if not token:
        header_auth = request.headers.get("Authorization")
        if header_auth:
            token = header_auth.removeprefix("Bearer").strip()

    if not token:
        raise AuthenticationFailed("No refresh token found")

    access, refresh = await refresh_user_tokens(token, session)
    return TokenPair(
        token=access,
        refresh_token=refresh,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
