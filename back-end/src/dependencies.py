from typing import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel.ext.asyncio.session import AsyncSession

from database import async_engine
from utilities.authentication import bearer_scheme
from utilities.exceptions import AuthenticationFailed
from utilities.policy import Actor
from utilities.tokens import validate_token


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """
    Validate the bearer access token and return the acting identity.

    The actor is built from the token's claims only: role changes made after
    issuance take effect when the user obtains a new token.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Not authenticated")

    return validate_token(credentials.credentials).actor


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Asynchronous dependency to provide a database session.

    One session per request; everything a request loads, authorizes and
    writes goes through it and is committed by the service layer.

    Yields:
        AsyncSession: A database session that can be used for queries.
    """
    async with AsyncSession(async_engine, expire_on_commit=False) as session:
        yield session
