from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status

from dependencies import get_current_user, get_session
from sqlmodel.ext.asyncio.session import AsyncSession

from schemas.user import UserPublic
from services import users
from utilities.enumerables import UserRole
from utilities.policy import Actor


router = APIRouter()


@router.get(
    "/api/users",
    response_model=list[UserPublic],
)
async def get_users(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_user),
):
    """
    List users. MANAGER and ADMIN only.
    """
    return await users.list_users(session, actor)


@router.get(
    "/api/users/me",
    response_model=UserPublic,
)
async def get_me(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_user),
):
    """
    Return the currently authenticated user's record.
    """
    return await users.get_me(session, actor)


@router.get(
    "/api/users/{user_id}",
    response_model=UserPublic,
)
async def get_user(
    *,
    session: AsyncSession = Depends(get_session),
    user_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    return await users.get_user(session, actor, user_id)


@router.patch(
    "/api/users/{user_id}/role",
    response_model=UserPublic,
)
async def update_user_role(
    *,
    session: AsyncSession = Depends(get_session),
    user_id: UUID,
    role: UserRole = Query(...),
    actor: Actor = Depends(get_current_user),
):
    """
    Change a user's role. ADMIN only.
    """
    return await users.change_role(session, actor, user_id, role)


@router.patch(
    "/api/users/{user_id}/toggle",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def toggle_user_enabled(
    *,
    session: AsyncSession = Depends(get_session),
    user_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    """
    Enable or disable a user. ADMIN only.
    """
    await users.toggle_enabled(session, actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/api/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_user(
    *,
    session: AsyncSession = Depends(get_session),
    user_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    """
    Delete a user and the tickets and comments they own. ADMIN only.
    """
    await users.delete_user(session, actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
