from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from dependencies import get_current_user, get_session
from schemas.comment import CommentCreate
from schemas.relational_schemas import RelationalCommentPublic
from services import comments
from utilities.policy import Actor

router = APIRouter()


@router.get(
    "/api/tickets/{ticket_id}/comments",
    response_model=List[RelationalCommentPublic],
)
async def list_comments(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    """
    Comments of a ticket, newest first. Requires access to the ticket;
    internal comments are only listed for staff.
    """
    return await comments.list_comments(session, actor, ticket_id)


@router.post(
    "/api/tickets/{ticket_id}/comments",
    response_model=RelationalCommentPublic,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    comment_create: CommentCreate,
    actor: Actor = Depends(get_current_user),
):
    return await comments.add_comment(session, actor, ticket_id, comment_create)


@router.delete(
    "/api/tickets/{ticket_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_comment(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    comment_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    """
    Delete a comment. Allowed for its author and ADMIN.
    """
    await comments.delete_comment(session, actor, ticket_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
