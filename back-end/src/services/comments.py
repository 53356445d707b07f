import logging
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from database import guarded
from models.relational_models import Comment, User
from schemas.comment import CommentCreate, CommentPublic
from schemas.relational_schemas import RelationalCommentPublic
from schemas.user import UserPublic
from services.tickets import ensure_ticket_visible, load_ticket, users_by_id
from utilities.enumerables import PolicyAction
from utilities.exceptions import NotFound
from utilities.fields_validator import validate_not_blank
from utilities.lifecycle import touch
from utilities.policy import Actor, ensure_allowed, is_allowed


logger = logging.getLogger(__name__)


async def _to_public(session: AsyncSession, comments: list[Comment]) -> list[RelationalCommentPublic]:
    authors = await users_by_id(session, [c.author_id for c in comments])
    return [
        RelationalCommentPublic(
            **CommentPublic.model_validate(comment, from_attributes=True).model_dump(),
            author=UserPublic.model_validate(authors[comment.author_id], from_attributes=True),
        )
        for comment in comments
    ]


async def list_comments(
    session: AsyncSession,
    actor: Actor,
    ticket_id: UUID,
) -> list[RelationalCommentPublic]:
    """Newest first; internal comments only for staff."""
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket)

    query = (
        select(Comment)
        .where(Comment.ticket_id == ticket.id)
        .order_by(Comment.created_at.desc(), Comment.id)
    )
    if not is_allowed(actor, PolicyAction.VIEW_INTERNAL_COMMENTS):
        query = query.where(Comment.internal == False)  # noqa: E712

    result = await guarded(session.exec(query))
    return await _to_public(session, list(result.all()))


async def add_comment(
    session: AsyncSession,
    actor: Actor,
    ticket_id: UUID,
    comment_create: CommentCreate,
) -> RelationalCommentPublic:
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket, PolicyAction.ADD_COMMENT)
    if comment_create.internal:
        ensure_allowed(
            actor, PolicyAction.ADD_INTERNAL_COMMENT, ticket,
            "Only staff can add internal comments",
        )
    validate_not_blank("content", comment_create.content)

    if await guarded(session.get(User, actor.id)) is None:
        raise NotFound("User", "username", actor.username)

    comment = Comment(
        ticket_id=ticket.id,
        author_id=actor.id,
        content=comment_create.content,
        internal=comment_create.internal,
    )
    touch(comment)
    session.add(comment)
    await guarded(session.commit())

    logger.info("Comment %s added to ticket %s by %s", comment.id, ticket.id, actor.username)
    return (await _to_public(session, [comment]))[0]


async def delete_comment(
    session: AsyncSession,
    actor: Actor,
    ticket_id: UUID,
    comment_id: UUID,
) -> None:
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket)

    result = await guarded(session.exec(
        select(Comment).where(Comment.id == comment_id, Comment.ticket_id == ticket.id)
    ))
    comment = result.one_or_none()
    if comment is None:
        raise NotFound("Comment", "id", comment_id)

    ensure_allowed(
        actor, PolicyAction.DELETE_COMMENT, comment,
        "You don't have permission to delete this comment",
    )

    await session.delete(comment)
    await guarded(session.commit())
    logger.info("Comment %s deleted by %s", comment_id, actor.username)
