import logging
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from database import guarded
from models.relational_models import Comment, Ticket, User
from services.tickets import delete_ticket_records
from utilities.enumerables import PolicyAction, UserRole
from utilities.exceptions import NotFound
from utilities.lifecycle import touch
from utilities.policy import Actor, ensure_allowed


logger = logging.getLogger(__name__)


async def _load_user(session: AsyncSession, user_id: UUID) -> User:
    user = await guarded(session.get(User, user_id))
    if user is None:
        raise NotFound("User", "id", user_id)
    return user


async def list_users(session: AsyncSession, actor: Actor) -> list[User]:
    ensure_allowed(actor, PolicyAction.LIST_USERS)
    result = await guarded(session.exec(select(User).order_by(User.created_at.desc(), User.id)))
    return list(result.all())


async def get_user(session: AsyncSession, actor: Actor, user_id: UUID) -> User:
    ensure_allowed(actor, PolicyAction.VIEW_USER)
    return await _load_user(session, user_id)


async def get_me(session: AsyncSession, actor: Actor) -> User:
    return await _load_user(session, actor.id)


async def change_role(session: AsyncSession, actor: Actor, user_id: UUID, role: UserRole) -> User:
    """
    Change a user's role.

    Tokens already issued keep the role they were issued with until they expire.
    """
    ensure_allowed(actor, PolicyAction.CHANGE_USER_ROLE)
    user = await _load_user(session, user_id)

    user.role = role
    touch(user)
    session.add(user)
    await guarded(session.commit())

    logger.info("Role of %s set to %s by %s", user.username, role.value, actor.username)
    return user


async def toggle_enabled(session: AsyncSession, actor: Actor, user_id: UUID) -> User:
    ensure_allowed(actor, PolicyAction.TOGGLE_USER_ENABLED)
    user = await _load_user(session, user_id)

    user.enabled = not user.enabled
    touch(user)
    session.add(user)
    await guarded(session.commit())

    logger.info(
        "User %s %s by %s",
        user.username, "enabled" if user.enabled else "disabled", actor.username,
    )
    return user


async def delete_user(session: AsyncSession, actor: Actor, user_id: UUID) -> None:
    """
    Delete a user together with everything they own.

    Tickets they created go (with their comments), comments they wrote go,
    tickets assigned to them stay and become unassigned.
    """
    ensure_allowed(actor, PolicyAction.DELETE_USER)
    user = await _load_user(session, user_id)

    assigned = await guarded(session.exec(
        select(Ticket).where(Ticket.assigned_to_id == user.id, Ticket.created_by_id != user.id)
    ))
    for ticket in assigned.all():
        ticket.assigned_to_id = None
        touch(ticket)
        session.add(ticket)

    authored = await guarded(session.exec(select(Comment).where(Comment.author_id == user.id)))
    for comment in authored.all():
        await session.delete(comment)
    await guarded(session.flush())

    created = await guarded(session.exec(select(Ticket).where(Ticket.created_by_id == user.id)))
    for ticket in created.all():
        await delete_ticket_records(session, ticket)

    await session.delete(user)
    await guarded(session.commit())

    logger.info("User %s deleted by %s", user.username, actor.username)
