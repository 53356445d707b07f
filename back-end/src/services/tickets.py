"""
Ticket operations: load, authorize, apply the lifecycle, persist.

Every function takes the acting identity explicitly. Related users and
comment counts are resolved by id in batch lookups when building responses.
"""
import logging
import math
from uuid import UUID

from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import func, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from database import guarded
from models.relational_models import Comment, Ticket, User
from schemas.relational_schemas import RelationalTicketPublic, TicketPage
from schemas.ticket import TicketCreate, TicketPublic, TicketUpdate
from schemas.user import UserPublic
from settings import settings
from utilities.enumerables import PolicyAction, SortDirection
from utilities.exceptions import AuthorizationDenied, NotFound, TicketConflict, ValidationFailed
from utilities.fields_validator import validate_not_blank
from utilities.lifecycle import (
    apply_ticket_changes,
    ensure_assignable,
    open_ticket,
    required_actions,
)
from utilities.policy import Actor, ensure_allowed, is_allowed, ticket_owner_scope


logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "createdAt": Ticket.created_at,
    "updatedAt": Ticket.updated_at,
    "resolvedAt": Ticket.resolved_at,
    "title": Ticket.title,
    "status": Ticket.status,
    "priority": Ticket.priority,
}


async def load_ticket(session: AsyncSession, ticket_id: UUID) -> Ticket:
    ticket = await guarded(session.get(Ticket, ticket_id))
    if ticket is None:
        raise NotFound("Ticket", "id", ticket_id)
    return ticket


def ensure_ticket_visible(
    actor: Actor,
    ticket: Ticket,
    action: PolicyAction = PolicyAction.VIEW_TICKET,
) -> None:
    """
    Deny access to a ticket the actor may not see.

    With CONCEAL_FORBIDDEN_TICKETS the denial is reported as NotFound so that
    ticket ids of other users cannot be probed.
    """
    if is_allowed(actor, action, ticket):
        return
    if settings.CONCEAL_FORBIDDEN_TICKETS:
        raise NotFound("Ticket", "id", ticket.id)
    raise AuthorizationDenied("You don't have permission to view this ticket")


async def users_by_id(session: AsyncSession, user_ids) -> dict[UUID, User]:
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    result = await guarded(session.exec(select(User).where(User.id.in_(ids))))
    return {user.id: user for user in result.all()}


async def _comment_counts(session: AsyncSession, ticket_ids: list[UUID]) -> dict[UUID, int]:
    if not ticket_ids:
        return {}
    result = await guarded(session.exec(
        select(Comment.ticket_id, func.count(Comment.id))
        .where(Comment.ticket_id.in_(ticket_ids))
        .group_by(Comment.ticket_id)
    ))
    return {ticket_id: count for ticket_id, count in result.all()}


def _user_public(user: User | None) -> UserPublic | None:
    if user is None:
        return None
    return UserPublic.model_validate(user, from_attributes=True)


async def to_public(session: AsyncSession, tickets: list[Ticket]) -> list[RelationalTicketPublic]:
    users = await users_by_id(
        session,
        [t.created_by_id for t in tickets] + [t.assigned_to_id for t in tickets],
    )
    counts = await _comment_counts(session, [t.id for t in tickets])

    return [
        RelationalTicketPublic(
            **TicketPublic.model_validate(ticket, from_attributes=True).model_dump(),
            created_by=_user_public(users.get(ticket.created_by_id)),
            assigned_to=_user_public(users.get(ticket.assigned_to_id)),
            comment_count=counts.get(ticket.id, 0),
        )
        for ticket in tickets
    ]


def _order_by(sort_by: str, sort_dir: str):
    column = SORTABLE_FIELDS.get(sort_by)
    if column is None:
        raise ValidationFailed(
            {"sortBy": f"Must be one of: {', '.join(SORTABLE_FIELDS)}"}
        )
    try:
        direction = SortDirection(sort_dir.lower())
    except ValueError:
        raise ValidationFailed({"sortDir": "Must be 'asc' or 'desc'"})

    ordered = column.desc() if direction == SortDirection.DESC else column.asc()
    # id breaks ties so pages never overlap
    return ordered, Ticket.id.asc()


async def _paged(
    session: AsyncSession,
    actor: Actor,
    conditions: list,
    page: int,
    size: int,
    order_by,
) -> TicketPage:
    ensure_allowed(actor, PolicyAction.LIST_TICKETS)

    owner_id = ticket_owner_scope(actor)
    if owner_id is not None:
        conditions = [*conditions, Ticket.created_by_id == owner_id]

    total = (await guarded(session.exec(
        select(func.count()).select_from(Ticket).where(*conditions)
    ))).one()

    result = await guarded(session.exec(
        select(Ticket)
        .where(*conditions)
        .order_by(*order_by)
        .offset(page * size)
        .limit(size)
    ))
    tickets = list(result.all())

    total_pages = math.ceil(total / size) if size else 0
    return TicketPage(
        content=await to_public(session, tickets),
        total_elements=total,
        total_pages=total_pages,
        size=size,
        number=page,
        first=page == 0,
        last=page >= total_pages - 1,
    )


async def list_tickets(
    session: AsyncSession,
    actor: Actor,
    page: int = 0,
    size: int = 10,
    sort_by: str = "createdAt",
    sort_dir: str = "desc",
) -> TicketPage:
    """USER actors get their own tickets only; staff roles get every ticket."""
    return await _paged(session, actor, [], page, size, _order_by(sort_by, sort_dir))


async def search_tickets(
    session: AsyncSession,
    actor: Actor,
    query: str,
    page: int = 0,
    size: int = 10,
) -> TicketPage:
    # % and _ in the query match literally
    escaped = query.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    term = f"%{escaped}%"
    condition = or_(
        func.lower(Ticket.title).like(term, escape="\\"),
        func.lower(Ticket.description).like(term, escape="\\"),
    )
    return await _paged(session, actor, [condition], page, size, _order_by("createdAt", "desc"))


async def get_ticket(session: AsyncSession, actor: Actor, ticket_id: UUID) -> RelationalTicketPublic:
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket)
    return (await to_public(session, [ticket]))[0]


async def create_ticket(
    session: AsyncSession,
    actor: Actor,
    ticket_create: TicketCreate,
) -> RelationalTicketPublic:
    ensure_allowed(actor, PolicyAction.CREATE_TICKET)
    validate_not_blank("title", ticket_create.title)

    if await guarded(session.get(User, actor.id)) is None:
        raise NotFound("User", "username", actor.username)

    ticket = open_ticket(
        actor,
        title=ticket_create.title,
        description=ticket_create.description,
        priority=ticket_create.priority,
    )
    session.add(ticket)
    await guarded(session.commit())

    logger.info("Ticket %s created by %s", ticket.id, actor.username)
    return (await to_public(session, [ticket]))[0]


async def save_ticket(session: AsyncSession, ticket: Ticket) -> Ticket:
    """
    Commit pending changes of a ticket.

    The UPDATE is conditional on the version that was loaded; if another
    writer committed first the row no longer matches and TicketConflict is
    raised instead of overwriting their change.
    """
    # rollback expires the instance, so read the id first
    ticket_id = ticket.id
    try:
        session.add(ticket)
        await guarded(session.commit())
    except StaleDataError:
        await session.rollback()
        logger.warning("Concurrent modification of ticket %s rejected", ticket_id)
        raise TicketConflict()
    return ticket


async def update_ticket(
    session: AsyncSession,
    actor: Actor,
    ticket_id: UUID,
    ticket_update: TicketUpdate,
) -> RelationalTicketPublic:
    """
    Apply a sparse update.

    Each present field is checked against the policy before anything is
    applied; one denied field rejects the whole request.
    """
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket)

    changes = ticket_update.model_dump(exclude_unset=True)
    expected_version = changes.pop("version", None)
    validate_not_blank("title", changes.get("title"))

    for action in required_actions(changes):
        ensure_allowed(actor, action, ticket)

    if expected_version is not None and expected_version != ticket.version:
        raise TicketConflict()

    assignee_id = changes.get("assigned_to_id")
    if assignee_id is not None:
        assignee = await guarded(session.get(User, assignee_id))
        if assignee is None:
            raise NotFound("User", "id", assignee_id)
        ensure_assignable(assignee)

    if apply_ticket_changes(ticket, changes):
        await save_ticket(session, ticket)
        logger.info(
            "Ticket %s updated by %s (%s)",
            ticket.id, actor.username, ", ".join(sorted(changes)),
        )

    return (await to_public(session, [ticket]))[0]


async def delete_ticket(session: AsyncSession, actor: Actor, ticket_id: UUID) -> None:
    """Delete a ticket and, with it, every comment it owns."""
    ticket = await load_ticket(session, ticket_id)
    ensure_ticket_visible(actor, ticket)
    ensure_allowed(
        actor, PolicyAction.DELETE_TICKET, ticket,
        "You don't have permission to delete this ticket",
    )

    try:
        await delete_ticket_records(session, ticket)
        await guarded(session.commit())
    except StaleDataError:
        await session.rollback()
        raise TicketConflict()

    logger.info("Ticket %s deleted by %s", ticket_id, actor.username)


async def delete_ticket_records(session: AsyncSession, ticket: Ticket) -> None:
    """Stage deletion of a ticket's comments and then the ticket itself."""
    result = await guarded(session.exec(select(Comment).where(Comment.ticket_id == ticket.id)))
    for comment in result.all():
        await session.delete(comment)
    await guarded(session.flush())

    await session.delete(ticket)
    await guarded(session.flush())
