from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from dependencies import get_current_user, get_session
from schemas.relational_schemas import RelationalTicketPublic, TicketPage
from schemas.ticket import TicketCreate, TicketUpdate
from services import tickets
from utilities.policy import Actor

router = APIRouter()


@router.get(
    "/api/tickets",
    response_model=TicketPage,
)
async def list_tickets(
    *,
    session: AsyncSession = Depends(get_session),
    page: int = Query(default=0, ge=0),
    size: int = Query(default=10, ge=1, le=100),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    actor: Actor = Depends(get_current_user),
):
    """
    List tickets with role-based visibility:
    - USER: only tickets they created.
    - TECHNICIAN / MANAGER / ADMIN: all tickets.
    """
    return await tickets.list_tickets(session, actor, page, size, sort_by, sort_dir)


@router.get(
    "/api/tickets/search",
    response_model=TicketPage,
)
async def search_tickets(
    *,
    session: AsyncSession = Depends(get_session),
    query: str = Query(..., min_length=1),
    page: int = Query(default=0, ge=0),
    size: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(get_current_user),
):
    """
    Case-insensitive search in title and description, with the same
    visibility rules as the ticket list.
    """
    return await tickets.search_tickets(session, actor, query, page, size)


@router.post(
    "/api/tickets",
    response_model=RelationalTicketPublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_ticket(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_create: TicketCreate,
    actor: Actor = Depends(get_current_user),
):
    """
    Create a new OPEN ticket owned by the caller.
    """
    return await tickets.create_ticket(session, actor, ticket_create)


@router.get(
    "/api/tickets/{ticket_id}",
    response_model=RelationalTicketPublic,
)
async def get_ticket(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    return await tickets.get_ticket(session, actor, ticket_id)


@router.put(
    "/api/tickets/{ticket_id}",
    response_model=RelationalTicketPublic,
)
async def update_ticket(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    ticket_update: TicketUpdate,
    actor: Actor = Depends(get_current_user),
):
    """
    Sparse update of a ticket:
    - title / description / priority: creator or staff.
    - status: TECHNICIAN, MANAGER or ADMIN.
    - assignedToId: MANAGER or ADMIN.
    """
    return await tickets.update_ticket(session, actor, ticket_id, ticket_update)


@router.delete(
    "/api/tickets/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_ticket(
    *,
    session: AsyncSession = Depends(get_session),
    ticket_id: UUID,
    actor: Actor = Depends(get_current_user),
):
    """
    Delete a ticket and its comments. Allowed for the creator and ADMIN.
    """
    await tickets.delete_ticket(session, actor, ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
