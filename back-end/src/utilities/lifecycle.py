"""
Ticket lifecycle: status transitions, audit timestamps and sparse updates.

Status is a free field (no adjacency check), but two side effects are coupled
to a status write:

- entering RESOLVED from another status stamps `resolved_at`;
  writing RESOLVED again while already RESOLVED keeps the first stamp,
- entering CLOSED stamps `closed_at` under the same rule.

Leaving RESOLVED or CLOSED never clears those stamps. `touch` is the explicit
audit step every mutating operation calls.
"""
from datetime import datetime, timezone
from typing import Any

from models.relational_models import Ticket, User
from utilities.enumerables import PolicyAction, TicketPriority, TicketStatus
from utilities.exceptions import ValidationFailed
from utilities.policy import Actor


# Which policy action guards each updatable ticket field
TICKET_FIELD_ACTIONS = {
    "title": PolicyAction.UPDATE_TICKET,
    "description": PolicyAction.UPDATE_TICKET,
    "priority": PolicyAction.UPDATE_TICKET,
    "status": PolicyAction.CHANGE_TICKET_STATUS,
    "assigned_to_id": PolicyAction.ASSIGN_TICKET,
}

NON_NULLABLE_FIELDS = ("title", "status", "priority")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def touch(entity: Any, now: datetime | None = None) -> datetime:
    """Stamp `updated_at` (and `created_at` when still unset)."""
    now = now or utcnow()
    if getattr(entity, "created_at", None) is None:
        entity.created_at = now
    if hasattr(entity, "updated_at"):
        entity.updated_at = now
    return now


def open_ticket(
    actor: Actor,
    title: str,
    description: str | None,
    priority: TicketPriority | None = None,
    now: datetime | None = None,
) -> Ticket:
    """Build a new OPEN ticket owned by `actor`."""
    ticket = Ticket(
        title=title,
        description=description,
        priority=priority or TicketPriority.MEDIUM,
        status=TicketStatus.OPEN,
        created_by_id=actor.id,
        assigned_to_id=None,
    )
    touch(ticket, now)
    return ticket


def required_actions(changes: dict[str, Any]) -> list[PolicyAction]:
    """Policy actions needed to apply the fields present in a sparse update."""
    actions: list[PolicyAction] = []
    for field in changes:
        action = TICKET_FIELD_ACTIONS.get(field)
        if action is not None and action not in actions:
            actions.append(action)
    return actions


def validate_changes(changes: dict[str, Any]) -> None:
    errors = {
        field: f"{field} may not be null"
        for field in NON_NULLABLE_FIELDS
        if field in changes and changes[field] is None
    }
    if errors:
        raise ValidationFailed(errors)


def ensure_assignable(assignee: User) -> None:
    if not assignee.enabled:
        raise ValidationFailed(
            {"assignedToId": "Tickets cannot be assigned to a disabled user"}
        )


def transition_status(ticket: Ticket, new_status: TicketStatus, now: datetime) -> None:
    previous = ticket.status
    ticket.status = new_status

    if new_status == TicketStatus.RESOLVED and previous != TicketStatus.RESOLVED:
        ticket.resolved_at = now
    elif new_status == TicketStatus.CLOSED and previous != TicketStatus.CLOSED:
        ticket.closed_at = now


def apply_ticket_changes(
    ticket: Ticket,
    changes: dict[str, Any],
    now: datetime | None = None,
) -> bool:
    """
    Apply a sparse update in place.

    Only keys present in `changes` are touched; absent fields stay as they are.
    Returns True when anything was applied. Authorization must already have
    been checked for every field in `changes`.
    """
    validate_changes(changes)
    if not changes:
        return False

    now = now or utcnow()

    for field in ("title", "description", "priority", "assigned_to_id"):
        if field in changes:
            setattr(ticket, field, changes[field])

    if "status" in changes:
        transition_status(ticket, changes["status"], now)

    touch(ticket, now)
    return True
