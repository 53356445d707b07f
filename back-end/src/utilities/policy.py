"""
Role-based authorization policy.

`decide` is a pure function of (actor, action, resource): no I/O, no settings,
no clock. Ticket resources are anything exposing `created_by_id`; comment
resources expose `author_id`; user resources are not inspected.
"""
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from utilities.enumerables import (
    STAFF_ROLES,
    SUPERVISOR_ROLES,
    Decision,
    PolicyAction,
    UserRole,
)
from utilities.exceptions import AuthorizationDenied


@dataclass(frozen=True)
class Actor:
    """The authenticated identity performing an operation, as claimed by its token."""
    id: UUID
    username: str
    role: UserRole


def _allow(condition: bool) -> Decision:
    return Decision.ALLOW if condition else Decision.DENY


def _is_creator(actor: Actor, ticket: Any) -> bool:
    return getattr(ticket, "created_by_id", None) == actor.id


def _can_view_ticket(actor: Actor, ticket: Any) -> bool:
    if actor.role == UserRole.USER:
        return _is_creator(actor, ticket)
    return True


def decide(actor: Actor, action: PolicyAction, resource: Any = None) -> Decision:
    role = actor.role

    if action in (PolicyAction.LIST_TICKETS, PolicyAction.CREATE_TICKET):
        return Decision.ALLOW

    if action in (PolicyAction.VIEW_TICKET, PolicyAction.ADD_COMMENT):
        return _allow(_can_view_ticket(actor, resource))

    if action == PolicyAction.UPDATE_TICKET:
        return _allow(_is_creator(actor, resource) or role in STAFF_ROLES)

    if action == PolicyAction.CHANGE_TICKET_STATUS:
        # the creator alone is not enough here
        return _allow(role in STAFF_ROLES)

    if action == PolicyAction.ASSIGN_TICKET:
        return _allow(role in SUPERVISOR_ROLES)

    if action == PolicyAction.DELETE_TICKET:
        return _allow(_is_creator(actor, resource) or role == UserRole.ADMIN)

    if action == PolicyAction.ADD_INTERNAL_COMMENT:
        return _allow(role in STAFF_ROLES and _can_view_ticket(actor, resource))

    if action == PolicyAction.VIEW_INTERNAL_COMMENTS:
        return _allow(role in STAFF_ROLES)

    if action == PolicyAction.DELETE_COMMENT:
        is_author = getattr(resource, "author_id", None) == actor.id
        return _allow(is_author or role == UserRole.ADMIN)

    if action in (PolicyAction.LIST_USERS, PolicyAction.VIEW_USER):
        return _allow(role in SUPERVISOR_ROLES)

    if action in (
        PolicyAction.CHANGE_USER_ROLE,
        PolicyAction.TOGGLE_USER_ENABLED,
        PolicyAction.DELETE_USER,
    ):
        return _allow(role == UserRole.ADMIN)

    # Unknown actions are denied
    return Decision.DENY


def is_allowed(actor: Actor, action: PolicyAction, resource: Any = None) -> bool:
    return decide(actor, action, resource) == Decision.ALLOW


def ensure_allowed(
    actor: Actor,
    action: PolicyAction,
    resource: Any = None,
    message: str | None = None,
) -> None:
    """Raise `AuthorizationDenied` unless the policy allows the action."""
    if not is_allowed(actor, action, resource):
        raise AuthorizationDenied(message)


def ticket_owner_scope(actor: Actor) -> UUID | None:
    """
    Creator id a ticket listing must be restricted to, or None for no restriction.

    USER actors only ever see their own tickets; every other role sees all.
    """
    if actor.role == UserRole.USER:
        return actor.id
    return None
