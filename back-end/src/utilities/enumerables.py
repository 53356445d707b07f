from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    TECHNICIAN = "TECHNICIAN"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


# Exact-membership role groups used by the authorization policy
STAFF_ROLES = frozenset({UserRole.TECHNICIAN, UserRole.MANAGER, UserRole.ADMIN})
SUPERVISOR_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class PolicyAction(str, Enum):
    LIST_TICKETS = "list_tickets"
    VIEW_TICKET = "view_ticket"
    CREATE_TICKET = "create_ticket"
    UPDATE_TICKET = "update_ticket"
    CHANGE_TICKET_STATUS = "change_ticket_status"
    ASSIGN_TICKET = "assign_ticket"
    DELETE_TICKET = "delete_ticket"

    ADD_COMMENT = "add_comment"
    ADD_INTERNAL_COMMENT = "add_internal_comment"
    VIEW_INTERNAL_COMMENTS = "view_internal_comments"
    DELETE_COMMENT = "delete_comment"

    LIST_USERS = "list_users"
    VIEW_USER = "view_user"
    CHANGE_USER_ROLE = "change_user_role"
    TOGGLE_USER_ENABLED = "toggle_user_enabled"
    DELETE_USER = "delete_user"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
