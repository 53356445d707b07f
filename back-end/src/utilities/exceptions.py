"""
Typed outcomes of the ticket system core.

Each error carries the HTTP status the adapter layer maps it to. Messages are
safe to show to clients; persistence details never end up in them.
"""


class TicketSystemError(Exception):
    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailed(TicketSystemError):
    status_code = 401
    default_message = "Authentication failed"


class AuthorizationDenied(TicketSystemError):
    status_code = 403
    default_message = "You don't have permission to perform this action"


class NotFound(TicketSystemError):
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource: str, field: str | None = None, value=None):
        if field is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} not found with {field}: '{value}'"
        self.resource = resource
        super().__init__(message)


class ValidationFailed(TicketSystemError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: dict[str, str], message: str | None = None):
        self.errors = dict(errors)
        super().__init__(message)


class DuplicateIdentity(TicketSystemError):
    status_code = 400
    default_message = "Username or email already registered"


class TicketConflict(TicketSystemError):
    status_code = 409
    default_message = "Ticket was modified by another request, reload and retry"


class PersistenceTimeout(TicketSystemError):
    status_code = 503
    default_message = "The data store did not respond in time, retry later"
    retry_after_seconds = 1
