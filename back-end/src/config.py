import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware

from database import lifespan
from routers import authentication, comment, main, ticket, user
from settings import settings
from utilities.exceptions import (
    AuthenticationFailed,
    PersistenceTimeout,
    TicketSystemError,
    ValidationFailed,
)


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


description = """
A RESTful help-desk ticket API using FastAPI and SQLModel 🚀

Users open tickets, support staff work them through their lifecycle,
and every request is checked against one role and ownership policy.
"""


app = FastAPI(lifespan=lifespan,
              title="Ticket System API",
              description=description,
              version="1.0.0",
              default_response_class=ORJSONResponse)

app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=4)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "OPTIONS", "HEAD", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "accept", "Authorization", "Authorization-Refresh"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


def error_body(request: Request, status_code: int, message: str, errors: dict | None = None) -> dict:
    body = {
        "status": status_code,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }
    if errors:
        body["validationErrors"] = errors
    return body


@app.exception_handler(TicketSystemError)
async def ticket_system_error_handler(request: Request, exc: TicketSystemError):
    headers = {}
    if isinstance(exc, AuthenticationFailed):
        headers["WWW-Authenticate"] = "Bearer"
    elif isinstance(exc, PersistenceTimeout):
        headers["Retry-After"] = str(exc.retry_after_seconds)

    errors = exc.errors if isinstance(exc, ValidationFailed) else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, errors),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        # drop the "body" / "query" / "path" prefix
        location = [str(part) for part in error.get("loc", ())[1:]]
        field = ".".join(location) or "request"
        errors.setdefault(field, error.get("msg", "Invalid value"))

    return ORJSONResponse(
        status_code=ValidationFailed.status_code,
        content=error_body(request, ValidationFailed.status_code, ValidationFailed.default_message, errors),
    )


app.include_router(main.router, tags=["API status"])
app.include_router(authentication.router, tags=["Authentication"])
app.include_router(user.router, tags=["Users"])
app.include_router(ticket.router, tags=["Tickets"])
app.include_router(comment.router, tags=["Comments"])
