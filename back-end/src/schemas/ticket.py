from uuid import UUID
from datetime import datetime
from sqlmodel import Field, SQLModel

from schemas.base.api_model import CAMEL_CASE_CONFIG
from schemas.base.ticket import TicketBase
from utilities.enumerables import TicketPriority, TicketStatus


class TicketPublic(TicketBase):
    model_config = CAMEL_CASE_CONFIG

    id: UUID
    status: TicketStatus
    created_by_id: UUID
    assigned_to_id: UUID | None
    created_at: datetime
    updated_at: datetime | None
    resolved_at: datetime | None
    closed_at: datetime | None
    version: int


class TicketCreate(TicketBase):
    # created_by is always the caller and cannot be supplied
    model_config = CAMEL_CASE_CONFIG


class TicketUpdate(SQLModel):
    """Sparse update: only fields present in the request body are applied."""
    model_config = CAMEL_CASE_CONFIG

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    status: TicketStatus | None = Field(default=None)
    priority: TicketPriority | None = Field(default=None)

    assigned_to_id: UUID | None = Field(default=None)

    # version the client last read; a mismatch is rejected with 409
    version: int | None = Field(default=None, ge=1)
