from datetime import datetime, timezone
from uuid import uuid4, UUID

from sqlalchemy.types import TypeDecorator
from sqlmodel import Column, DateTime, Field, Integer

from schemas.base.comment import CommentBase
from schemas.base.ticket import TicketBase
from schemas.base.user import UserBase
from utilities.enumerables import TicketStatus


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend (SQLite drops tzinfo)."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(UserBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # pbkdf2_sha512 hash, never serialized
    password: str = Field(...)

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime(), nullable=False),
    )

    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(UTCDateTime()),
    )


ticket_version_column = Column("version", Integer, nullable=False)


class Ticket(TicketBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    status: TicketStatus = Field(default=TicketStatus.OPEN, index=True)

    # owning reference, set once from the acting identity
    created_by_id: UUID = Field(foreign_key="user.id", index=True)
    # non-owning reference, nulled when the assignee is deleted
    assigned_to_id: UUID | None = Field(
        default=None,
        foreign_key="user.id",
        index=True,
        ondelete="SET NULL",
    )

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime(), nullable=False, index=True),
    )

    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(UTCDateTime()),
    )

    resolved_at: datetime | None = Field(
        default=None,
        sa_column=Column(UTCDateTime()),
    )

    closed_at: datetime | None = Field(
        default=None,
        sa_column=Column(UTCDateTime()),
    )

    # optimistic concurrency counter, checked by SQLAlchemy on every UPDATE
    version: int = Field(default=1, sa_column=ticket_version_column)

    __mapper_args__ = {"version_id_col": ticket_version_column}


class Comment(CommentBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    ticket_id: UUID = Field(foreign_key="ticket.id", index=True, ondelete="CASCADE")
    author_id: UUID = Field(foreign_key="user.id", index=True)

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime(), nullable=False, index=True),
    )
