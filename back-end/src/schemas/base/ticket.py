from sqlmodel import Field, SQLModel

from utilities.enumerables import TicketPriority


class TicketBase(SQLModel):
    title: str = Field(..., min_length=1, max_length=200, index=True)
    description: str | None = Field(default=None, max_length=2000)

    priority: TicketPriority = Field(default=TicketPriority.MEDIUM, index=True)
