from sqlmodel import Field, SQLModel


class CommentBase(SQLModel):
    content: str = Field(..., min_length=1, max_length=1000)
    # internal comments are visible to staff only
    internal: bool = Field(default=False)
