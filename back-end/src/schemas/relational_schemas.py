from sqlmodel import SQLModel

from schemas.base.api_model import CAMEL_CASE_CONFIG
from schemas.comment import CommentPublic
from schemas.ticket import TicketPublic
from schemas.user import UserPublic


class RelationalTicketPublic(TicketPublic):
    created_by: UserPublic
    assigned_to: UserPublic | None = None
    comment_count: int = 0


class RelationalCommentPublic(CommentPublic):
    author: UserPublic


class TicketPage(SQLModel):
    model_config = CAMEL_CASE_CONFIG

    content: list[RelationalTicketPublic] = []
    total_elements: int
    total_pages: int
    size: int
    number: int
    first: bool
    last: bool
