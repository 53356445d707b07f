from uuid import UUID
from datetime import datetime

from schemas.base.api_model import CAMEL_CASE_CONFIG
from schemas.base.comment import CommentBase


class CommentPublic(CommentBase):
    model_config = CAMEL_CASE_CONFIG

    id: UUID
    ticket_id: UUID
    author_id: UUID
    created_at: datetime


class CommentCreate(CommentBase):
    model_config = CAMEL_CASE_CONFIG
