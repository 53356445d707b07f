from uuid import UUID
from datetime import datetime
from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from schemas.base.api_model import CAMEL_CASE_CONFIG
from schemas.base.user import UserBase


class UserPublic(UserBase):
    model_config = CAMEL_CASE_CONFIG

    id: UUID
    created_at: datetime


class UserCreate(SQLModel):
    # role and enabled are not accepted from clients: new identities are enabled USERs
    model_config = CAMEL_CASE_CONFIG

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr = Field(..., max_length=100)
    password: str = Field(..., min_length=1)
