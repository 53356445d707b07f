from sqlmodel import Field, SQLModel

from schemas.base.api_model import CAMEL_CASE_CONFIG
from schemas.user import UserPublic


class LoginRequest(SQLModel):
    username: str = Field(...)
    password: str = Field(...)


class TokenPair(SQLModel):
    model_config = CAMEL_CASE_CONFIG

    token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class AuthResponse(TokenPair):
    user: UserPublic
