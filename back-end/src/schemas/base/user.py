from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from utilities.enumerables import UserRole


class UserBase(SQLModel):
    # immutable after creation
    username: str = Field(
        unique=True,
        index=True,
        max_length=50,
    )

    email: EmailStr = Field(unique=True, index=True, max_length=100)

    role: UserRole = Field(default=UserRole.USER, index=True)

    enabled: bool = Field(default=True)
