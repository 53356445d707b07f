import os
import tempfile

# Settings are read at import time, so the environment goes first.
_DB_DIR = tempfile.mkdtemp(prefix="ticket-system-tests-")
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/tickets.db"
os.environ["PBKDF2_ROUNDS"] = "1000"
os.environ["CONCEAL_FORBIDDEN_TICKETS"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

import models.relational_models  # noqa: E402,F401
from config import app  # noqa: E402
from database import async_engine  # noqa: E402
from models.relational_models import User  # noqa: E402
from utilities.authentication import get_password_hash  # noqa: E402
from utilities.enumerables import UserRole  # noqa: E402
from utilities.lifecycle import touch  # noqa: E402
from utilities.tokens import issue_token  # noqa: E402


DEFAULT_PASSWORD = "Str0ng!Pass"


@pytest.fixture
async def database():
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_engine
    # pooled connections belong to this test's event loop
    await async_engine.dispose()


@pytest.fixture
async def session(database):
    async with AsyncSession(async_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def client(database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(session):
    async def _make_user(
        username: str,
        role: UserRole = UserRole.USER,
        enabled: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password=get_password_hash(password),
            role=role,
            enabled=enabled,
        )
        touch(user)
        session.add(user)
        await session.commit()
        return user

    return _make_user


def auth_headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
async def users(make_user):
    """One enabled identity per role, plus a second USER."""
    return {
        "alice": await make_user("alice"),
        "bob": await make_user("bob"),
        "tech": await make_user("tech", UserRole.TECHNICIAN),
        "manager": await make_user("manager", UserRole.MANAGER),
        "admin": await make_user("admin", UserRole.ADMIN),
    }
