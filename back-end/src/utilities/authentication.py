import logging

from fastapi.security import APIKeyHeader, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from database import guarded
from models.relational_models import User
from schemas.user import UserCreate
from settings import settings
from utilities.enumerables import TokenType, UserRole
from utilities.exceptions import AuthenticationFailed, DuplicateIdentity
from utilities.fields_validator import validate_password_value, validate_username_value
from utilities.lifecycle import touch
from utilities.tokens import issue_refresh_token, issue_token, validate_token


logger = logging.getLogger(__name__)

# Password hashing context using PBKDF2-HMAC-SHA512
pwd_context = CryptContext(
    schemes=["pbkdf2_sha512"],
    deprecated="auto",
    pbkdf2_sha512__default_rounds=settings.PBKDF2_ROUNDS,
)

bearer_scheme = HTTPBearer(auto_error=False)
refresh_header_scheme = APIKeyHeader(name="Authorization-Refresh", auto_error=False)

INVALID_CREDENTIALS = "Invalid username or password"


def get_password_hash(password: str) -> str:
    """
    Hashes the provided password with PBKDF2-HMAC-SHA512 and a random salt.

    Args:
        password (str): The plain password to be hashed.

    Returns:
        str: The salted hash, in passlib's modular crypt format.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies whether the provided plain password matches the hashed password.

    Args:
        plain_password (str): The password in plain text to be verified.
        hashed_password (str): The hashed version of the password to compare against.

    Returns:
        bool: True if the plain password matches the hashed password, otherwise False.

    A stored value passlib cannot parse counts as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


async def register_user(user_create: UserCreate, session: AsyncSession) -> tuple[str, User]:
    """
    Create an enabled USER identity and issue its first access token.

    Raises DuplicateIdentity when the username or the email is already taken.
    """
    result = await guarded(session.exec(
        select(User).where(or_(User.username == user_create.username, User.email == user_create.email))
    ))
    existing = result.first()
    if existing is not None:
        if existing.username == user_create.username:
            raise DuplicateIdentity(f"Username already taken: {user_create.username}")
        raise DuplicateIdentity(f"Email already registered: {user_create.email}")

    validate_username_value(user_create.username)
    validate_password_value(user_create.password)

    db_user = User(
        username=user_create.username,
        email=user_create.email,
        password=get_password_hash(user_create.password),
        role=UserRole.USER,
        enabled=True,
    )
    touch(db_user)

    try:
        session.add(db_user)
        await guarded(session.commit())
    except IntegrityError:
        # lost a race with a concurrent registration
        await session.rollback()
        raise DuplicateIdentity()

    logger.info("Registered user %s", db_user.username)
    return issue_token(db_user), db_user


async def authenticate_user(username: str, password: str, session: AsyncSession) -> User:
    result = await guarded(session.exec(select(User).where(User.username == username)))
    user = result.one_or_none()

    if not user or not verify_password(password, user.password):
        logger.info("Failed login for %s", username)
        raise AuthenticationFailed(INVALID_CREDENTIALS)

    if not user.enabled:
        logger.info("Login refused for disabled user %s", username)
        raise AuthenticationFailed(INVALID_CREDENTIALS)

    return user


async def login_user(username: str, password: str, session: AsyncSession) -> tuple[str, User]:
    user = await authenticate_user(username, password, session)
    logger.info("User %s logged in", user.username)
    return issue_token(user), user


async def refresh_user_tokens(refresh_token: str, session: AsyncSession) -> tuple[str, str]:
    """
    Exchange a valid refresh token for a new access/refresh pair.

    The identity is looked up again: a deleted or disabled user gets
    AuthenticationFailed, and the new pair carries the stored role.
    """
    claims = validate_token(refresh_token, expected_type=TokenType.REFRESH)

    user = await guarded(session.get(User, claims.user_id))
    if user is None or not user.enabled:
        logger.info("Refresh refused for %s", claims.subject)
        raise AuthenticationFailed("Refresh token is no longer valid")

    logger.info("Refreshing tokens for %s", user.username)
    return issue_token(user), issue_refresh_token(user)
