from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import jwt

from settings import settings
from utilities.enumerables import TokenType, UserRole
from utilities.exceptions import AuthenticationFailed
from utilities.policy import Actor


REQUIRED_CLAIMS = ("sub", "uid", "role", "token_type", "exp")


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    user_id: UUID
    role: UserRole
    token_type: TokenType
    expires_at: datetime

    @property
    def actor(self) -> Actor:
        return Actor(id=self.user_id, username=self.subject, role=self.role)


def create_access_token(data: dict, expires_delta: timedelta | int | None = None) -> str:

    # copy to avoid mutating the passed dict
    to_encode = data.copy()

    now = datetime.now(timezone.utc)

    # normalize expires_delta to a timedelta
    if isinstance(expires_delta, timedelta):
        delta = expires_delta
    elif isinstance(expires_delta, int):
        # interpret int as minutes
        delta = timedelta(minutes=expires_delta)
    elif expires_delta is None:
        delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    else:
        raise TypeError("expires_delta must be None, int (minutes), or timedelta")

    # int timestamps avoid timezone/serialization edge cases
    to_encode.update({
        "iat": int(now.timestamp()),
        "exp": int((now + delta).timestamp()),
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """
    Decode and verify a JWT. Raises AuthenticationFailed with a clear message on error.
    """
    try:
        options = {"verify_exp": verify_exp, "require": ["exp", "sub"]}
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed("Token has expired")
    except jwt.InvalidSignatureError:
        raise AuthenticationFailed("Token signature is invalid")
    except jwt.InvalidAlgorithmError:
        raise AuthenticationFailed("Token signing algorithm is not supported")
    except jwt.InvalidTokenError:
        raise AuthenticationFailed("Token is malformed")


def _claims_for(user, token_type: TokenType) -> dict:
    return {
        "sub": user.username,
        "uid": str(user.id),
        "role": UserRole(user.role).value,
        "token_type": token_type.value,
        "jti": f"{token_type.value}-{uuid4().hex}",
    }


def issue_token(user, expires_delta: timedelta | int | None = None) -> str:
    """Issue an access token capturing the user's username, id and current role."""
    if expires_delta is None:
        expires_delta = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return create_access_token(_claims_for(user, TokenType.ACCESS), expires_delta)


def issue_refresh_token(user, expires_delta: timedelta | int | None = None) -> str:
    if expires_delta is None:
        expires_delta = settings.REFRESH_TOKEN_EXPIRE_MINUTES
    return create_access_token(_claims_for(user, TokenType.REFRESH), expires_delta)


def validate_token(token: str, expected_type: TokenType = TokenType.ACCESS) -> TokenClaims:
    """
    Verify signature, expiry and claim shape of a token.

    Any failure is an `AuthenticationFailed`; the returned claims are exactly
    those captured at issuance (no live lookup of the identity happens here).
    """
    if not token:
        raise AuthenticationFailed("No token provided")

    payload = decode_access_token(token)

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        raise AuthenticationFailed("Token claims are incomplete")

    try:
        token_type = TokenType(payload["token_type"])
        role = UserRole(payload["role"])
        user_id = UUID(str(payload["uid"]))
    except ValueError:
        raise AuthenticationFailed("Token claims are invalid")

    if token_type != expected_type:
        raise AuthenticationFailed(f"Provided token is not a valid {expected_type.value} token")

    return TokenClaims(
        subject=payload["sub"],
        user_id=user_id,
        role=role,
        token_type=token_type,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
