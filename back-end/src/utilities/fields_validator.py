import re

from settings import settings
from utilities.exceptions import ValidationFailed


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
SPECIAL_CHARS = set(r"!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~ ")


def validate_password_value(value: str) -> str:
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationFailed(
            {"password": f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"}
        )

    has_upper = has_lower = has_digit = has_special = False

    for char in value:
        if not has_upper and char.isupper():
            has_upper = True
        elif not has_lower and char.islower():
            has_lower = True
        elif not has_digit and char.isdigit():
            has_digit = True
        elif not has_special and char in SPECIAL_CHARS:
            has_special = True

        if has_upper and has_lower and has_digit and has_special:
            break

    if not has_upper:
        raise ValidationFailed({"password": "Password must contain at least one uppercase letter"})
    if not has_lower:
        raise ValidationFailed({"password": "Password must contain at least one lowercase letter"})
    if not has_digit:
        raise ValidationFailed({"password": "Password must contain at least one digit"})
    if not has_special:
        raise ValidationFailed({"password": "Password must contain at least one special character"})

    return value


def validate_username_value(value: str) -> str:
    if not USERNAME_PATTERN.match(value):
        raise ValidationFailed(
            {"username": "Username may contain only letters, digits, '.', '_' and '-'"}
        )
    return value


def validate_not_blank(field: str, value: str | None) -> str | None:
    if value is not None and not value.strip():
        raise ValidationFailed({field: f"{field} must not be blank"})
    return value
