import re

from dashnotes.errors import ValidationError

USERNAME_RE = re.compile(r"^[a-z0-9][a-z0-9._-]{1,31}$")
MIN_PASSWORD_LENGTH = 6


def validate_username(username: str) -> None:
    """Usernames are 2-32 lowercase letters, digits, dots, dashes or underscores."""
    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Username must be 2-32 lowercase letters, digits, '.', '-' or '_'")


def validate_password(password: str) -> None:
    """Raise ValidationError unless the password is long enough and has no whitespace."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
