"""Login and registration form validation."""

import re

_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
_NAME_PATTERN = re.compile(r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ ]+$")
_MIN_PASSWORD_LENGTH = 6
_MIN_NAME_LENGTH = 3


def validate_email(email: str) -> str | None:
    """Return an error message for an invalid email, or None."""
    if not email.strip():
        return "Email is required"
    if not _EMAIL_PATTERN.match(email):
        return "Invalid email format"
    return None


def validate_login_password(password: str) -> str | None:
    if not password.strip():
        return "Password is required"
    if len(password) < _MIN_PASSWORD_LENGTH:
        return f"At least {_MIN_PASSWORD_LENGTH} characters"
    return None


def validate_registration_password(password: str) -> str | None:
    """Login rules plus one uppercase letter and one digit."""
    error = validate_login_password(password)
    if error:
        return error
    if not re.search(r"[A-Z]", password):
        return "Must contain at least 1 uppercase letter"
    if not re.search(r"[0-9]", password):
        return "Must contain at least 1 number"
    return None


def validate_name(name: str) -> str | None:
    if not name.strip():
        return "Name is required"
    if len(name) < _MIN_NAME_LENGTH:
        return f"At least {_MIN_NAME_LENGTH} characters"
    if not _NAME_PATTERN.match(name):
        return "Only letters are allowed"
    return None


def validate_confirm_password(password: str, confirm_password: str) -> str | None:
    if not confirm_password.strip():
        return "Please confirm the password"
    if password != confirm_password:
        return "Passwords do not match"
    return None


def validate_terms(accepted: bool) -> str | None:
    return None if accepted else "You must accept the terms and conditions"


def validate_login_form(email: str, password: str) -> dict[str, str]:
    """Return field errors for the login form; empty when valid."""
    return _collect(
        {
            "email": validate_email(email),
            "password": validate_login_password(password),
        }
    )


def validate_registration_form(  # noqa: PLR0913
    *,
    name: str,
    email: str,
    password: str,
    confirm_password: str,
    accepted_terms: bool,
) -> dict[str, str]:
    """Return field errors for the registration form; empty when valid."""
    return _collect(
        {
            "name": validate_name(name),
            "email": validate_email(email),
            "password": validate_registration_password(password),
            "confirm_password": validate_confirm_password(password, confirm_password),
            "terms": validate_terms(accepted_terms),
        }
    )


def _collect(errors: dict[str, str | None]) -> dict[str, str]:
    return {field: message for field, message in errors.items() if message}
