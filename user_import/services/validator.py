from __future__ import annotations

import email_validator
from email_validator import EmailNotValidError, validate_email

from ..models.candidate_user import CandidateUser

"""Field-level validation of CSV user rows.

All rules run independently and their messages accumulate in rule order.
validate() is pure: it returns a new CandidateUser whose error list is rebuilt
from the four field values, so running it twice yields the same errors.
"""

__all__ = [
    "MAX_EMAIL_LENGTH",
    "MAX_NAME_LENGTH",
    "MIN_PASSWORD_LENGTH",
    "is_valid_email",
    "is_valid_password",
    "validation_errors_for",
    "validate",
]

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 100
MIN_PASSWORD_LENGTH = 8

FULL_NAME_REQUIRED = "Full name is required"
FULL_NAME_TOO_LONG = "Full name must be 100 characters or less"
USERNAME_REQUIRED = "Username is required"
USERNAME_TOO_LONG = "Username must be 100 characters or less"
EMAIL_REQUIRED = "Email is required"
EMAIL_INVALID = "Email must be in valid format (e.g., user@example.com)"
PASSWORD_REQUIRED = "Password is required"
PASSWORD_WEAK = (
    "Password must be longer than 8 characters and contain at least one uppercase letter, "
    "one lowercase letter, one digit, and one special character"
)


# Syntax only: dotless and special-use domains (localhost, *.local, *.test)
# are well-formed mailbox domains. globally_deliverable=False lifts the dot
# requirement; the special-use list is checked regardless of that flag.
email_validator.SPECIAL_USE_DOMAIN_NAMES.clear()


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def is_valid_email(email: str) -> bool:
    """Syntax check of a bare mailbox address (local-part@domain).

    Surrounding whitespace and display-name forms ("Name <a@b.com>") are
    rejected. Any well-formed domain is accepted, dotless and special-use
    names included; no DNS lookup is made.
    """
    if email != email.strip():
        return False
    try:
        validate_email(email, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


def is_valid_password(password: str) -> bool:
    if len(password) < MIN_PASSWORD_LENGTH:
        return False
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(not c.isalnum() for c in password)
    return has_upper and has_lower and has_digit and has_special


def validation_errors_for(user: CandidateUser) -> list[str]:
    """Evaluate every rule against the row's fields and return the messages."""
    errors: list[str] = []

    if _blank(user.full_name):
        errors.append(FULL_NAME_REQUIRED)
    if user.full_name is not None and len(user.full_name) > MAX_NAME_LENGTH:
        errors.append(FULL_NAME_TOO_LONG)

    if _blank(user.username):
        errors.append(USERNAME_REQUIRED)
    if user.username is not None and len(user.username) > MAX_NAME_LENGTH:
        errors.append(USERNAME_TOO_LONG)

    # format checks only apply to a present value; an address longer than the
    # email column is reported as a format error
    if _blank(user.email):
        errors.append(EMAIL_REQUIRED)
    elif len(user.email) > MAX_EMAIL_LENGTH or not is_valid_email(user.email):
        errors.append(EMAIL_INVALID)

    if _blank(user.password):
        errors.append(PASSWORD_REQUIRED)
    elif not is_valid_password(user.password):
        errors.append(PASSWORD_WEAK)

    return errors


def validate(user: CandidateUser) -> CandidateUser:
    """Return a copy of user with validation_errors recomputed from scratch."""
    return user.with_errors(validation_errors_for(user))
