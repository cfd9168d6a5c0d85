"""Errors raised by GrantHub services and mapped to HTTP responses by the API."""

from typing import Optional

from pydantic import ValidationError


class GrantHubException(Exception):
    """Root of every GrantHub error; ``message`` is safe to show to the caller."""

    default_message = "Unexpected GrantHub error"

    def __init__(self, message: Optional[str] = None):
        """Use ``message`` or fall back to the class default."""
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionException(GrantHubException):
    """The caller may not perform the action (403)."""

    default_message = "User does not have the right to perform this action"


class NotFoundException(GrantHubException):
    """The object is missing or belongs to another team (404)."""

    default_message = "Object not found"


class ContactNotFoundException(NotFoundException):
    """No contact with that id in the caller's team."""

    default_message = "Contact not found"


class GroupNotFoundException(NotFoundException):
    """No group with that id in the caller's team."""

    default_message = "Group not found"


class ContactValidationError(GrantHubException):
    """User-correctable contact input (400).

    The class attributes are the only messages services raise it with.
    """

    NAME_REQUIRED = "Name is required"
    EMAIL_REQUIRED = "Email is required"
    DUPLICATE_EMAIL = "A contact with this email already exists for this team"
    INVALID_ONBOARDING_DATE = "Invalid onboarding date"
    INVALID_BREAK_UNTIL_DATE = "Invalid break until date"

    def __init__(self, message: str):
        """Raise with one of the messages above."""
        super().__init__(message)


def unpack_validation_error(exc: ValidationError) -> dict:
    """Flatten a pydantic error into ``{"errors": [{"loc.path": "message"}, ...]}``."""
    return {
        "errors": [
            {".".join(str(part) for part in error["loc"]): error["msg"]}
            for error in exc.errors()
        ]
    }
