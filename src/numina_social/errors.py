"""Business errors raised by the messaging service.

Each error carries a stable machine-readable ``code`` that clients rely on and
a human-readable message. HTTP status mapping lives in the API layer.
"""

from __future__ import annotations


class MessagingError(Exception):
    """Base class for rejections of a messaging operation."""

    default_code = "MESSAGING_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(MessagingError):
    """Input is malformed or outside policy; the caller can fix and retry."""

    default_code = "VALIDATION_ERROR"


class NotFoundError(MessagingError):
    """A referenced entity does not exist (or is soft-deleted)."""

    default_code = "NOT_FOUND"


class ForbiddenError(MessagingError):
    """The caller is authenticated but may not act on this entity."""

    default_code = "FORBIDDEN"
