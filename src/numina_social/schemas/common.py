"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

import time

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Machine-readable description of a rejected request."""

    message: str
    error_code: str
    details: dict[str, str] | None = None
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))


class ErrorResponse(BaseModel):
    """Envelope returned for every error response."""

    success: bool = False
    error: ErrorDetail

    @classmethod
    def build(
        cls,
        message: str,
        error_code: str,
        details: dict[str, str] | None = None,
    ) -> "ErrorResponse":
        return cls(error=ErrorDetail(message=message, error_code=error_code, details=details))
