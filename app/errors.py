"""HTTP-facing error types.

Every failure a handler reports is an :class:`APIError`; ``app.main``
renders it as ``{"error": ..., "details": ..., ...}`` with the matching
status code.
"""
from __future__ import annotations

from typing import Any


class APIError(Exception):
    """Base class for errors rendered as a JSON body."""

    status_code: int = 500

    def __init__(
        self,
        error: str,
        *,
        details: str | None = None,
        status_code: int | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(error)
        self.error = error
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ConfigurationError(APIError):
    """A credential required by the endpoint is not configured."""

    status_code = 500


class InvalidRequestError(APIError):
    status_code = 400


class SignatureError(APIError):
    """Webhook signature could not be verified."""

    status_code = 400


class UpstreamError(APIError):
    """An external service call failed."""

    status_code = 500
