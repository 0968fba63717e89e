from __future__ import annotations

from typing import Any, Optional

import httpx

UNEXPECTED_RESPONSE_MSG = "Unexpected response from server"


class ApiError(Exception):
    """Base class for failures talking to the ledger backend."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(ApiError):
    """Backend unreachable, timed out, or the connection dropped."""


class HttpStatusError(ApiError):
    def __init__(self, message: str, status_code: int, response: Optional[httpx.Response] = None) -> None:
        super().__init__(message, status_code=status_code)
        self.response = response


class AuthExpiredError(HttpStatusError):
    """401 from the backend. The session has already been cleared."""


class ResponseFormatError(ApiError):
    """2xx answer whose body is not JSON or lacks required fields."""


class FormError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def error_message(response: httpx.Response, fallback: str) -> str:
    """Pull a user-facing message out of an error body."""
    try:
        body: Any = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] if text else fallback
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback
