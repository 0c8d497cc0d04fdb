"""Exceptions raised by the IVR client.

Poll loops absorb every ``IvrError`` and report it as a transient fault; the
single-request operations let them propagate to the caller.
"""

from __future__ import annotations


class IvrError(Exception):
    default_detail: str = "IVR client error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class IvrConfigurationError(IvrError):
    default_detail = "IVR client is not configured."


class TransportFailure(IvrError):
    """No response was received (connection refused, DNS failure, timeout)."""

    default_detail = "API request failed"


class ApiFailure(IvrError):
    """The API answered with an HTTP status of 400 or above."""

    default_detail = "Unknown API error"

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code

    def __str__(self) -> str:
        return f"API error ({self.status_code}): {self.detail}"


class MalformedResponse(IvrError):
    """The response body is not a JSON object or lacks an expected field."""

    default_detail = "Malformed API response"
