"""Custom exception hierarchy for the CORS relay.

Relay errors are returned as values by the normalizer and the relay engine
rather than raised, so every caller handles both outcomes explicitly. They
still derive from ``Exception`` so they can carry a message and be logged
like any other error.
"""

from typing import Any


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class RelayError(ProxyError):
    """An error that maps onto the uniform JSON error response.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code sent to the caller
        error: Raw upstream error payload, or the message when none exists
        url: Target URL the caller asked for (optional)
    """

    default_status = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        error: Any = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status
        self.error = error
        self.url = url

    def with_url(self, url: str | None) -> "RelayError":
        """Attach the target URL if none was recorded yet."""
        if self.url is None:
            self.url = url
        return self

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": self.message,
            "status": "error",
            "statusCode": self.status_code,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.url is not None:
            payload["url"] = self.url
        return payload


class ValidationError(RelayError):
    """Caller supplied an unusable request. Never reaches the upstream."""

    default_status = 400

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, 400, url=url)


class RequestTooLarge(RelayError):
    """Request body exceeds size limit."""

    default_status = 413


class UpstreamError(RelayError):
    """The outbound call failed.

    ``status_code`` is the upstream status when one is known, else 500.
    """


class UpstreamTimeoutError(UpstreamError):
    """The upstream did not answer within the relay timeout."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, None, error=message, url=url)


class UpstreamConnectionError(UpstreamError):
    """Unable to reach the upstream (DNS, refused, reset)."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, None, error=message, url=url)
