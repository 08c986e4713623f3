"""Target URL validation - runs before any outbound call."""

import httpx

from core.exceptions import ValidationError
from core.request_types import TargetRequest

ALLOWED_SCHEMES = ("http", "https")

MISSING_URL = "Invalid or missing URL"
INVALID_FORMAT = "Invalid URL format"
INVALID_PROTOCOL = "Invalid URL protocol. Only HTTP and HTTPS are allowed."


def validate_url(url: str | None) -> ValidationError | None:
    """Return the validation error for ``url``, or None when it is usable."""
    if not isinstance(url, str) or not url.strip():
        return ValidationError(MISSING_URL)

    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError, ValueError):
        return ValidationError(INVALID_FORMAT, url=url)

    scheme = parsed.scheme.lower()
    if not scheme:
        return ValidationError(INVALID_FORMAT, url=url)
    if scheme not in ALLOWED_SCHEMES:
        return ValidationError(INVALID_PROTOCOL, url=url)
    if not parsed.host:
        return ValidationError(INVALID_FORMAT, url=url)
    return None


def validate_target(target: TargetRequest) -> ValidationError | None:
    """Validate a descriptor handed over by the normalizer."""
    return validate_url(target.url)
