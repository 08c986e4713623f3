"""Collapse the accepted input shapes into one TargetRequest.

A caller can describe the outbound call through query parameters, through a
JSON (or form-encoded) request body, or both. The sources are applied as an
ordered list of merge steps over a draft descriptor, each step overriding the
previous one field by field:

1. query parameters ``url``, ``method``, ``headers`` and ``body`` (the last
   two JSON-encoded),
2. the request body ``{url, method, headers, body}``; ``headers`` is merged
   over the query headers and ``body`` replaces the query body whenever the
   key is present,
3. the inbound request's own headers, minus hop-by-hop ones, merged under
   the headers collected so far.

The first step that fails returns a ValidationError and no descriptor is
produced.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from core.exceptions import ValidationError
from core.headers import HeaderBuilder, merge_headers, strip_hop_by_hop
from core.request_types import (
    BODY_METHODS,
    Body,
    InboundRequest,
    JsonBody,
    NoBody,
    RawBody,
    TargetRequest,
    TextBody,
)
from core.validation import validate_url

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_SCHEME_SLASHES = re.compile(r"^(https?):/+", re.IGNORECASE)


@dataclass
class _Draft:
    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Body = field(default_factory=NoBody)


def body_from_value(value: Any) -> Body:
    """Tag a decoded JSON value: strings pass through, the rest stays structured."""
    if isinstance(value, str):
        return TextBody(value)
    return JsonBody(value)


class RequestNormalizer:
    """Build a TargetRequest from an inbound request."""

    def __init__(self, header_builder: HeaderBuilder) -> None:
        self._headers = header_builder
        self._steps = (
            self._apply_query,
            self._apply_request_body,
            self._apply_inbound_headers,
        )

    def normalize(self, inbound: InboundRequest) -> TargetRequest | ValidationError:
        """Merge all input sources; return the descriptor or the first error."""
        draft = _Draft(method=inbound.method)
        for step in self._steps:
            error = step(draft, inbound)
            if error is not None:
                return error
        return self._finalize(draft)

    def normalize_path(
        self,
        target: str,
        inbound: InboundRequest,
    ) -> TargetRequest | ValidationError:
        """Build a descriptor for the RESTful ``/proxy/<target>`` form."""
        if not target:
            return ValidationError("No URL path provided")

        url = _SCHEME_SLASHES.sub(lambda m: f"{m.group(1)}://", target)
        if not url.lower().startswith(("http://", "https://")):
            url = f"https://{url}"
        if inbound.query_string:
            url = f"{url}?{inbound.query_string}"

        if validate_url(url) is not None:
            return ValidationError("Invalid URL path", url=url)

        draft = _Draft(
            url=url,
            method=inbound.method,
            headers=strip_hop_by_hop(inbound.headers),
        )
        if inbound.raw_body:
            draft.body = RawBody(inbound.raw_body)
        return self._finalize(draft)

    # -- merge steps --------------------------------------------------------

    def _apply_query(self, draft: _Draft, inbound: InboundRequest) -> ValidationError | None:
        return self._apply_encoded_fields(draft, inbound.query, source="query")

    def _apply_request_body(
        self,
        draft: _Draft,
        inbound: InboundRequest,
    ) -> ValidationError | None:
        if not inbound.raw_body:
            return None

        content_type = inbound.content_type.lower()
        if "application/x-www-form-urlencoded" in content_type:
            text = inbound.raw_body.decode("utf-8", errors="replace")
            fields = dict(parse_qsl(text, keep_blank_values=True))
            return self._apply_encoded_fields(draft, fields, source="form")
        if "json" not in content_type:
            return None

        try:
            payload = json.loads(inbound.raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ValidationError("Invalid JSON in request body")
        # Arrays and scalars carry no descriptor fields; the query stands alone
        if not isinstance(payload, dict):
            return None

        if "url" in payload:
            draft.url = payload["url"] if isinstance(payload["url"], str) else ""
        if isinstance(payload.get("method"), str) and payload["method"]:
            draft.method = payload["method"]
        if "headers" in payload and payload["headers"] is not None:
            if not isinstance(payload["headers"], dict):
                return ValidationError("Invalid headers in request body: expected a JSON object")
            draft.headers = merge_headers(draft.headers, payload["headers"])
        # Presence, not truthiness: an explicit {} or null still replaces the query body
        if "body" in payload:
            draft.body = body_from_value(payload["body"])
        return None

    def _apply_inbound_headers(
        self,
        draft: _Draft,
        inbound: InboundRequest,
    ) -> ValidationError | None:
        draft.headers = merge_headers(strip_hop_by_hop(inbound.headers), draft.headers)
        return None

    def _apply_encoded_fields(
        self,
        draft: _Draft,
        fields: dict[str, str],
        *,
        source: str,
    ) -> ValidationError | None:
        """Apply url/method/headers/body fields whose values are strings."""
        if "url" in fields:
            draft.url = fields["url"]
        if fields.get("method"):
            draft.method = fields["method"]

        if fields.get("headers"):
            try:
                headers = json.loads(fields["headers"])
            except json.JSONDecodeError:
                return ValidationError(f"Invalid JSON in {source} parameter 'headers'")
            if not isinstance(headers, dict):
                return ValidationError(
                    f"Invalid {source} parameter 'headers': expected a JSON object"
                )
            draft.headers = merge_headers(draft.headers, headers)

        if fields.get("body"):
            try:
                value = json.loads(fields["body"])
            except json.JSONDecodeError:
                return ValidationError(f"Invalid JSON in {source} parameter 'body'")
            draft.body = body_from_value(value)
        return None

    # -- output -------------------------------------------------------------

    def _finalize(self, draft: _Draft) -> TargetRequest | ValidationError:
        method = draft.method.strip().upper()
        if not _TOKEN.match(method):
            return ValidationError(f"Invalid HTTP method: {draft.method!r}", url=draft.url or None)

        body = draft.body if method in BODY_METHODS else NoBody()
        return TargetRequest(
            url=draft.url.strip(),
            method=method,
            headers=self._headers.build_upstream_headers(draft.headers),
            body=body,
        )
