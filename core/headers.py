"""Header construction for upstream requests and relayed responses."""

from collections.abc import Iterable, Mapping
from typing import Any

# Recomputed by the HTTP client for every outbound call
HOP_BY_HOP_HEADERS = frozenset(
    {"host", "connection", "content-length", "accept-encoding", "transfer-encoding"}
)

FORWARDED_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "cache-control",
    "etag",
    "last-modified",
    "location",
    "set-cookie",
)


def merge_headers(*layers: Mapping[str, Any] | None) -> dict[str, str]:
    """Shallow-merge header mappings, later layers winning.

    Names compare case-insensitively; the spelling of the last write is kept.
    A ``None`` value drops the header and booleans are written as ``true`` or
    ``false``.
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                merged.pop(str(key).lower(), None)
                continue
            merged[str(key).lower()] = (str(key), _header_value(value))
    return {name: value for name, value in merged.values()}


def _header_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def strip_hop_by_hop(headers: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class HeaderBuilder:
    """Build outbound request headers and relayed response headers."""

    def __init__(
        self,
        user_agent: str,
        allow_origins: Iterable[str] = ("*",),
        allow_methods: Iterable[str] = (),
        allow_headers: Iterable[str] = (),
    ) -> None:
        self.user_agent = user_agent
        self._cors = {
            "Access-Control-Allow-Origin": ", ".join(allow_origins) or "*",
        }
        if allow_methods:
            self._cors["Access-Control-Allow-Methods"] = ", ".join(allow_methods)
        if allow_headers:
            self._cors["Access-Control-Allow-Headers"] = ", ".join(allow_headers)

    def build_upstream_headers(self, headers: Mapping[str, Any]) -> dict[str, str]:
        """Default User-Agent under the caller's headers, hop-by-hop removed."""
        return strip_hop_by_hop(merge_headers({"User-Agent": self.user_agent}, headers))

    def build_response_headers(
        self,
        upstream: Iterable[tuple[str, str]],
    ) -> list[tuple[str, str]]:
        """Keep allow-listed upstream headers, preserving repeated values."""
        return [
            (key.lower(), value)
            for key, value in upstream
            if key.lower() in FORWARDED_RESPONSE_HEADERS
        ]

    def cors_headers(self) -> dict[str, str]:
        return dict(self._cors)
