"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any, Union

BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class NoBody:
    """The outbound call carries no body."""


@dataclass(frozen=True)
class JsonBody:
    """A structured value, serialized according to the outbound content type."""

    value: Any


@dataclass(frozen=True)
class TextBody:
    """A pre-formed string sent unchanged."""

    text: str


@dataclass(frozen=True)
class RawBody:
    """Opaque bytes sent unchanged."""

    data: bytes


Body = Union[NoBody, JsonBody, TextBody, RawBody]


@dataclass(frozen=True)
class InboundRequest:
    """Framework-independent snapshot of the request the proxy received."""

    method: str
    query: dict[str, str]
    headers: dict[str, str]
    raw_body: bytes = b""
    content_type: str = ""
    query_string: str = ""


@dataclass(frozen=True)
class TargetRequest:
    """Canonical description of the outbound call."""

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Body = NoBody()

    @property
    def carries_body(self) -> bool:
        return self.method in BODY_METHODS and not isinstance(self.body, NoBody)


@dataclass(frozen=True)
class RelayResponse:
    """Translated upstream response, ready to be written to the caller.

    This is also the envelope stored in the response cache.
    """

    status_code: int
    headers: list[tuple[str, str]]
    content: bytes
    media_type: str | None = None
