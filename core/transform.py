"""Body encoding for outbound requests and translation of upstream bodies."""

import json
from typing import Any
from urllib.parse import urlencode

from core.request_types import Body, JsonBody, NoBody, RawBody, TextBody

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class BodyEncoder:
    """Encode a tagged body according to the declared outbound Content-Type."""

    def encode(self, body: Body, content_type: str | None) -> bytes | None:
        """Return the bytes to send, or None when the call carries no body."""
        content_type = (content_type or "").lower()

        if isinstance(body, NoBody):
            return None
        if isinstance(body, RawBody):
            return body.data
        if isinstance(body, TextBody):
            return body.text.encode("utf-8")
        if isinstance(body, JsonBody):
            if FORM_CONTENT_TYPE in content_type and isinstance(body.value, dict):
                return self._encode_form(body.value).encode("utf-8")
            return json.dumps(body.value, ensure_ascii=False).encode("utf-8")
        raise TypeError(f"Unsupported body type: {type(body).__name__}")

    def default_content_type(self, body: Body) -> str | None:
        """Content-Type to declare when the caller declared none."""
        if isinstance(body, JsonBody):
            return JSON_CONTENT_TYPE
        return None

    @staticmethod
    def _encode_form(fields: dict[str, Any]) -> str:
        """``key=value&...`` in mapping order; lists repeat the key."""
        pairs: list[tuple[str, str]] = []
        for key, value in fields.items():
            if isinstance(value, list):
                pairs.extend((str(key), _form_value(item)) for item in value)
            else:
                pairs.append((str(key), _form_value(value)))
        return urlencode(pairs)


def _form_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class ResponseTranslator:
    """Pick the body encoding for a relayed upstream response."""

    def translate(
        self,
        content: bytes,
        content_type: str | None,
        encoding: str | None,
    ) -> tuple[bytes, str | None]:
        """Return ``(content, media_type)`` for the caller-facing response.

        JSON is re-rendered compactly, text is re-encoded as UTF-8, anything
        else passes through byte for byte.
        """
        lowered = (content_type or "").lower()
        if JSON_CONTENT_TYPE in lowered:
            try:
                value = json.loads(content)
            except (json.JSONDecodeError, UnicodeDecodeError):
                return content, content_type
            rendered = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
            return rendered.encode("utf-8"), JSON_CONTENT_TYPE
        if "text/" in lowered:
            text = content.decode(encoding or "utf-8", errors="replace")
            return text.encode("utf-8"), _with_utf8_charset(content_type)
        return content, content_type


def _with_utf8_charset(content_type: str | None) -> str | None:
    if not content_type:
        return content_type
    media_type = content_type.split(";", 1)[0].strip()
    return f"{media_type}; charset=utf-8"
