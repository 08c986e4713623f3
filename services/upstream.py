"""HTTP client for outbound relay calls."""

import asyncio
from dataclasses import dataclass

import httpx

from core.exceptions import (
    RelayError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.headers import HeaderBuilder, get_header
from core.request_types import TargetRequest
from core.transform import BodyEncoder


@dataclass(frozen=True)
class UpstreamReply:
    """Raw upstream response, fully read."""

    status_code: int
    headers: list[tuple[str, str]]
    content: bytes
    content_type: str | None
    encoding: str | None


class UpstreamClient:
    """Send a TargetRequest upstream and read the reply.

    Every status below 600 counts as a completed call; only network-level
    failures come back as errors.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder,
        encoder: BodyEncoder | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._headers = header_builder
        self._encoder = encoder or BodyEncoder()
        self._timeout = timeout

    def build_request(self, target: TargetRequest) -> httpx.Request:
        """Build the outbound request; the body is only attached for body methods."""
        headers = self._headers.build_upstream_headers(target.headers)
        content = None
        if target.carries_body:
            content_type = get_header(headers, "content-type")
            if content_type is None:
                content_type = self._encoder.default_content_type(target.body)
                if content_type:
                    headers["Content-Type"] = content_type
            content = self._encoder.encode(target.body, content_type)

        return self._client.build_request(
            target.method,
            target.url,
            headers=headers,
            content=content,
            timeout=self._timeout,
        )

    async def send(self, target: TargetRequest) -> UpstreamReply | RelayError:
        try:
            request = self.build_request(target)
        except httpx.InvalidURL as e:
            return UpstreamError(f"Invalid URL: {e}", 400, error=str(e), url=target.url)
        except UnicodeEncodeError as e:
            return UpstreamError(f"Invalid header value: {e}", 400, error=str(e), url=target.url)

        # httpx limits each phase separately; the deadline covers the whole call.
        try:
            async with asyncio.timeout(self._timeout):
                response = await self._client.send(request)
        except (httpx.TimeoutException, TimeoutError):
            return UpstreamTimeoutError(f"timeout of {self._timeout:g}s exceeded", url=target.url)
        except httpx.TooManyRedirects as e:
            return UpstreamError(str(e), error=str(e), url=target.url)
        except httpx.RequestError as e:
            return UpstreamConnectionError(str(e) or type(e).__name__, url=target.url)

        if response.status_code >= 600:
            return UpstreamError(
                response.reason_phrase or f"Unexpected status {response.status_code}",
                response.status_code,
                error=response.text,
                url=target.url,
            )

        return UpstreamReply(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            content=response.content,
            content_type=response.headers.get("content-type"),
            encoding=response.encoding,
        )
