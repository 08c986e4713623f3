"""Relay orchestration: validate, consult the cache, dispatch, translate."""

import time

from core.cache import is_cacheable, key_for
from core.config import Config
from core.exceptions import RelayError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger, ResponseCache
from core.request_types import RelayResponse, TargetRequest
from core.transform import ResponseTranslator
from core.validation import validate_target
from services.upstream import UpstreamClient, UpstreamReply


class RelayEngine:
    """Turn a TargetRequest into a RelayResponse or a RelayError."""

    def __init__(
        self,
        config: Config,
        logger: RequestLogger,
        upstream: UpstreamClient,
        header_builder: HeaderBuilder,
        cache: ResponseCache,
        translator: ResponseTranslator | None = None,
    ) -> None:
        self._logger = logger
        self._upstream = upstream
        self._headers = header_builder
        self._cache = cache
        self._cache_enabled = config.cache.enabled
        self._ttl = config.cache.ttl
        self._translator = translator or ResponseTranslator()

    async def relay(self, target: TargetRequest) -> RelayResponse | RelayError:
        error = validate_target(target)
        if error is not None:
            self._logger.log_error(target.url or None, error.status_code, error.message)
            return error

        key = None
        if self._cache_enabled and is_cacheable(target):
            key = key_for(target)
            cached = self._cache.get(key)
            if cached is not None:
                self._logger.log_cache_hit(target.method, target.url)
                return cached

        started = time.perf_counter()
        reply = await self._upstream.send(target)
        if isinstance(reply, RelayError):
            self._logger.log_error(target.url, reply.status_code, reply.message)
            return reply.with_url(target.url)

        response = self.translate(reply, target.method)
        self._logger.log_relay(
            target.method,
            target.url,
            response.status_code,
            elapsed=time.perf_counter() - started,
            headers=target.headers,
        )

        if key is not None and is_cacheable(target, response):
            self._cache.set(key, response, self._ttl)
        return response

    def translate(self, reply: UpstreamReply, method: str) -> RelayResponse:
        """Select forwarded headers and re-encode the body by content type."""
        content, media_type = self._translator.translate(
            reply.content,
            reply.content_type,
            reply.encoding,
        )

        headers = []
        for key, value in self._headers.build_response_headers(reply.headers):
            if key == "content-type":
                continue
            # Recomputed from the relayed body, except for HEAD where there is none
            if key == "content-length" and not (method == "HEAD" and not content):
                continue
            headers.append((key, value))

        return RelayResponse(
            status_code=reply.status_code,
            headers=headers,
            content=content,
            media_type=media_type,
        )
