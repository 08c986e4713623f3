"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.handlers import (
    handle_examples,
    handle_health,
    handle_options,
    handle_proxy,
    handle_proxy_path,
)
from core.cache import MemoryCache, NullCache
from core.config import Config
from core.headers import HeaderBuilder
from core.normalizer import RequestNormalizer
from core.protocols import RequestLogger, ResponseCache
from services.relay import RelayEngine
from services.upstream import UpstreamClient

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"]


def create_app(
    config: Config,
    logger: RequestLogger,
    *,
    cache: ResponseCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces the network transport of the outbound client,
    which lets tests stand in a mock upstream.
    """
    header_builder = HeaderBuilder(
        user_agent=config.relay.user_agent,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
    )
    if cache is None:
        cache = MemoryCache(config.cache.max_entries) if config.cache.enabled else NullCache()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
        client = httpx.AsyncClient(
            timeout=config.relay.timeout,
            limits=limits,
            follow_redirects=True,
            max_redirects=config.relay.max_redirects,
            transport=transport,
        )
        app.state.header_builder = header_builder
        app.state.normalizer = RequestNormalizer(header_builder)
        app.state.relay_engine = RelayEngine(
            config=config,
            logger=logger,
            upstream=UpstreamClient(client, header_builder, timeout=config.relay.timeout),
            header_builder=header_builder,
            cache=cache,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="CORS Relay", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
    )

    @app.api_route("/proxy", methods=PROXY_METHODS)
    async def proxy(request: Request):
        return await handle_proxy(request, config, logger)

    @app.api_route("/proxy/{target:path}", methods=PROXY_METHODS)
    async def proxy_path(request: Request, target: str):
        return await handle_proxy_path(request, config, logger, target)

    @app.get("/health")
    async def health():
        return await handle_health()

    @app.get("/examples")
    async def examples():
        return await handle_examples()

    # Preflights are answered by CORSMiddleware before routing
    @app.options("/{path:path}")
    async def options(request: Request):
        return await handle_options(request)

    return app
