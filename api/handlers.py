"""FastAPI route handlers."""

from datetime import UTC, datetime
from pathlib import Path

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.config import Config
from core.exceptions import RelayError, RequestTooLarge
from core.protocols import RequestLogger
from core.request_types import InboundRequest, RelayResponse
from ui.log_utils import write_incoming_log

USAGE_EXAMPLES = {
    "GET request": "/proxy?url=https://api.example.com/data",
    "POST with query params": "/proxy?url=https://api.example.com/data&method=POST",
    "POST with body": (
        'POST /proxy with body: { "url": "https://api.example.com/data", "method": "POST", '
        '"body": { "key": "value" }, "headers": { "Authorization": "Bearer token" } }'
    ),
    "Form-encoded upstream": (
        'POST /proxy with body: { "url": "https://api.example.com/form", "method": "POST", '
        '"headers": { "Content-Type": "application/x-www-form-urlencoded" }, '
        '"body": { "a": "1", "b": "2" } }'
    ),
    "RESTful style": "GET /proxy/api.example.com/data",
}


async def _read_inbound(request: Request, config: Config) -> InboundRequest | RelayError:
    """Snapshot the inbound request, or return the error to report."""
    raw_body = await request.body()
    if len(raw_body) > config.relay.max_body_size:
        return RequestTooLarge("Request body too large")

    headers = dict(request.headers)
    inbound = InboundRequest(
        method=request.method,
        query=dict(request.query_params),
        headers=headers,
        raw_body=raw_body,
        content_type=headers.get("content-type", ""),
        query_string=request.url.query,
    )
    if config.logging.request_logs:
        write_incoming_log(
            request.method,
            str(request.url),
            headers,
            raw_body,
            log_root=Path(config.logging.log_dir),
        )
    return inbound


async def handle_proxy(request: Request, config: Config, logger: RequestLogger) -> Response:
    """Handle ``/proxy`` with a descriptor taken from the query and/or body."""
    inbound = await _read_inbound(request, config)
    if isinstance(inbound, RelayError):
        return _error_response(request, inbound)

    target = request.app.state.normalizer.normalize(inbound)
    if isinstance(target, RelayError):
        logger.log_error(target.url, target.status_code, target.message)
        return _error_response(request, target)

    result = await request.app.state.relay_engine.relay(target)
    return _render(request, result)


async def handle_proxy_path(
    request: Request,
    config: Config,
    logger: RequestLogger,
    target_path: str,
) -> Response:
    """Handle ``/proxy/<target>``, forwarding the inbound request as-is."""
    inbound = await _read_inbound(request, config)
    if isinstance(inbound, RelayError):
        return _error_response(request, inbound)

    target = request.app.state.normalizer.normalize_path(target_path, inbound)
    if isinstance(target, RelayError):
        logger.log_error(target.url, target.status_code, target.message)
        return _error_response(request, target)

    result = await request.app.state.relay_engine.relay(target)
    return _render(request, result)


async def handle_health() -> dict[str, str]:
    return {
        "status": "OK",
        "message": "CORS Proxy Server is running",
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def handle_examples() -> dict[str, dict[str, str]]:
    return {"examples": USAGE_EXAMPLES}


async def handle_options(request: Request) -> Response:
    """Answer any OPTIONS request that is not a CORS preflight."""
    return Response(status_code=204, headers=request.app.state.header_builder.cors_headers())


def _render(request: Request, result: RelayResponse | RelayError) -> Response:
    if isinstance(result, RelayError):
        return _error_response(request, result)

    single = {key: value for key, value in result.headers if key != "set-cookie"}
    response = Response(
        content=result.content,
        status_code=result.status_code,
        headers=single,
        media_type=result.media_type,
    )
    for key, value in result.headers:
        if key == "set-cookie":
            response.headers.append(key, value)
    response.headers.update(request.app.state.header_builder.cors_headers())
    return response


def _error_response(request: Request, error: RelayError) -> Response:
    return JSONResponse(
        content=error.to_payload(),
        status_code=error.status_code,
        headers=request.app.state.header_builder.cors_headers(),
    )
