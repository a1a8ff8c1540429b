"""
Relay: turns the outcome of a fetch into the single response sent back to
the caller.

Proxy outcomes are replayed as raw bytes with the sanitized header set;
inspection outcomes are JSON. Failures keep the shapes callers already
handle: ``Proxy Error: <message>`` text for /proxy and a non-frameable JSON
verdict for /check and /broken.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .headers import relayable_headers, sanitize_headers
from .upstream import UpstreamResponse
from ..models import ErrorResponse, FrameabilityVerdict

logger = logging.getLogger(__name__)

T = TypeVar("T")

# nginx convention for "client closed request"; never actually delivered.
CLIENT_CLOSED_REQUEST = 499


class CallerDisconnected(Exception):
    """The caller went away before the upstream fetch finished."""


# ============================================================================
# Proxy Responses
# ============================================================================

def relay_upstream_response(upstream: UpstreamResponse, add_cors: bool) -> Response:
    """
    Replay an upstream response with frame-blocking headers removed.

    Args:
        upstream: Final upstream response
        add_cors: Whether to add the permissive Access-Control-* headers

    Returns:
        Response with the upstream status code and body bytes
    """
    outbound = sanitize_headers(relayable_headers(upstream.headers), add_cors=add_cors)

    response = Response(content=upstream.body, status_code=upstream.status_code)
    # ASGI wants lowercase names on the wire; values are passed on byte for byte
    for name, value in outbound.raw:
        response.headers.append(name.decode("latin-1"), value.decode("latin-1"))
    return response


def proxy_error_response(message: str) -> PlainTextResponse:
    return PlainTextResponse(
        f"Proxy Error: {message}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def proxy_input_error_response(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status.HTTP_400_BAD_REQUEST)


# ============================================================================
# Inspection Responses
# ============================================================================

def verdict_response(verdict: FrameabilityVerdict) -> JSONResponse:
    return JSONResponse(verdict.to_payload())


def inspection_error_response(message: str, include_custom_headers: bool = False) -> JSONResponse:
    """500 body that callers can treat like a non-frameable verdict."""
    body = ErrorResponse(
        error=message,
        frameable=False,
        customHeaders={} if include_custom_headers else None,
    )
    return JSONResponse(
        body.to_payload(),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def inspection_input_error_response(message: str) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(error=message).to_payload(),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def disconnected_response() -> Response:
    return Response(status_code=CLIENT_CLOSED_REQUEST)


# ============================================================================
# Disconnect Handling
# ============================================================================

async def _wait_for_disconnect(request: Request) -> None:
    # Remaining body messages, if any, are discarded.
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def run_until_disconnected(request: Request, operation: Awaitable[T]) -> T:
    """
    Await ``operation`` unless the caller disconnects first.

    Raises:
        CallerDisconnected: The caller went away; ``operation`` was cancelled
    """
    fetch = asyncio.ensure_future(operation)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))

    try:
        done, _ = await asyncio.wait({fetch, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        fetch.cancel()
        watcher.cancel()
        raise

    if fetch in done:
        watcher.cancel()
        return fetch.result()

    fetch.cancel()
    logger.info("Caller disconnected, upstream fetch cancelled", extra={"path": request.url.path})
    raise CallerDisconnected()
