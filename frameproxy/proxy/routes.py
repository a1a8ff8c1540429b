"""
Proxy Routes - Frame-Stripping Relay
====================================

Fetches a caller-specified resource and replays it without the headers that
stop browsers from showing it inside an iframe.

Target Forms:
-------------
1. Plain URL as the path remainder:   GET /proxy/https://example.com/page
2. Compact URL-safe base64 token:     GET /proxy/aHR0cHM6Ly9leGFtcGxlLmNvbS9wYWdl

Response Policy:
----------------
- Upstream status code and body are replayed unchanged (4xx/5xx included)
- X-Frame-Options and Content-Security-Policy(-Report-Only) are removed
- Permissive Access-Control-* headers are added when PROXY_ADD_CORS_HEADERS is on
- Transport failures answer 500 "Proxy Error: <message>"
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ..config import get_settings
from ..errors import InputError, UpstreamError
from .profiles import proxy_profile
from .relay import (
    CallerDisconnected,
    disconnected_response,
    proxy_error_response,
    proxy_input_error_response,
    relay_upstream_response,
    run_until_disconnected,
)
from .resolver import is_http_url, resolve_target
from .upstream import UpstreamClient
from .validation import URL_REQUIRED, validate_target_url

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter()

PROXY_PREFIX = "/proxy/"


# ============================================================================
# Dependencies
# ============================================================================

def get_upstream_client(request: Request) -> UpstreamClient:
    """
    Dependency that builds the outbound client for one request.

    A transport placed on ``app.state.upstream_transport`` (tests, or an
    embedding application) is used instead of the network.

    Args:
        request: FastAPI request object

    Returns:
        UpstreamClient configured from settings
    """
    settings = get_settings()
    transport = getattr(request.app.state, "upstream_transport", None)

    return UpstreamClient(
        user_agent=settings.UPSTREAM_USER_AGENT,
        max_redirects=settings.UPSTREAM_MAX_REDIRECTS,
        transport=transport,
    )


def plain_target_url(request: Request, target: str) -> str:
    """
    Rebuild a plain target exactly as the caller sent it.

    ``target`` has already been percent-decoded, so an escaped ``%3F`` in the
    target's path would read as a query separator. The undecoded remainder
    of ``raw_path`` is used instead whenever it is itself an http(s) URL.
    The caller's query string belongs to the target.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        _, found, remainder = raw_path.decode("latin-1").partition(PROXY_PREFIX)
        if found and is_http_url(remainder):
            target = remainder

    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{target}?{query}" if query else target


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.get(PROXY_PREFIX + "{target:path}")
async def proxy_target(
    target: str,
    request: Request,
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """
    Fetch the target and relay it with frame-blocking headers removed.

    Flow:
    1. Reject an empty target (400)
    2. Resolve the plain or compact target to a URL
    3. Optionally apply strict URL validation (400)
    4. GET the URL once, following up to UPSTREAM_MAX_REDIRECTS redirects
    5. Replay status, sanitized headers and raw body

    Args:
        target: Path remainder after /proxy/
        request: FastAPI request
        upstream: Outbound client

    Returns:
        Relayed upstream response, or a plain-text error
    """
    settings = get_settings()
    profile = proxy_profile(settings)

    if not target:
        return proxy_input_error_response(URL_REQUIRED)

    if is_http_url(target):
        url = plain_target_url(request, target)
    else:
        url = resolve_target(target)

    if profile.strict_validation:
        try:
            validate_target_url(url, settings.URL_MIN_LENGTH)
        except InputError as e:
            return proxy_input_error_response(e.message)

    logger.info("Proxying request", extra={"target_url": url})

    try:
        fetched = await run_until_disconnected(
            request,
            upstream.fetch(
                url,
                method=profile.method,
                use_browser_user_agent=profile.use_browser_user_agent,
                timeout=profile.timeout,
            ),
        )
    except CallerDisconnected:
        return disconnected_response()
    except UpstreamError as e:
        return proxy_error_response(e.message)

    logger.info(
        "Relaying upstream response",
        extra={
            "target_url": url,
            "final_url": fetched.url,
            "status_code": fetched.status_code,
            "redirects": fetched.redirects,
            "body_length": len(fetched.body),
        },
    )

    return relay_upstream_response(fetched, add_cors=profile.add_cors_headers)
