"""
Inspection Routes - Frameability Checks
=======================================

Reports whether a target can be shown in an iframe by issuing a HEAD request
and reading its X-Frame-Options and Content-Security-Policy headers. The
body is never fetched.

Endpoints:
----------
- POST /check:  {url, customHeaders?} -> {frameable, xFrameOptions, csp, customHeaders?}
                strict input validation and custom header reporting
- POST /broken: {url} -> {frameable, xFrameOptions, csp}
                permissive variant, client default User-Agent
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import Response

from ..config import get_settings
from ..errors import InputError, UpstreamError
from ..proxy.frameability import analyze_frameability
from ..proxy.profiles import EndpointProfile, broken_profile, check_profile
from ..proxy.relay import (
    CallerDisconnected,
    disconnected_response,
    inspection_error_response,
    inspection_input_error_response,
    run_until_disconnected,
    verdict_response,
)
from ..proxy.routes import get_upstream_client
from ..proxy.upstream import UpstreamClient
from ..proxy.validation import parse_inspection_payload

logger = logging.getLogger(__name__)

inspection_router = APIRouter()


async def inspect_target(
    request: Request,
    payload: Optional[Dict[str, Any]],
    profile: EndpointProfile,
    upstream: UpstreamClient,
) -> Response:
    """
    Shared body of /check and /broken.

    Args:
        request: FastAPI request (used to notice caller disconnects)
        payload: Decoded JSON body
        profile: Switches for the calling endpoint
        upstream: Outbound client

    Returns:
        JSON verdict, or a JSON error body (400 input, 500 upstream)
    """
    settings = get_settings()

    try:
        target = parse_inspection_payload(payload, profile, settings.URL_MIN_LENGTH)
    except InputError as e:
        logger.info(
            f"Rejected /{profile.name} request: {e.message}",
            extra={"endpoint": profile.name},
        )
        return inspection_input_error_response(e.message)

    try:
        fetched = await run_until_disconnected(
            request,
            upstream.fetch(
                target.url,
                method=profile.method,
                use_browser_user_agent=profile.use_browser_user_agent,
                timeout=profile.timeout,
            ),
        )
    except CallerDisconnected:
        return disconnected_response()
    except UpstreamError as e:
        return inspection_error_response(
            e.message,
            include_custom_headers=profile.check_custom_headers,
        )

    verdict = analyze_frameability(
        fetched.headers,
        custom_headers=target.custom_headers,
        strict_names=profile.strict_custom_header_names,
    )

    logger.info(
        "Inspected target",
        extra={
            "endpoint": profile.name,
            "target_url": target.url,
            "status_code": fetched.status_code,
            "frameable": verdict.frameable,
        },
    )

    return verdict_response(verdict)


@inspection_router.post("/check")
async def check_frameable(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """
    Check whether a URL can be embedded in an iframe.

    Expected payload:
        - url: str (http:// or https:// URL)
        - customHeaders: Optional[List[str]] (header names to report on)
    """
    return await inspect_target(request, payload, check_profile(get_settings()), upstream)


@inspection_router.post("/broken")
async def check_broken(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """
    Permissive frameability check.

    Expected payload:
        - url: str
    """
    return await inspect_target(request, payload, broken_profile(get_settings()), upstream)
