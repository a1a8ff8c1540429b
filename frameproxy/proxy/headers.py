"""
Response header handling for relayed upstream responses.

Header mappings are carried as ``httpx.Headers``: an ordered multi-mapping
that keeps the received name casing and answers lookups case-insensitively.

- sanitize_headers(): drops the headers that stop a browser from framing the
  resource and optionally grants unrestricted cross-origin access.
- relayable_headers(): drops hop-by-hop and framing headers that describe the
  upstream connection rather than the body we write back.
"""

from typing import Iterable, Mapping, Tuple, Union

import httpx

HeaderSource = Union[httpx.Headers, Mapping[str, str], Iterable[Tuple[str, str]]]

# ─── Constants ────────────────────────────────────────────────────────────────

X_FRAME_OPTIONS = "X-Frame-Options"
CONTENT_SECURITY_POLICY = "Content-Security-Policy"
CONTENT_SECURITY_POLICY_REPORT_ONLY = "Content-Security-Policy-Report-Only"

FRAME_BLOCKING_HEADERS: frozenset = frozenset(
    {
        X_FRAME_OPTIONS.lower(),
        CONTENT_SECURITY_POLICY.lower(),
        CONTENT_SECURITY_POLICY_REPORT_ONLY.lower(),
    }
)

CORS_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS"),
    ("Access-Control-Allow-Headers", "*"),
)

# RFC 7230 §6.1 hop-by-hop headers, plus the framing headers that no longer
# match once httpx has decoded the body.
HOP_BY_HOP_HEADERS: frozenset = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-length",
        "content-encoding",
    }
)


# ─── Public API ───────────────────────────────────────────────────────────────


def _without(headers: HeaderSource, dropped: frozenset) -> httpx.Headers:
    # Raw pairs keep the received name casing and undecoded values.
    return httpx.Headers(
        [
            (name, value)
            for name, value in httpx.Headers(headers).raw
            if name.decode("latin-1").lower() not in dropped
        ]
    )


def sanitize_headers(headers: HeaderSource, add_cors: bool = False) -> httpx.Headers:
    """
    Build a header mapping that allows the resource to be framed.

    Args:
        headers: Upstream response headers
        add_cors: Replace any upstream Access-Control-Allow-* values with
            the permissive CORS_HEADERS set

    Returns:
        New header mapping; the input is not modified
    """
    sanitized = _without(headers, FRAME_BLOCKING_HEADERS)

    if add_cors:
        for name, value in CORS_HEADERS:
            sanitized[name] = value

    return sanitized


def relayable_headers(headers: HeaderSource) -> httpx.Headers:
    """Drop connection-level headers before replaying a response."""
    return _without(headers, HOP_BY_HOP_HEADERS)
