"""
Frameability analysis of an upstream response's headers.

A resource is frameable when it sends no X-Frame-Options header and its
Content-Security-Policy, if any, has no frame-ancestors directive.
"""

import re
from typing import Any, Dict, Iterable, Optional

import httpx

from .headers import CONTENT_SECURITY_POLICY, X_FRAME_OPTIONS, HeaderSource
from ..models import FrameabilityVerdict

FRAME_ANCESTORS_DIRECTIVE = "frame-ancestors"

_CUSTOM_HEADER_NAME = re.compile(r"^X-[A-Za-z0-9-]+$", re.IGNORECASE)


def _has_header(lookup: httpx.Headers, name: str) -> bool:
    try:
        return name in lookup
    except UnicodeEncodeError:
        return False


def is_frameable(x_frame_options: Optional[str], csp: Optional[str]) -> bool:
    if x_frame_options is not None:
        return False
    return csp is None or FRAME_ANCESTORS_DIRECTIVE not in csp.lower()


def check_custom_headers(
    headers: HeaderSource,
    names: Iterable[Any],
    strict_names: bool = True,
) -> Dict[str, bool]:
    """
    Report which of the requested headers the response carries.

    Args:
        headers: Response headers
        names: Header names supplied by the caller
        strict_names: Record names not shaped like ``X-Something`` as
            absent instead of looking them up

    Returns:
        Mapping of each requested name to its presence
    """
    lookup = httpx.Headers(headers)
    results: Dict[str, bool] = {}

    for name in names:
        key = name if isinstance(name, str) else str(name)
        if not isinstance(name, str) or not name:
            results[key] = False
        elif strict_names and not _CUSTOM_HEADER_NAME.match(name):
            results[key] = False
        else:
            results[key] = _has_header(lookup, name)

    return results


def analyze_frameability(
    headers: HeaderSource,
    custom_headers: Optional[Iterable[Any]] = None,
    strict_names: bool = True,
) -> FrameabilityVerdict:
    """
    Derive the frameability verdict for a set of response headers.

    Args:
        headers: Response headers (normally from a HEAD request)
        custom_headers: Optional caller-supplied header names to report on
        strict_names: Passed to check_custom_headers

    Returns:
        FrameabilityVerdict; customHeaders is None unless names were given
    """
    lookup = httpx.Headers(headers)
    x_frame_options = lookup.get(X_FRAME_OPTIONS)
    csp = lookup.get(CONTENT_SECURITY_POLICY)

    custom = None
    if custom_headers is not None:
        custom = check_custom_headers(lookup, custom_headers, strict_names=strict_names)

    return FrameabilityVerdict(
        frameable=is_frameable(x_frame_options, csp),
        xFrameOptions=x_frame_options,
        csp=csp,
        customHeaders=custom,
    )
