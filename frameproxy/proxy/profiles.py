"""
Per-endpoint behaviour switches.

/proxy, /check and /broken run the same resolve -> fetch -> sanitize/analyze
pipeline; an EndpointProfile says which optional steps each one enables.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import Settings


@dataclass(frozen=True)
class EndpointProfile:
    name: str
    method: str
    strict_validation: bool = False
    add_cors_headers: bool = False
    check_custom_headers: bool = False
    strict_custom_header_names: bool = True
    use_browser_user_agent: bool = True
    timeout: Optional[float] = None


def proxy_profile(settings: Settings) -> EndpointProfile:
    return EndpointProfile(
        name="proxy",
        method="GET",
        strict_validation=settings.PROXY_STRICT_VALIDATION,
        add_cors_headers=settings.PROXY_ADD_CORS_HEADERS,
        use_browser_user_agent=settings.PROXY_USE_BROWSER_USER_AGENT,
        timeout=settings.PROXY_TIMEOUT_SECONDS,
    )


def check_profile(settings: Settings) -> EndpointProfile:
    return EndpointProfile(
        name="check",
        method="HEAD",
        strict_validation=settings.CHECK_STRICT_VALIDATION,
        check_custom_headers=settings.CHECK_CUSTOM_HEADERS,
        strict_custom_header_names=settings.CHECK_STRICT_CUSTOM_HEADER_NAMES,
        use_browser_user_agent=settings.CHECK_USE_BROWSER_USER_AGENT,
        timeout=settings.CHECK_TIMEOUT_SECONDS,
    )


def broken_profile(settings: Settings) -> EndpointProfile:
    return EndpointProfile(
        name="broken",
        method="HEAD",
        use_browser_user_agent=settings.BROKEN_USE_BROWSER_USER_AGENT,
        timeout=settings.BROKEN_TIMEOUT_SECONDS,
    )
