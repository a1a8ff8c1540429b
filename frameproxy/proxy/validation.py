"""
Caller input validation.

Everything here raises InputError, which the endpoints answer with 400
before any upstream request is made.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from .profiles import EndpointProfile
from ..errors import InputError

URL_REQUIRED = "URL is required"

_HTTP_URL = re.compile(r"^https?://\S+$", re.IGNORECASE)


@dataclass
class InspectionTarget:
    url: str
    custom_headers: Optional[List[Any]] = None


def validate_target_url(url: str, min_length: int) -> str:
    """
    Strict URL check: minimum length and an http(s):// scheme.

    Raises:
        InputError: If the URL fails either check
    """
    if len(url) < min_length:
        raise InputError(f"URL must be at least {min_length} characters long")
    if not _HTTP_URL.match(url):
        raise InputError("URL must start with http:// or https://")
    return url


def parse_inspection_payload(
    payload: Optional[Mapping[str, Any]],
    profile: EndpointProfile,
    min_length: int,
) -> InspectionTarget:
    """
    Pull the target URL and custom header names out of a /check or /broken body.

    Args:
        payload: Decoded JSON body (None when the body was empty)
        profile: Endpoint switches (strict validation, custom headers)
        min_length: Minimum URL length under strict validation

    Returns:
        InspectionTarget; custom_headers is None when not requested or
        not enabled for the endpoint

    Raises:
        InputError: Missing URL, or a strict-validation failure
    """
    payload = payload or {}

    url = payload.get("url")
    if url is None or url == "":
        raise InputError(URL_REQUIRED)
    if not isinstance(url, str):
        raise InputError("URL must be a string")

    if profile.strict_validation:
        validate_target_url(url, min_length)

    custom_headers = None
    raw = payload.get("customHeaders")
    if profile.check_custom_headers and raw is not None:
        if isinstance(raw, list):
            custom_headers = raw
        elif profile.strict_validation:
            raise InputError("customHeaders must be an array")

    return InspectionTarget(url=url, custom_headers=custom_headers)
