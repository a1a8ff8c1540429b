"""
Target resolution for the /proxy endpoint.

A target arrives either as a plain URL (``/proxy/https://example.com/a``) or
as a compact token: URL-safe base64 with the trailing ``=`` padding removed
(``/proxy/aHR0cHM6Ly9leGFtcGxlLmNvbQ``). Anything that does not decode to an
http(s) URL is used verbatim and left for the fetch to reject.
"""

import base64
import binascii
import logging
import re

logger = logging.getLogger(__name__)

_HTTP_URL_PREFIX = re.compile(r"^https?://")


def is_http_url(value: str) -> bool:
    return bool(_HTTP_URL_PREFIX.match(value))


def encode_target(url: str) -> str:
    """Encode a URL into the compact form accepted by resolve_target."""
    encoded = base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_target(token: str) -> str:
    """
    Decode a compact token back to text.

    Raises:
        ValueError: If the token is not valid base64 or not UTF-8 text
    """
    standard = token.replace("-", "+").replace("_", "/")
    padded = standard + "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"Not a compact target token: {e}") from e


def resolve_target(raw: str) -> str:
    """
    Turn a raw /proxy path remainder into the URL to fetch.

    Args:
        raw: Non-empty path remainder as received

    Returns:
        The plain URL, the decoded URL, or ``raw`` unchanged
    """
    if is_http_url(raw):
        return raw

    try:
        decoded = decode_target(raw)
    except ValueError:
        logger.debug("Target is not a compact token, using it verbatim", extra={"target": raw})
        return raw

    if is_http_url(decoded):
        return decoded

    logger.debug("Decoded target is not an http(s) URL, using it verbatim", extra={"target": raw})
    return raw
