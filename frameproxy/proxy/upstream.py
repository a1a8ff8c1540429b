"""
Outbound HTTP client for proxy and inspection fetches.

Each call opens its own httpx.AsyncClient, sends exactly one logical request
(following at most ``max_redirects`` redirects by hand) and closes the client
again. Nothing is retried. Any HTTP status, 4xx and 5xx included, is a
successful fetch; only transport failures raise UpstreamError.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    """Status, headers and raw body of the final upstream response."""
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""
    url: str = ""
    redirects: int = 0


def describe_transport_error(exc: Exception) -> str:
    """Message for an httpx failure, falling back to the exception type when it has none."""
    message = str(exc).strip()
    return message or type(exc).__name__


class UpstreamClient:
    """
    Performs single outbound requests with a fixed redirect and identity policy.

    Attributes:
        user_agent: Browser User-Agent sent when a fetch asks for it
        max_redirects: Redirect hops followed before the last response is kept
    """

    def __init__(
        self,
        user_agent: str,
        max_redirects: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self._transport = transport

    def _client(self, timeout: Optional[float]) -> httpx.AsyncClient:
        kwargs = {"transport": self._transport, "follow_redirects": False}
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)
        return httpx.AsyncClient(**kwargs)

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        use_browser_user_agent: bool = True,
        timeout: Optional[float] = None,
    ) -> UpstreamResponse:
        """
        Fetch ``url`` once.

        Args:
            url: Absolute target URL
            method: "GET" to capture the body, "HEAD" for headers only
            use_browser_user_agent: Send self.user_agent instead of the
                httpx default
            timeout: Timeout in seconds, or None for the httpx default

        Returns:
            UpstreamResponse for the last response in the redirect chain

        Raises:
            UpstreamError: DNS failure, refused connection, timeout or an
                unusable URL
        """
        headers: Dict[str, str] = {}
        if use_browser_user_agent:
            headers["User-Agent"] = self.user_agent

        try:
            async with self._client(timeout) as client:
                request = client.build_request(method, url, headers=headers)
                response = await client.send(request)

                hops = 0
                while response.next_request is not None and hops < self.max_redirects:
                    next_request = response.next_request
                    await response.aclose()
                    response = await client.send(next_request)
                    hops += 1

                if response.next_request is not None:
                    logger.info(
                        "Redirect limit reached, returning last response",
                        extra={"target_url": url, "redirects": hops, "status_code": response.status_code},
                    )

                return UpstreamResponse(
                    status_code=response.status_code,
                    headers=httpx.Headers(response.headers),
                    body=response.content,
                    url=str(response.url),
                    redirects=hops,
                )

        except (httpx.RequestError, httpx.InvalidURL) as e:
            message = describe_transport_error(e)
            logger.warning(
                f"Upstream {method} failed: {message}",
                extra={"target_url": url, "exception_type": type(e).__name__},
            )
            raise UpstreamError(message, url=url) from e
