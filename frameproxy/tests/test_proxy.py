"""
Unit Tests for Proxy Routes
============================

Tests for frameproxy/proxy/routes.py

Test Coverage:
--------------
1. Frame-blocking header removal on relayed responses
2. Status, content type and binary body pass-through
3. CORS augmentation on/off
4. Plain, compact and query-carrying targets
5. Input errors (empty target, strict validation)
6. Upstream transport failures
7. Outbound User-Agent and timeout policy

Run tests:
----------
    pytest frameproxy/tests/test_proxy.py -v
"""

from typing import List
from unittest.mock import patch

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from frameproxy.config import Settings
from frameproxy.main import create_app
from frameproxy.proxy.resolver import encode_target


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_settings():
    """Create settings for testing"""
    return Settings(
        UPSTREAM_USER_AGENT="Mozilla/5.0 (Test Browser)",
        UPSTREAM_MAX_REDIRECTS=5,
        PROXY_TIMEOUT_SECONDS=30.0,
    )


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests seen by the fake upstream"""
    return []


@pytest.fixture
def upstream_handler():
    """Default upstream: a framing-protected HTML page"""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={
                "Content-Type": "text/html; charset=utf-8",
                "X-Frame-Options": "SAMEORIGIN",
                "Content-Security-Policy": "frame-ancestors 'self'",
                "Content-Security-Policy-Report-Only": "default-src 'self'",
                "Cache-Control": "max-age=60",
            },
            content=b"<html><body>Example</body></html>",
        )
    return handler


@pytest.fixture
def app(mock_settings, upstream_handler, upstream_requests):
    """Create test FastAPI application with a fake upstream"""
    app = create_app()

    def recording_handler(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return upstream_handler(request)

    app.state.upstream_transport = httpx.MockTransport(recording_handler)
    return app


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)


@pytest.fixture(autouse=True)
def patch_get_settings(mock_settings):
    """Automatically patch get_settings in all tests"""
    with patch("frameproxy.proxy.routes.get_settings", return_value=mock_settings):
        yield


# ============================================================================
# Header Sanitizing Tests
# ============================================================================

def test_proxy_strips_frame_blocking_headers(client):
    """Test that X-Frame-Options and both CSP headers are removed"""
    response = client.get("/proxy/https://example.com")

    assert response.status_code == status.HTTP_200_OK
    assert "x-frame-options" not in response.headers
    assert "content-security-policy" not in response.headers
    assert "content-security-policy-report-only" not in response.headers


def test_proxy_keeps_other_headers(client):
    """Test that unrelated upstream headers pass through"""
    response = client.get("/proxy/https://example.com")

    assert response.headers["content-type"] == "text/html; charset=utf-8"
    assert response.headers["cache-control"] == "max-age=60"
    assert response.text == "<html><body>Example</body></html>"


def test_proxy_adds_cors_headers_by_default(client):
    """Test that permissive CORS headers are added to relayed responses"""
    response = client.get("/proxy/https://example.com")

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "*"


def test_proxy_without_cors_augmentation(client, mock_settings):
    """Test that CORS augmentation can be switched off"""
    settings = mock_settings.model_copy(update={"PROXY_ADD_CORS_HEADERS": False})

    with patch("frameproxy.proxy.routes.get_settings", return_value=settings):
        response = client.get("/proxy/https://example.com")

    assert response.status_code == status.HTTP_200_OK
    assert "access-control-allow-origin" not in response.headers
    assert "x-frame-options" not in response.headers


def test_proxy_without_cors_keeps_upstream_cors_for_cross_origin_callers(app, mock_settings):
    """Test that the API's own CORS handling leaves relayed responses alone"""
    app.state.upstream_transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200,
            headers={"Access-Control-Allow-Origin": "https://only.example"},
            content=b"ok",
        )
    )
    settings = mock_settings.model_copy(update={"PROXY_ADD_CORS_HEADERS": False})

    with patch("frameproxy.proxy.routes.get_settings", return_value=settings):
        response = TestClient(app).get(
            "/proxy/https://example.com",
            headers={"Origin": "https://caller.example"},
        )

    assert response.headers.get_list("access-control-allow-origin") == ["https://only.example"]


def test_api_endpoints_still_answer_cross_origin_callers(client):
    """Test that CORS stays on for the service's own endpoints"""
    response = client.get("/health", headers={"Origin": "https://caller.example"})

    assert "access-control-allow-origin" in response.headers


# ============================================================================
# Pass-through Tests
# ============================================================================

@pytest.mark.parametrize("upstream_status", [201, 404, 503])
def test_proxy_passes_upstream_status_through(app, upstream_status):
    """Test that non-2xx upstream statuses are relayed, not treated as failures"""
    app.state.upstream_transport = httpx.MockTransport(
        lambda request: httpx.Response(upstream_status, text="upstream says hi")
    )

    response = TestClient(app).get("/proxy/https://example.com/missing")

    assert response.status_code == upstream_status
    assert response.text == "upstream says hi"


def test_proxy_preserves_binary_body(app):
    """Test that image bytes are relayed without text decoding"""
    png = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"
    app.state.upstream_transport = httpx.MockTransport(
        lambda request: httpx.Response(200, headers={"Content-Type": "image/png"}, content=png)
    )

    response = TestClient(app).get("/proxy/https://example.com/logo.png")

    assert response.content == png
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-length"] == str(len(png))


def test_proxy_replays_repeated_headers(app):
    """Test that repeated upstream headers keep every value"""
    app.state.upstream_transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200,
            headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")],
            content=b"ok",
        )
    )

    response = TestClient(app).get("/proxy/https://example.com")

    assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]


# ============================================================================
# Target Resolution Tests
# ============================================================================

def test_proxy_plain_target(client, upstream_requests):
    """Test the legacy wildcard form with a full URL in the path"""
    client.get("/proxy/https://example.com/docs/index.html")

    assert str(upstream_requests[0].url) == "https://example.com/docs/index.html"
    assert upstream_requests[0].method == "GET"


def test_proxy_compact_target(client, upstream_requests):
    """Test the URL-safe base64 form"""
    token = encode_target("https://example.com/a?b=c")

    response = client.get(f"/proxy/{token}")

    assert response.status_code == status.HTTP_200_OK
    assert str(upstream_requests[0].url) == "https://example.com/a?b=c"


def test_proxy_plain_target_keeps_query_string(client, upstream_requests):
    """Test that the caller's query string is forwarded for plain targets"""
    client.get("/proxy/https://example.com/search?q=frames&page=2")

    assert str(upstream_requests[0].url) == "https://example.com/search?q=frames&page=2"


def test_proxy_logs_final_url_after_redirect(app, caplog):
    """Test that the relay log line names where the redirect chain ended"""
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, content=b"moved")

    app.state.upstream_transport = httpx.MockTransport(handler)

    with caplog.at_level("INFO", logger="frameproxy.proxy.routes"):
        TestClient(app).get("/proxy/https://example.com/old")

    [record] = [r for r in caplog.records if r.getMessage() == "Relaying upstream response"]
    assert record.target_url == "https://example.com/old"
    assert record.final_url == "https://example.com/new"
    assert record.redirects == 1


def test_proxy_plain_target_keeps_escaped_question_mark(client, upstream_requests):
    """Test that an escaped '?' in the target path is not turned into a separator"""
    client.get("/proxy/https://example.com/what%3Fnow?q=1")

    assert str(upstream_requests[0].url) == "https://example.com/what%3Fnow?q=1"
    assert upstream_requests[0].url.query == b"q=1"


# ============================================================================
# Input Error Tests
# ============================================================================

def test_proxy_empty_target_returns_400(client, upstream_requests):
    """Test that an empty target is rejected before any fetch"""
    response = client.get("/proxy/")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.text == "URL is required"
    assert upstream_requests == []


def test_proxy_strict_validation_rejects_non_url(client, mock_settings, upstream_requests):
    """Test that strict mode rejects targets that do not resolve to a URL"""
    settings = mock_settings.model_copy(update={"PROXY_STRICT_VALIDATION": True})

    with patch("frameproxy.proxy.routes.get_settings", return_value=settings):
        response = client.get("/proxy/not-a-valid-url")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "http://" in response.text
    assert upstream_requests == []


def test_proxy_strict_validation_accepts_compact_url(client, mock_settings, upstream_requests):
    """Test that strict mode validates the resolved URL, not the raw token"""
    settings = mock_settings.model_copy(update={"PROXY_STRICT_VALIDATION": True})

    with patch("frameproxy.proxy.routes.get_settings", return_value=settings):
        response = client.get(f"/proxy/{encode_target('https://example.com')}")

    assert response.status_code == status.HTTP_200_OK
    assert len(upstream_requests) == 1


# ============================================================================
# Upstream Failure Tests
# ============================================================================

def test_proxy_connect_error_returns_500(app):
    """Test that transport failures surface as 'Proxy Error: <message>'"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    app.state.upstream_transport = httpx.MockTransport(handler)

    response = TestClient(app).get("/proxy/http://nonexistent.invalid")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.text == "Proxy Error: Name or service not known"


def test_proxy_timeout_returns_500(app):
    """Test that upstream timeouts are reported once, without retry"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    app.state.upstream_transport = httpx.MockTransport(handler)

    response = TestClient(app).get("/proxy/https://slow.example.com")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.text.startswith("Proxy Error: ")
    assert len(calls) == 1


# ============================================================================
# Outbound Request Policy Tests
# ============================================================================

def test_proxy_sends_browser_user_agent(client, upstream_requests, mock_settings):
    """Test that the configured browser User-Agent is sent upstream"""
    client.get("/proxy/https://example.com")

    assert upstream_requests[0].headers["user-agent"] == mock_settings.UPSTREAM_USER_AGENT


def test_proxy_applies_timeout(client, upstream_requests):
    """Test that the proxy fetch carries an explicit deadline"""
    client.get("/proxy/https://example.com")

    timeout = upstream_requests[0].extensions["timeout"]
    assert timeout["read"] == 30.0
    assert timeout["connect"] == 30.0
