"""
Proxy Package
=============

Fetches caller-specified resources and relays them in a form browsers will
embed in an iframe.

Main Components:
----------------
- resolver.py: plain / compact (URL-safe base64) target resolution
- upstream.py: single-shot outbound client with bounded redirects
- headers.py: frame-blocking header removal and CORS augmentation
- frameability.py: frameable verdict and custom header checks
- validation.py: caller input checks (400 before any fetch)
- profiles.py: per-endpoint behaviour switches
- relay.py: response construction and caller-disconnect handling
- routes.py: GET /proxy/{target}

Usage:
------
    from frameproxy.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import PROXY_PREFIX, proxy_router

__all__ = ["PROXY_PREFIX", "proxy_router"]
