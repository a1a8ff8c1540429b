"""
Inspection Package

Frameability checks that read a target's security headers without fetching
its body.

Modules:
- routes: /check and /broken endpoints
"""

from .routes import inspection_router

__all__ = [
    "inspection_router",
]
