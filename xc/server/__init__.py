"""Explain proxy server.

Run with ``xc serve`` or any ASGI server pointed at ``create_app()``.
"""

from xc.server.app import create_app

__all__ = ["create_app"]
