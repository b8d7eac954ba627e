# proxy/__init__.py
"""
Rates Proxy Package

Standalone service in front of the booking marketplace:
- app: FastAPI application (create_app, run)
- cache: TTL response cache
- rate_limit: per-IP limits
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .app import create_app, run
    from .cache import TTLCache

__all__ = [
    "create_app",
    "run",
    "TTLCache"
]
