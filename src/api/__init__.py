"""
API package for the market intelligence feed.

Provides the FastAPI server with the feed filter and user preference routers.
"""

from src.api.api_server import app, set_dependencies

__all__ = [
    "app",
    "set_dependencies",
]
