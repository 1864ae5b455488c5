"""
FastAPI route modules for the memory worker HTTP server.

Each module contains an APIRouter with related endpoints.
"""

from opencode_mem.servers.routes.sessions import create_sessions_router

__all__ = [
    "create_sessions_router",
]
