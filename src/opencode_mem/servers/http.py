"""
FastAPI application for the memory worker's session routes.

Only session-init and summary ingest are served here; context injection,
observations and the worker's own summarization live in the external worker.
"""

from typing import Any

from fastapi import FastAPI

from opencode_mem.servers.routes import create_sessions_router
from opencode_mem.storage.summaries import InMemorySummaryStore, SummaryStore


def create_app(store: SummaryStore | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        store: Summary store (defaults to a fresh InMemorySummaryStore)
    """
    app = FastAPI(
        title="opencode-mem worker",
        description="Session init and summary ingest endpoints",
    )
    app.state.store = store if store is not None else InMemorySummaryStore()

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    app.include_router(create_sessions_router(app.state.store))
    return app
