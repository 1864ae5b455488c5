"""
Session routes for the memory worker HTTP server.

Provides session-init (privacy registration) and summary ingest endpoints.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from opencode_mem.sessions.summary import StructuredSummary
from opencode_mem.storage.summaries import SummaryStore

logger = logging.getLogger(__name__)


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from e
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def create_sessions_router(store: SummaryStore) -> APIRouter:
    """
    Create sessions router with endpoints bound to a summary store.

    Args:
        store: Store that records session privacy and persists summaries

    Returns:
        Configured APIRouter with session endpoints
    """
    router = APIRouter(prefix="/api/sessions", tags=["sessions"])

    @router.post("/init")
    async def init_session(request: Request) -> dict[str, Any]:
        """
        Register a session start and its privacy state.

        A prompt made only of <private> blocks marks the session private; a later
        prompt with public text clears the mark.
        """
        try:
            body = await _json_body(request)
            content_session_id = body.get("contentSessionId")
            if not content_session_id:
                raise HTTPException(status_code=400, detail="Required field: contentSessionId")

            private = store.init_session(
                str(content_session_id),
                str(body.get("project") or "unknown"),
                str(body.get("prompt") or ""),
            )
            if private:
                return {"skipped": True, "reason": "private"}
            return {"skipped": False, "contentSessionId": content_session_id}

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Session init error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e)) from e

    @router.post("/summarize/ingest")
    async def ingest_summary(request: Request) -> dict[str, Any]:
        """
        Persist a summary produced outside the worker.

        Returns:
            {"status": "stored", "summaryId": id} or
            {"status": "skipped", "reason": "private"}
        """
        try:
            body = await _json_body(request)
            content_session_id = body.get("contentSessionId")
            if not content_session_id:
                raise HTTPException(status_code=400, detail="Required field: contentSessionId")

            raw_summary = body.get("summary")
            if raw_summary is None:
                raise HTTPException(status_code=400, detail="Required field: summary")
            if not isinstance(raw_summary, dict):
                raise HTTPException(status_code=400, detail="summary must be an object")

            try:
                summary = StructuredSummary(**raw_summary)
            except ValidationError as e:
                raise HTTPException(status_code=400, detail=f"Invalid summary: {e}") from e

            session_id = str(content_session_id)
            if store.is_private(session_id):
                logger.debug(f"Summary for private session {session_id} not stored")
                return {"status": "skipped", "reason": "private"}

            summary_id = store.store_summary(session_id, summary)
            return {"status": "stored", "summaryId": summary_id}

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Summary ingest error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e)) from e

    return router
