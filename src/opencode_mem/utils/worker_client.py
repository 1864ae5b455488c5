"""HTTP client for the opencode-mem worker API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from opencode_mem.sessions.summary import StructuredSummary

logger = logging.getLogger(__name__)


class WorkerUnavailableError(Exception):
    """The worker could not be reached."""


class WorkerRequestError(Exception):
    """The worker answered with an error status."""

    def __init__(self, method: str, path: str, status_code: int, body: str = "") -> None:
        super().__init__(f"Worker {method} {path} failed with {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body


@dataclass
class IngestResult:
    """Worker verdict on an ingested summary."""

    status: str
    summary_id: int | None = None
    reason: str | None = None

    @property
    def stored(self) -> bool:
        return self.status == "stored"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


class WorkerClient:
    """HTTP client for communicating with the memory worker.

    Usable as an async context manager to share one connection pool across
    calls; outside a context each call opens a short-lived client.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 37777,
        timeout: float = 5.0,
    ) -> None:
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> WorkerClient:
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.request(method, path, **kwargs)
            else:
                async with httpx.AsyncClient(
                    base_url=self.base_url, timeout=self.timeout
                ) as client:
                    response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise WorkerUnavailableError(f"Worker {method} {path} unreachable: {e}") from e

        if response.status_code >= 400:
            raise WorkerRequestError(method, path, response.status_code, response.text)
        return response

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", path, json=payload)
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    # ==================== Health ====================

    async def health(self) -> bool:
        """True when the worker answers its health endpoint."""
        try:
            await self._request("GET", "/api/health")
        except (WorkerUnavailableError, WorkerRequestError) as e:
            logger.debug(f"Worker health check failed: {e}")
            return False
        return True

    # ==================== Session Endpoints ====================

    async def get_context(self, project: str) -> str:
        """Context text to inject at the start of a prompt."""
        response = await self._request("GET", "/api/context/inject", params={"project": project})
        return response.text

    async def init_session(
        self, content_session_id: str, project: str, prompt: str
    ) -> dict[str, Any]:
        return await self._post_json(
            "/api/sessions/init",
            {"contentSessionId": content_session_id, "project": project, "prompt": prompt},
        )

    async def record_observation(
        self,
        content_session_id: str,
        tool_name: str,
        tool_input: Any,
        tool_response: Any,
        cwd: str,
    ) -> dict[str, Any]:
        return await self._post_json(
            "/api/sessions/observations",
            {
                "contentSessionId": content_session_id,
                "tool_name": tool_name,
                "tool_input": tool_input,
                "tool_response": tool_response,
                "cwd": cwd,
            },
        )

    async def request_summary(
        self, content_session_id: str, last_assistant_message: str
    ) -> dict[str, Any]:
        """Ask the worker to summarize from the last assistant message (legacy path)."""
        return await self._post_json(
            "/api/sessions/summarize",
            {
                "contentSessionId": content_session_id,
                "last_assistant_message": last_assistant_message,
            },
        )

    async def ingest_summary(
        self,
        content_session_id: str,
        summary: StructuredSummary | dict[str, Any] | None,
    ) -> IngestResult:
        """
        Hand a finished summary to the worker for storage.

        Raises:
            ValueError: If summary is missing (no request is made)
            WorkerUnavailableError: If the worker is unreachable
            WorkerRequestError: If the worker rejects the request
        """
        if summary is None:
            raise ValueError("summary is required")
        if isinstance(summary, StructuredSummary):
            body = summary.model_dump()
        else:
            body = StructuredSummary(**summary).model_dump()

        data = await self._post_json(
            "/api/sessions/summarize/ingest",
            {"contentSessionId": content_session_id, "summary": body},
        )
        return IngestResult(
            status=str(data.get("status", "unknown")),
            summary_id=data.get("summaryId"),
            reason=data.get("reason"),
        )

    async def complete_session(self, content_session_id: str) -> dict[str, Any]:
        return await self._post_json(
            "/api/sessions/complete",
            {"contentSessionId": content_session_id},
        )
