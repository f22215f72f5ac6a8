"""
HTTP transport for the public quiz API

Uses an httpx AsyncClient against:
- GET   /public/quiz/{id}[?preview=1]
- POST  /public/quiz/{id}/sessions
- PATCH /public/quiz/{id}/sessions/{sessionId}
- POST  /public/quiz/{id}/sessions/{sessionId}/complete
"""

import logging
from typing import Any, Optional

import httpx

from ..config import config
from ..quiz.schema import QuizDefinition
from .base import (
    SessionTransport, SessionTransportError, DefinitionLoadError, Attribution
)

logger = logging.getLogger(__name__)


class HttpSessionTransport(SessionTransport):
    """
    Quiz API over HTTP.

    Base URL is read from:
    1. Constructor argument
    2. QUIZ_API_BASE_URL environment variable (via config)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize HTTP transport.

        Args:
            base_url: API root, e.g. "https://crm.example.com/api"
            timeout: Request timeout in seconds
            client: Pre-built client (tests pass one with a mock transport)
        """
        self._base_url = (base_url or config.api.base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else config.api.timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "User-Agent": config.api.user_agent,
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        return self._client

    @property
    def name(self) -> str:
        return "http"

    async def fetch_definition(self, quiz_id: str, *, preview: bool = False) -> QuizDefinition:
        """Load a quiz; preview=True also returns unpublished quizzes."""
        client = self._get_client()
        params = {"preview": "1"} if preview else None

        try:
            response = await client.get(f"/public/quiz/{quiz_id}", params=params)
            response.raise_for_status()
            return QuizDefinition.from_dict(response.json())
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise DefinitionLoadError("Quiz not found")
            raise DefinitionLoadError(f"Failed to load quiz: HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            raise DefinitionLoadError(f"Failed to load quiz: {e}")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise DefinitionLoadError(f"Malformed quiz definition: {e}")

    async def open_session(self, quiz_id: str, attribution: Attribution) -> str:
        data = await self._send("POST", f"/public/quiz/{quiz_id}/sessions", attribution.to_dict())

        session_id = data.get("id") if isinstance(data, dict) else None
        if not session_id:
            raise SessionTransportError("Session response carried no id")
        return session_id

    async def patch_answers(self, quiz_id: str, session_id: str, answers: dict[str, Any]) -> None:
        await self._send(
            "PATCH",
            f"/public/quiz/{quiz_id}/sessions/{session_id}",
            {"answers": answers},
        )

    async def complete_session(
        self,
        quiz_id: str,
        session_id: str,
        *,
        lead_data: Optional[dict[str, str]] = None,
        answers: Optional[dict[str, Any]] = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if lead_data is not None:
            payload["leadData"] = lead_data
        if answers is not None:
            payload["answers"] = answers

        await self._send(
            "POST",
            f"/public/quiz/{quiz_id}/sessions/{session_id}/complete",
            payload,
        )

    async def _send(self, method: str, path: str, payload: dict) -> Any:
        """Send a JSON request and return the decoded body (None if empty)."""
        client = self._get_client()

        try:
            response = await client.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SessionTransportError(
                f"{method} {path} failed: HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            raise SessionTransportError(f"{method} {path} failed: {e}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"{method} {path} returned a non-JSON body")
            return None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
