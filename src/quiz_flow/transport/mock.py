"""
Mock transport for testing

Keeps sessions in memory with the same merge rules as the quiz API,
and records every call so tests can assert on them.
"""

import asyncio
import copy
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from ..quiz.schema import QuizDefinition
from .base import (
    SessionTransport, SessionTransportError, DefinitionLoadError, Attribution
)


@dataclass
class TransportCall:
    """One recorded transport call."""
    operation: str  # "fetch", "open", "patch", "complete"
    quiz_id: str
    session_id: Optional[str] = None
    payload: dict = field(default_factory=dict)


@dataclass
class MockTransport(SessionTransport):
    """
    In-memory transport.

    Can be told to fail some or all operations, and to delay calls so
    tests can observe requests that are still in flight.
    """

    definitions: dict[str, QuizDefinition] = field(default_factory=dict)
    delay_seconds: float = 0.0
    fail_rate: float = 0.0  # Probability of raising an error
    fail_on: set[str] = field(default_factory=set)  # Operations that always fail
    calls: list[TransportCall] = field(default_factory=list)
    sessions: dict[str, dict] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return "mock"

    def add_definition(self, definition: QuizDefinition) -> None:
        self.definitions[definition.id] = definition

    def calls_for(self, operation: str) -> list[TransportCall]:
        return [c for c in self.calls if c.operation == operation]

    async def _simulate(self, operation: str, error_cls: type) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if operation in self.fail_on or (
            self.fail_rate > 0 and random.random() < self.fail_rate
        ):
            raise error_cls(f"Simulated mock transport failure ({operation})")

    async def fetch_definition(self, quiz_id: str, *, preview: bool = False) -> QuizDefinition:
        self.calls.append(TransportCall("fetch", quiz_id, payload={"preview": preview}))
        await self._simulate("fetch", DefinitionLoadError)

        definition = self.definitions.get(quiz_id)
        if definition is None:
            raise DefinitionLoadError("Quiz not found")
        return definition

    async def open_session(self, quiz_id: str, attribution: Attribution) -> str:
        payload = attribution.to_dict()
        self.calls.append(TransportCall("open", quiz_id, payload=payload))
        await self._simulate("open", SessionTransportError)

        session_id = str(uuid.uuid4())
        self.sessions[session_id] = {
            "quizId": quiz_id,
            "status": "in_progress",
            "answers": {},
            "leadData": None,
            **payload,
        }
        return session_id

    async def patch_answers(self, quiz_id: str, session_id: str, answers: dict[str, Any]) -> None:
        self.calls.append(TransportCall(
            "patch", quiz_id, session_id, {"answers": copy.deepcopy(answers)}
        ))
        await self._simulate("patch", SessionTransportError)

        session = self._get_session(quiz_id, session_id)
        session["answers"].update(copy.deepcopy(answers))

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
            payload["leadData"] = dict(lead_data)
        if answers is not None:
            payload["answers"] = copy.deepcopy(answers)
        self.calls.append(TransportCall("complete", quiz_id, session_id, payload))
        await self._simulate("complete", SessionTransportError)

        session = self._get_session(quiz_id, session_id)
        if answers is not None:
            session["answers"].update(copy.deepcopy(answers))
        if lead_data is not None:
            session["leadData"] = dict(lead_data)
        session["status"] = "completed"

    def _get_session(self, quiz_id: str, session_id: str) -> dict:
        session = self.sessions.get(session_id)
        if session is None or session["quizId"] != quiz_id:
            raise SessionTransportError(f"Session {session_id} not found")
        return session
