"""
Session Tracker - best-effort remote record of one quiz attempt

Opening, syncing and completing a session never blocks the respondent:
transport failures are logged and swallowed. If opening fails the attempt
stays untracked for the rest of the run and later syncs become no-ops.

Answer syncs and the completion run as background tasks. Each sync
patches a single question id, so a late patch can only overwrite that
question's value.
"""

import asyncio
import copy
import logging
from typing import Any, Optional

from .transport.base import SessionTransport, TransportError, Attribution

logger = logging.getLogger(__name__)


class SessionTracker:
    """
    Tracks the remote session of one quiz attempt.

    The full answer set is sent once, on completion. Lead data gathered
    after results goes to the same session in a second, lead-only call.
    """

    def __init__(self, transport: Optional[SessionTransport], quiz_id: str):
        """
        Initialize tracker.

        Args:
            transport: Quiz API transport; None disables tracking
            quiz_id: Quiz the session belongs to
        """
        self.transport = transport
        self.quiz_id = quiz_id
        self.session_id: Optional[str] = None
        self.completed = False
        self._open_attempted = False
        self._tasks: set[asyncio.Task] = set()
        self._completion: Optional[asyncio.Task] = None

    @property
    def tracked(self) -> bool:
        """Whether a remote session exists for this attempt."""
        return self.session_id is not None

    async def open(self, attribution: Optional[Attribution] = None) -> Optional[str]:
        """
        Create the remote session.

        Only the first call reaches the transport; restarting the quiz
        keeps the session (or the lack of one).

        Returns:
            Session id, or None when the attempt is untracked
        """
        if self._open_attempted:
            return self.session_id
        self._open_attempted = True

        if self.transport is None:
            return None

        try:
            self.session_id = await self.transport.open_session(
                self.quiz_id, attribution or Attribution()
            )
            logger.debug(f"Opened session {self.session_id} for quiz {self.quiz_id}")
        except TransportError as e:
            logger.warning(f"Could not open session, continuing untracked: {e}")
            self.session_id = None

        return self.session_id

    def sync_answer(self, question_id: str, value: Any) -> Optional[asyncio.Task]:
        """
        Patch one answer in the background.

        Returns:
            The scheduled task, or None when untracked
        """
        if not self.tracked:
            return None

        answers = {question_id: copy.deepcopy(value)}
        return self._spawn(self._patch(self.session_id, answers))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _patch(self, session_id: str, answers: dict[str, Any]) -> None:
        try:
            await self.transport.patch_answers(self.quiz_id, session_id, answers)
        except TransportError as e:
            logger.warning(f"Answer sync failed for session {session_id}: {e}")

    async def complete(
        self,
        answers: dict[str, Any],
        lead_data: Optional[dict[str, str]] = None,
    ) -> bool:
        """
        Complete the session with the full answer set.

        Args:
            answers: Final answer set
            lead_data: Lead data gathered before results, if any

        Returns:
            True if the server acknowledged the completion
        """
        if self.completed:
            logger.warning(f"Session {self.session_id} already completed, not resending answers")
            return False
        self.completed = True

        if not self.tracked:
            return False

        try:
            await self.transport.complete_session(
                self.quiz_id,
                self.session_id,
                lead_data=lead_data,
                answers=copy.deepcopy(answers),
            )
            return True
        except TransportError as e:
            logger.warning(f"Completing session {self.session_id} failed: {e}")
            return False

    def complete_later(
        self,
        answers: dict[str, Any],
        lead_data: Optional[dict[str, str]] = None,
    ) -> Optional[asyncio.Task]:
        """
        Schedule complete() in the background.

        Returns:
            The scheduled task, or None when already completed
        """
        if self.completed or self._completion is not None:
            return None
        self._completion = self._spawn(
            self.complete(copy.deepcopy(answers), lead_data=lead_data)
        )
        return self._completion

    async def submit_lead(self, lead_data: dict[str, str]) -> bool:
        """
        Attach lead data gathered after results to the completed session.

        Returns:
            True if the server acknowledged the submission
        """
        if not self.tracked:
            return False

        if self._completion is not None and not self._completion.done():
            await asyncio.gather(self._completion, return_exceptions=True)

        try:
            await self.transport.complete_session(
                self.quiz_id, self.session_id, lead_data=lead_data
            )
            return True
        except TransportError as e:
            logger.warning(f"Lead submission for session {self.session_id} failed: {e}")
            return False

    @property
    def pending(self) -> int:
        """Number of background session calls still in flight."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight syncs and the completion to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
