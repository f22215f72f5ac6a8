"""
Screen Controller

The state machine that sequences one quiz attempt:

    start -> question (branching) -> lead_capture? -> result -> lead form?

It owns the answer set, the navigator and the session tracker, and is the
only place where scoring and result matching are triggered.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Iterable, Optional

from .config import config
from .engine.answers import is_answered, toggle_choice
from .engine.matcher import match_result
from .engine.navigator import FlowNavigator
from .engine.scorer import score
from .quiz.schema import (
    QuizDefinition, Question, QuizResult, LeadCaptureField, QuestionType
)
from .session import SessionTracker
from .transport.base import SessionTransport, Attribution

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    """Screens of a quiz attempt."""
    START = "start"
    QUESTION = "question"
    LEAD_CAPTURE = "lead_capture"
    RESULT = "result"


def validate_lead(
    fields: Iterable[LeadCaptureField],
    data: dict[str, str],
) -> dict[str, str]:
    """
    Check required lead fields.

    Args:
        fields: Configured lead capture fields
        data: Submitted values by field key

    Returns:
        Error message per field key (empty when valid)
    """
    errors = {}
    for lead_field in fields:
        value = data.get(lead_field.key) or ""
        if lead_field.is_required and not value.strip():
            errors[lead_field.key] = f"{lead_field.label} is required"
    return errors


class QuizRun:
    """
    One respondent's attempt at a quiz.

    All transitions are coroutines so session calls can be awaited where
    the flow waits for them (opening) and scheduled where it does not
    (answer syncs, auto-advance, completion).
    """

    def __init__(
        self,
        definition: QuizDefinition,
        transport: Optional[SessionTransport] = None,
        auto_advance_delay: Optional[float] = None,
    ):
        """
        Initialize a quiz attempt.

        Args:
            definition: Quiz to take
            transport: Quiz API transport (None runs untracked)
            auto_advance_delay: Seconds between a selection and the
                transition it triggers (defaults to config)
        """
        self.definition = definition
        self.navigator = FlowNavigator(definition.questions)
        self.tracker = SessionTracker(transport, definition.id)
        self.auto_advance_delay = (
            auto_advance_delay
            if auto_advance_delay is not None
            else config.flow.auto_advance_delay_seconds
        )

        self.screen = Screen.START
        self.answers: dict[str, Any] = {}
        self.lead_data: dict[str, str] = {}
        self.lead_errors: dict[str, str] = {}
        self.lead_submitted = False
        self.total_score: Optional[int] = None
        self.matched_result: Optional[QuizResult] = None
        self._pending_advance: Optional[asyncio.Task] = None

    # -- state -------------------------------------------------------------

    @property
    def current_question(self) -> Optional[Question]:
        if self.screen != Screen.QUESTION:
            return None
        return self.navigator.current_question

    @property
    def progress(self) -> float:
        if self.screen != Screen.QUESTION:
            return 0.0
        return self.navigator.progress()

    @property
    def can_advance(self) -> bool:
        return self.screen == Screen.QUESTION and self.navigator.can_advance(self.answers)

    @property
    def is_skip(self) -> bool:
        """Whether the forward action currently reads as "Skip"."""
        question = self.current_question
        return (
            question is not None
            and not question.is_required
            and not is_answered(self.answers.get(question.id))
        )

    @property
    def show_lead_form(self) -> bool:
        """Whether the result screen should offer the lead form."""
        return (
            self.screen == Screen.RESULT
            and self.definition.lead_after_results
            and not self.lead_submitted
        )

    @property
    def advance_pending(self) -> bool:
        return self._pending_advance is not None and not self._pending_advance.done()

    # -- start -------------------------------------------------------------

    async def start(self, attribution: Optional[Attribution] = None) -> Screen:
        """Leave the start screen; opens the remote session first."""
        if self.screen != Screen.START:
            return self.screen

        await self.tracker.open(attribution)

        if self.navigator.start() is None:
            logger.debug("Quiz has no questions, skipping to the end")
            self._finish_questions()
        else:
            self.screen = Screen.QUESTION

        return self.screen

    # -- answering ---------------------------------------------------------

    def set_answer(self, value: Any) -> None:
        """Record the current question's answer without navigating."""
        question = self._require_question()
        self.answers[question.id] = value

    def toggle_option(self, option_id: str) -> list[str]:
        """Toggle one option of a multiple-choice question."""
        question = self._require_question()
        if question.find_option(option_id) is None:
            raise ValueError(f"Unknown option {option_id} for question {question.id}")

        selection = toggle_choice(self.answers.get(question.id), option_id)
        self.answers[question.id] = selection
        return selection

    def select(self, value: Any) -> Optional[asyncio.Task]:
        """
        Pick an option (single/image choice) or a rating.

        The answer is recorded and synced right away; the transition
        follows after the auto-advance delay. Other question types just
        record the value.

        Returns:
            The pending auto-advance task, if one was scheduled
        """
        question = self._require_question()

        if not question.auto_advances:
            self.set_answer(value)
            return None

        if question.question_type == QuestionType.RATING:
            value = str(value)
            if value not in question.rating_values():
                raise ValueError(f"Rating {value} is outside 1..{len(question.rating_values())}")
        elif question.find_option(value) is None:
            raise ValueError(f"Unknown option {value} for question {question.id}")

        self.answers[question.id] = value
        self.tracker.sync_answer(question.id, value)

        self._cancel_pending_advance()
        snapshot = dict(self.answers)
        self._pending_advance = asyncio.get_running_loop().create_task(
            self._delayed_advance(question.id, snapshot)
        )
        return self._pending_advance

    async def _delayed_advance(self, question_id: str, snapshot: dict[str, Any]) -> None:
        if self.auto_advance_delay > 0:
            await asyncio.sleep(self.auto_advance_delay)
        else:
            await asyncio.sleep(0)

        question = self.current_question
        if question is None or question.id != question_id:
            logger.debug(f"Dropping stale auto-advance from {question_id}")
            return

        await self._advance(snapshot)

    # -- navigation --------------------------------------------------------

    async def next(self) -> bool:
        """
        Explicit Next (or Skip) action.

        Returns:
            False when blocked (required question without an answer)
        """
        if not self.can_advance:
            return False

        self._cancel_pending_advance()
        question = self.current_question
        value = self.answers.get(question.id)
        if is_answered(value):
            self.tracker.sync_answer(question.id, value)

        await self._advance(self.answers)
        return True

    async def _advance(self, answers: dict[str, Any]) -> None:
        next_index = self.navigator.advance(answers)
        if next_index is None:
            self._finish_questions()
        else:
            logger.debug(f"Advanced to question {next_index + 1}/{self.navigator.total}")

    def back(self) -> Screen:
        """Go to the previous question, or to the start screen."""
        if self.screen != Screen.QUESTION:
            return self.screen

        self._cancel_pending_advance()
        if self.navigator.back() is None:
            self.screen = Screen.START
        return self.screen

    def _cancel_pending_advance(self) -> None:
        if self.advance_pending:
            self._pending_advance.cancel()
        self._pending_advance = None

    # -- end of quiz -------------------------------------------------------

    def _finish_questions(self) -> None:
        if self.definition.lead_before_results:
            self.screen = Screen.LEAD_CAPTURE
        else:
            self._show_result()

    def _show_result(self, lead_data: Optional[dict[str, str]] = None) -> None:
        self.total_score = score(self.answers, self.definition.questions)
        self.matched_result = match_result(self.definition.results, self.total_score)
        logger.debug(
            f"Quiz {self.definition.id} finished with score {self.total_score}, "
            f"result {self.matched_result.id if self.matched_result else None}"
        )

        self.screen = Screen.RESULT
        self.tracker.complete_later(self.answers, lead_data=lead_data)

    async def submit_lead(self, data: dict[str, str]) -> bool:
        """
        Submit the lead form, before or after results.

        Returns:
            False when validation failed or no lead form is showing
        """
        before_results = self.screen == Screen.LEAD_CAPTURE
        if not before_results and not self.show_lead_form:
            return False

        self.lead_data = dict(data)
        self.lead_errors = validate_lead(self.definition.lead_capture_fields, self.lead_data)
        if self.lead_errors:
            return False

        lead = {k: v.strip() if isinstance(v, str) else v for k, v in self.lead_data.items()}

        if before_results:
            self._show_result(lead_data=lead)
        else:
            await self.tracker.submit_lead(lead)
            self.lead_submitted = True
        return True

    # -- housekeeping ------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait for a pending auto-advance and in-flight session calls."""
        if self._pending_advance is not None:
            await asyncio.gather(self._pending_advance, return_exceptions=True)
        await self.tracker.drain()

    def _require_question(self) -> Question:
        question = self.current_question
        if question is None:
            raise ValueError(f"No question on screen ({self.screen.value})")
        return question
