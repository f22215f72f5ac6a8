"""
Flow Navigator - decides which question comes next

Next questions are resolved one of two ways:
- sequential: the next question is the following index (questions are
  ordered by position)
- branching: a jump target is looked up by question id, never by index

Only the option picked on a single or image choice question can branch.
Multiple-choice answers (even a lone option id), ratings and free text
always continue sequentially.
"""

import logging
from typing import Optional, Sequence

from ..quiz.schema import Question, AnswerOption
from .answers import Answers, can_proceed

logger = logging.getLogger(__name__)


def index_of(questions: Sequence[Question], question_id: Optional[str]) -> Optional[int]:
    """Position of a question id in the ordered question list."""
    if question_id is None:
        return None
    for i, question in enumerate(questions):
        if question.id == question_id:
            return i
    return None


def chosen_option(question: Question, answers: Answers) -> Optional[AnswerOption]:
    """The option picked on a single or image choice question, if any."""
    if not question.branches:
        return None
    answer = answers.get(question.id)
    if not isinstance(answer, str):
        return None
    return question.find_option(answer)


def resolve_next(
    current_index: Optional[int],
    answers: Answers,
    questions: Sequence[Question],
) -> Optional[int]:
    """
    Resolve the index of the next question.

    Args:
        current_index: Index of the question being left
        answers: Answer set (read only)
        questions: Questions ordered by position

    Returns:
        Index of the next question, or None when the quiz is over
    """
    if current_index is None or not 0 <= current_index < len(questions):
        return None

    question = questions[current_index]
    option = chosen_option(question, answers)

    if option is not None:
        if option.jump_to_end:
            return None
        if option.jump_to_question_id is not None:
            target = index_of(questions, option.jump_to_question_id)
            if target is not None:
                return target
            logger.debug(
                f"Jump target {option.jump_to_question_id} not found, continuing in order"
            )

    next_index = current_index + 1
    return next_index if next_index < len(questions) else None


class FlowNavigator:
    """
    Tracks where a respondent is within the question list.

    Keeps a history stack of visited indices: every landing pushes, going
    back pops. Popping past the first question means "back to start".
    """

    def __init__(self, questions: Sequence[Question]):
        self.questions = list(questions)
        self.index: Optional[int] = None
        self.history: list[int] = []

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.index is None or not 0 <= self.index < len(self.questions):
            return None
        return self.questions[self.index]

    def start(self) -> Optional[int]:
        """Land on the first question; None when there are no questions."""
        if not self.questions:
            self.index = None
            self.history = []
            return None
        self.index = 0
        self.history = [0]
        return 0

    def can_advance(self, answers: Answers) -> bool:
        """Required-question gate for the explicit Next/Skip action."""
        return can_proceed(self.current_question, answers)

    def advance(self, answers: Answers) -> Optional[int]:
        """
        Move past the current question.

        Returns:
            The new index, or None when the end of the quiz was reached
        """
        next_index = resolve_next(self.index, answers, self.questions)
        if next_index is not None:
            self.index = next_index
            self.history.append(next_index)
        return next_index

    def back(self) -> Optional[int]:
        """
        Return to the previously visited question.

        Returns:
            The restored index, or None when the respondent is back at start
        """
        if len(self.history) <= 1:
            self.index = None
            self.history = []
            return None
        self.history.pop()
        self.index = self.history[-1]
        return self.index

    def progress(self) -> float:
        """Progress through the quiz as a percentage."""
        if not self.questions or self.index is None:
            return 0.0
        return min((self.index + 1) / len(self.questions) * 100, 100.0)
