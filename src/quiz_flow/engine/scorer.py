"""
Scorer - turns an answer set into a point total

Every selected option contributes its points. Text, number and rating
answers are not option ids and contribute nothing.
"""

import logging
from typing import Iterable

from ..quiz.schema import Question
from .answers import Answers

logger = logging.getLogger(__name__)


def selected_option_ids(value) -> list[str]:
    """Normalize an answer value to the option ids it selects."""
    values = value if isinstance(value, (list, tuple)) else [value]
    return [v for v in values if isinstance(v, str)]


def score(answers: Answers, questions: Iterable[Question]) -> int:
    """
    Sum the points of every selected option.

    Args:
        answers: Mapping of question id to answer value
        questions: Questions of the quiz definition

    Returns:
        Total score; may be negative when options carry negative points
    """
    by_id = {q.id: q for q in questions}
    total = 0

    for question_id, value in answers.items():
        question = by_id.get(question_id)
        if question is None:
            # Stale id from an older revision of the quiz
            logger.debug(f"Ignoring answer for unknown question {question_id}")
            continue

        for option_id in selected_option_ids(value):
            option = question.find_option(option_id)
            if option is not None:
                total += option.points or 0

    return total
