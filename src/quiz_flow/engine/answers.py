"""
Answer set helpers

An answer set maps question id to a value whose shape depends on the
question type: an option id (single/image choice), the rating as a string,
a list of option ids (multiple choice) or raw text (text/number input).
"""

from typing import Any, Mapping, Optional

from ..quiz.schema import Question

Answers = Mapping[str, Any]


def is_answered(value: Any) -> bool:
    """None, empty strings and empty selections count as no answer."""
    if value is None or value == "":
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def toggle_choice(current: Any, option_id: str) -> list:
    """Add or remove an option id from a multiple-choice selection."""
    if isinstance(current, str):
        current = [current] if current else []
    current = list(current or [])
    if option_id in current:
        return [c for c in current if c != option_id]
    return current + [option_id]


def can_proceed(question: Optional[Question], answers: Answers) -> bool:
    """
    Whether the explicit Next/Skip action is allowed on this question.

    Optional questions can always be skipped. A required choice question
    with no options cannot be answered, so it is let through instead of
    trapping the respondent.
    """
    if question is None:
        return False
    if not question.is_required:
        return True
    if question.is_choice and not question.options:
        return True
    return is_answered(answers.get(question.id))
