"""
Quiz definitions for quiz-flow

Data model of a quiz as served by the public quiz API, plus author checks.
"""

from .schema import (
    QuestionType,
    LeadCapturePosition,
    AnswerOption,
    Question,
    QuizResult,
    LeadCaptureField,
    QuizDefinition,
    CHOICE_TYPES,
    BRANCHING_TYPES,
    AUTO_ADVANCE_TYPES,
    lint_definition,
)

__all__ = [
    "QuestionType",
    "LeadCapturePosition",
    "AnswerOption",
    "Question",
    "QuizResult",
    "LeadCaptureField",
    "QuizDefinition",
    "CHOICE_TYPES",
    "BRANCHING_TYPES",
    "AUTO_ADVANCE_TYPES",
    "lint_definition",
]
