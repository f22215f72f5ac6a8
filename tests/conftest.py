"""
Shared quiz definitions for the test suite.
"""

import pytest

from quiz_flow.quiz.schema import QuizDefinition


def option(id, points=0, jump_to=None, jump_to_end=False, position=0, text=""):
    return {
        "id": id,
        "text": text or id,
        "points": points,
        "jumpToQuestionId": jump_to,
        "jumpToEnd": jump_to_end,
        "position": position,
    }


def question(id, question_type="single_choice", options=None, position=0, required=False, **extra):
    data = {
        "id": id,
        "text": f"Question {id}",
        "questionType": question_type,
        "position": position,
        "isRequired": required,
        "options": options or [],
    }
    data.update(extra)
    return data


def result(id, min_score=None, max_score=None, is_default=False, title=""):
    return {
        "id": id,
        "title": title or id,
        "minScore": min_score,
        "maxScore": max_score,
        "isDefault": is_default,
    }


def build_quiz(questions=(), results=(), lead_fields=(), position="before_results", **extra) -> QuizDefinition:
    data = {
        "id": extra.pop("id", "quiz-1"),
        "name": "Test quiz",
        "questions": list(questions),
        "results": list(results),
        "leadCaptureFields": list(lead_fields),
        "leadCapturePosition": position,
    }
    data.update(extra)
    return QuizDefinition.from_dict(data)


EMAIL_FIELD = {"key": "email", "label": "Email", "isRequired": True, "contactFieldMapping": "email"}
NAME_FIELD = {"key": "name", "label": "Name", "isRequired": False, "contactFieldMapping": "firstName"}


@pytest.fixture
def linear_quiz() -> QuizDefinition:
    """Three questions, no branching, two result tiers."""
    return build_quiz(
        questions=[
            question("q1", options=[option("a1", 1), option("a2", 3)], position=0, required=True),
            question("q2", "multiple_choice", options=[option("b1", 2), option("b2", 4)], position=1),
            question("q3", "text_input", position=2),
        ],
        results=[
            result("low", 0, 4, title="Beginner"),
            result("high", 5, None, title="Expert"),
        ],
    )


@pytest.fixture
def branching_quiz() -> QuizDefinition:
    """Four questions with a jump to q4 and a jump to the end."""
    return build_quiz(
        questions=[
            question("q1", options=[
                option("skip", 1, jump_to="q4"),
                option("stop", 5, jump_to_end=True),
                option("stay", 2),
                option("gone", 0, jump_to="removed"),
            ], position=0),
            question("q2", "rating", position=1, ratingScale=5),
            question("q3", "number_input", position=2, minValue=0, maxValue=100),
            question("q4", "image_choice", options=[option("i1", 3), option("i2", 0)], position=3),
        ],
        results=[
            result("r1", 0, 5),
            result("r2", 6, 10),
            result("other", is_default=True, title="Other"),
        ],
    )
