"""
Tests for the quiz definition schema and author checks.
"""

import pytest

from quiz_flow.quiz.schema import (
    AnswerOption,
    Question,
    QuizResult,
    LeadCaptureField,
    QuizDefinition,
    QuestionType,
    LeadCapturePosition,
    CHOICE_TYPES,
    AUTO_ADVANCE_TYPES,
    BRANCHING_TYPES,
    lint_definition,
)

from conftest import build_quiz, question, option, result, EMAIL_FIELD


class TestAnswerOption:
    """Tests for AnswerOption."""

    def test_from_dict_defaults(self):
        """Missing points and jumps default to no effect."""
        opt = AnswerOption.from_dict({"id": "o1", "points": None})

        assert opt.points == 0
        assert opt.jump_to_question_id is None
        assert opt.jump_to_end is False
        assert opt.branches is False

    def test_to_dict_uses_api_names(self):
        """Serialization uses the API's camelCase keys."""
        opt = AnswerOption(id="o1", points=4, jump_to_end=True)
        data = opt.to_dict()

        assert data["points"] == 4
        assert data["jumpToEnd"] is True
        assert "jumpToQuestionId" in data


class TestQuestion:
    """Tests for Question."""

    def test_from_dict(self):
        """Test question deserialization."""
        q = Question.from_dict({
            "id": "q1",
            "questionType": "single_choice",
            "text": "Pick one",
            "isRequired": True,
            "options": [
                {"id": "b", "position": 1},
                {"id": "a", "position": 0},
            ],
        })

        assert q.question_type == QuestionType.SINGLE_CHOICE
        assert q.is_required is True
        assert [o.id for o in q.options] == ["a", "b"]

    def test_unknown_type_rejected(self):
        """An unknown question type is a malformed definition."""
        with pytest.raises(ValueError):
            Question.from_dict({"id": "q", "questionType": "essay"})

    def test_find_option(self):
        """Options are found by string id only."""
        q = Question.from_dict(question("q", options=[option("a", 2)]))

        assert q.find_option("a").points == 2
        assert q.find_option("missing") is None
        assert q.find_option(3) is None

    def test_rating_values(self):
        """Rating values run from 1 to the scale, as strings."""
        q = Question(id="r", question_type=QuestionType.RATING, rating_scale=3)

        assert q.rating_values() == ["1", "2", "3"]

    def test_rating_values_default_scale(self):
        """Unset rating scale falls back to five."""
        q = Question(id="r", question_type=QuestionType.RATING)

        assert q.rating_values() == ["1", "2", "3", "4", "5"]

    def test_rating_values_bad_scale(self):
        """Scales below two fall back to the default."""
        for scale in (-1, 0, 1):
            q = Question(id="r", question_type=QuestionType.RATING, rating_scale=scale)

            assert q.rating_values() == ["1", "2", "3", "4", "5"]

    def test_type_groups(self):
        """Choice and auto-advance groupings."""
        assert QuestionType.MULTIPLE_CHOICE in CHOICE_TYPES
        assert QuestionType.RATING not in CHOICE_TYPES
        assert QuestionType.RATING in AUTO_ADVANCE_TYPES
        assert QuestionType.MULTIPLE_CHOICE not in AUTO_ADVANCE_TYPES
        assert QuestionType.MULTIPLE_CHOICE not in BRANCHING_TYPES
        assert QuestionType.IMAGE_CHOICE in BRANCHING_TYPES


class TestQuizDefinition:
    """Tests for QuizDefinition."""

    def test_questions_sorted_by_position(self):
        """Questions are ordered by position regardless of payload order."""
        quiz = build_quiz(questions=[
            question("second", position=2),
            question("first", position=1),
        ])

        assert [q.id for q in quiz.questions] == ["first", "second"]

    def test_lead_capture_flags(self):
        """Lead capture position is only meaningful with fields configured."""
        no_fields = build_quiz(position="after_results")
        before = build_quiz(lead_fields=[EMAIL_FIELD])
        after = build_quiz(lead_fields=[EMAIL_FIELD], position="after_results")

        assert no_fields.has_lead_capture is False
        assert no_fields.lead_after_results is False
        assert before.lead_before_results is True
        assert after.lead_after_results is True
        assert after.lead_capture_position == LeadCapturePosition.AFTER_RESULTS

    def test_default_position(self):
        """Missing lead capture position means before results."""
        quiz = QuizDefinition.from_dict({"id": "q"})

        assert quiz.lead_capture_position == LeadCapturePosition.BEFORE_RESULTS
        assert quiz.questions == ()
        assert quiz.results == ()

    def test_json_roundtrip(self, branching_quiz):
        """A definition survives JSON serialization."""
        loaded = QuizDefinition.from_json(branching_quiz.to_json())

        assert loaded == branching_quiz

    def test_lead_field_label_fallback(self):
        """A field without a label is labelled by its key."""
        f = LeadCaptureField.from_dict({"key": "phone"})

        assert f.label == "phone"
        assert f.is_required is False

    def test_result_from_dict(self):
        """Open bounds stay None."""
        r = QuizResult.from_dict({"id": "r", "minScore": 5})

        assert r.min_score == 5
        assert r.max_score is None
        assert r.is_default is False


class TestLintDefinition:
    """Tests for author checks."""

    def test_clean_definition(self, linear_quiz):
        """A well-formed quiz has no problems."""
        assert lint_definition(linear_quiz) == []

    def test_dangling_jump(self, branching_quiz):
        """A jump to a removed question is reported."""
        problems = lint_definition(branching_quiz)

        assert any("missing question removed" in p for p in problems)

    def test_choice_without_options(self):
        """A choice question needs options."""
        quiz = build_quiz(questions=[question("q", "single_choice")])

        assert any("without options" in p for p in lint_definition(quiz))

    def test_conflicting_jumps(self):
        """An option cannot jump both to a question and to the end."""
        quiz = build_quiz(questions=[
            question("q1", options=[option("a", jump_to="q2", jump_to_end=True)]),
            question("q2", "text_input", position=1),
        ])

        assert any("both jumps" in p for p in lint_definition(quiz))

    def test_multiple_defaults(self):
        """More than one default result is ambiguous."""
        quiz = build_quiz(results=[result("a", is_default=True), result("b", is_default=True)])

        assert any("marked default" in p for p in lint_definition(quiz))

    def test_unreachable_result(self):
        """A result with no range that is not default never matches."""
        quiz = build_quiz(results=[result("a", 0, 5), result("lost")])

        assert any("'lost'" in p for p in lint_definition(quiz))

    def test_inverted_range(self):
        """A min above max can never match."""
        quiz = build_quiz(results=[result("a", 10, 5)])

        assert any("min score above max" in p for p in lint_definition(quiz))

    def test_jump_on_multiple_choice(self):
        """Jumps on multiple-choice options are never followed."""
        quiz = build_quiz(questions=[
            question("q1", "multiple_choice", options=[option("a", jump_to="q2")]),
            question("q2", "text_input", position=1),
        ])

        assert any("never follows" in p for p in lint_definition(quiz))

    def test_small_rating_scale(self):
        """A rating scale below two is reported."""
        quiz = build_quiz(questions=[question("r", "rating", ratingScale=1)])

        assert any("rating scale" in p for p in lint_definition(quiz))
