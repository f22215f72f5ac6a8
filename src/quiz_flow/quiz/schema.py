"""
Quiz definition schema

Immutable description of one quiz as served by the public quiz API:
questions with their answer options, result tiers and lead-capture setup.
Field names follow the API's camelCase JSON in to_dict()/from_dict().
"""

from dataclasses import dataclass, field
from typing import Optional, Any
from enum import Enum
import json

from ..config import config


class QuestionType(str, Enum):
    """Types of quiz questions."""
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    IMAGE_CHOICE = "image_choice"
    TEXT_INPUT = "text_input"
    NUMBER_INPUT = "number_input"
    RATING = "rating"


# Questions whose answers are option ids
CHOICE_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.IMAGE_CHOICE,
})

# Questions whose single picked option can branch
BRANCHING_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.IMAGE_CHOICE,
})

# Questions that move on by themselves once a value is picked
AUTO_ADVANCE_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.IMAGE_CHOICE,
    QuestionType.RATING,
})


class LeadCapturePosition(str, Enum):
    """When contact details are asked for."""
    BEFORE_RESULTS = "before_results"
    AFTER_RESULTS = "after_results"


@dataclass(frozen=True)
class AnswerOption:
    """
    An option for choice-type questions.

    jump_to_question_id and jump_to_end are branching directives; when
    neither is set the flow continues with the next question by position.
    """
    id: str
    text: str = ""
    image_url: Optional[str] = None
    points: int = 0
    jump_to_question_id: Optional[str] = None
    jump_to_end: bool = False
    position: int = 0

    @property
    def branches(self) -> bool:
        return self.jump_to_end or self.jump_to_question_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "imageUrl": self.image_url,
            "points": self.points,
            "jumpToQuestionId": self.jump_to_question_id,
            "jumpToEnd": self.jump_to_end,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerOption":
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            image_url=data.get("imageUrl"),
            points=data.get("points") or 0,
            jump_to_question_id=data.get("jumpToQuestionId"),
            jump_to_end=bool(data.get("jumpToEnd", False)),
            position=data.get("position", 0),
        )


@dataclass(frozen=True)
class Question:
    """A single quiz question."""
    id: str
    question_type: QuestionType
    text: str = ""
    description: Optional[str] = None
    position: int = 0
    is_required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    rating_scale: Optional[int] = None
    options: tuple[AnswerOption, ...] = ()

    @property
    def is_choice(self) -> bool:
        return self.question_type in CHOICE_TYPES

    @property
    def branches(self) -> bool:
        return self.question_type in BRANCHING_TYPES

    @property
    def auto_advances(self) -> bool:
        return self.question_type in AUTO_ADVANCE_TYPES

    def find_option(self, option_id: Any) -> Optional[AnswerOption]:
        """Look up an option by id; None for unknown ids or non-string values."""
        if not isinstance(option_id, str):
            return None
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def rating_values(self) -> list[str]:
        """Selectable rating values, stored as strings ("1".."N")."""
        scale = self.rating_scale
        if scale is None or scale < 2:
            scale = config.flow.default_rating_scale
        return [str(n) for n in range(1, scale + 1)]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "description": self.description,
            "questionType": self.question_type.value,
            "position": self.position,
            "isRequired": self.is_required,
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "ratingScale": self.rating_scale,
            "options": [o.to_dict() for o in self.options],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        options = sorted(
            (AnswerOption.from_dict(o) for o in data.get("options") or []),
            key=lambda o: o.position,
        )
        return cls(
            id=data["id"],
            question_type=QuestionType(data["questionType"]),
            text=data.get("text", ""),
            description=data.get("description"),
            position=data.get("position", 0),
            is_required=bool(data.get("isRequired", False)),
            min_value=data.get("minValue"),
            max_value=data.get("maxValue"),
            rating_scale=data.get("ratingScale"),
            options=tuple(options),
        )


@dataclass(frozen=True)
class QuizResult:
    """
    A result tier.

    min_score/max_score are inclusive and either may be open (None).
    List order matters: the first tier whose range contains the score wins.
    """
    id: str
    title: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "ctaText": self.cta_text,
            "ctaUrl": self.cta_url,
            "minScore": self.min_score,
            "maxScore": self.max_score,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizResult":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
            cta_text=data.get("ctaText"),
            cta_url=data.get("ctaUrl"),
            min_score=data.get("minScore"),
            max_score=data.get("maxScore"),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass(frozen=True)
class LeadCaptureField:
    """A contact detail asked from the respondent."""
    key: str
    label: str
    is_required: bool = False
    contact_field_mapping: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "isRequired": self.is_required,
            "contactFieldMapping": self.contact_field_mapping,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LeadCaptureField":
        return cls(
            key=data["key"],
            label=data.get("label", data["key"]),
            is_required=bool(data.get("isRequired", False)),
            contact_field_mapping=data.get("contactFieldMapping"),
        )


@dataclass(frozen=True)
class QuizDefinition:
    """
    Complete quiz as fetched from GET /public/quiz/{id}.

    Questions are kept ordered by position; the "linear next" question
    is the following entry of that tuple.
    """
    id: str
    name: str = ""
    questions: tuple[Question, ...] = ()
    results: tuple[QuizResult, ...] = ()
    lead_capture_fields: tuple[LeadCaptureField, ...] = ()
    lead_capture_position: LeadCapturePosition = LeadCapturePosition.BEFORE_RESULTS
    lead_capture_heading: str = "Enter your details to see your result"
    description: Optional[str] = None
    start_headline: str = ""
    start_description: Optional[str] = None
    start_button_text: str = "Start"
    start_image_url: Optional[str] = None
    accent_color: Optional[str] = None

    @property
    def has_lead_capture(self) -> bool:
        return len(self.lead_capture_fields) > 0

    @property
    def lead_before_results(self) -> bool:
        return (
            self.has_lead_capture
            and self.lead_capture_position == LeadCapturePosition.BEFORE_RESULTS
        )

    @property
    def lead_after_results(self) -> bool:
        return (
            self.has_lead_capture
            and self.lead_capture_position == LeadCapturePosition.AFTER_RESULTS
        )

    def find_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "startHeadline": self.start_headline,
            "startDescription": self.start_description,
            "startButtonText": self.start_button_text,
            "startImageUrl": self.start_image_url,
            "leadCapturePosition": self.lead_capture_position.value,
            "leadCaptureHeading": self.lead_capture_heading,
            "leadCaptureFields": [f.to_dict() for f in self.lead_capture_fields],
            "accentColor": self.accent_color,
            "questions": [q.to_dict() for q in self.questions],
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizDefinition":
        questions = sorted(
            (Question.from_dict(q) for q in data.get("questions") or []),
            key=lambda q: q.position,
        )
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            questions=tuple(questions),
            results=tuple(QuizResult.from_dict(r) for r in data.get("results") or []),
            lead_capture_fields=tuple(
                LeadCaptureField.from_dict(f) for f in data.get("leadCaptureFields") or []
            ),
            lead_capture_position=LeadCapturePosition(
                data.get("leadCapturePosition") or LeadCapturePosition.BEFORE_RESULTS.value
            ),
            lead_capture_heading=data.get(
                "leadCaptureHeading", "Enter your details to see your result"
            ),
            description=data.get("description"),
            start_headline=data.get("startHeadline", ""),
            start_description=data.get("startDescription"),
            start_button_text=data.get("startButtonText", "Start"),
            start_image_url=data.get("startImageUrl"),
            accent_color=data.get("accentColor"),
        )

    @classmethod
    def from_json(cls, text: str) -> "QuizDefinition":
        return cls.from_dict(json.loads(text))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def lint_definition(definition: QuizDefinition) -> list[str]:
    """
    Report authoring problems in a quiz definition.

    The flow engine tolerates all of these at runtime (dangling jumps fall
    back to the next question, missing defaults fall back to the first
    result); this is for catching them before a quiz is published.

    Args:
        definition: Quiz definition to inspect

    Returns:
        List of human-readable problems (empty when clean)
    """
    problems = []
    question_ids = [q.id for q in definition.questions]
    known = set(question_ids)

    if len(known) != len(question_ids):
        problems.append("Duplicate question ids")

    for question in definition.questions:
        label = question.text or question.id

        if question.is_choice and not question.options:
            problems.append(f"'{label}' is a choice question without options")

        if question.question_type == QuestionType.RATING and question.rating_scale is not None:
            if question.rating_scale < 2:
                problems.append(f"'{label}' has a rating scale below 2")

        option_ids = [o.id for o in question.options]
        if len(set(option_ids)) != len(option_ids):
            problems.append(f"'{label}' has duplicate option ids")

        for option in question.options:
            option_label = option.text or option.id
            if option.jump_to_end and option.jump_to_question_id:
                problems.append(
                    f"Option '{option_label}' in '{label}' both jumps to a question and to the end"
                )
            target = option.jump_to_question_id
            if target is None:
                continue
            if target not in known:
                problems.append(
                    f"Option '{option_label}' in '{label}' jumps to missing question {target}"
                )
            elif target == question.id:
                problems.append(f"Option '{option_label}' in '{label}' jumps to its own question")
            if question.question_type == QuestionType.MULTIPLE_CHOICE:
                problems.append(
                    f"Option '{option_label}' in '{label}' has a jump that multiple choice never follows"
                )

    defaults = [r for r in definition.results if r.is_default]
    if len(defaults) > 1:
        problems.append(f"{len(defaults)} results are marked default; the first one is used")

    for result in definition.results:
        if result.min_score is None and result.max_score is None and not result.is_default:
            problems.append(f"Result '{result.title or result.id}' has no score range and is not default")
        if (
            result.min_score is not None
            and result.max_score is not None
            and result.min_score > result.max_score
        ):
            problems.append(f"Result '{result.title or result.id}' has min score above max score")

    return problems
