"""
quiz-flow: branching quiz engine for lead-generation quizzes.

Scores answers, matches result tiers, navigates branching questions and
keeps a best-effort remote session of every attempt.
"""

__version__ = "0.1.0"
__author__ = "Autumn Brown"
__email__ = "autumn@grove.place"

from .config import config
from .quiz.schema import (
    QuizDefinition,
    Question,
    AnswerOption,
    QuizResult,
    LeadCaptureField,
    QuestionType,
    LeadCapturePosition,
    lint_definition,
)
from .engine import score, match_result, resolve_next, FlowNavigator
from .session import SessionTracker
from .controller import QuizRun, Screen, validate_lead
from .transport import (
    get_transport,
    Attribution,
    HttpSessionTransport,
    MockTransport,
    DefinitionLoadError,
    SessionTransportError,
)

__all__ = [
    # Config
    "config",
    # Definitions
    "QuizDefinition",
    "Question",
    "AnswerOption",
    "QuizResult",
    "LeadCaptureField",
    "QuestionType",
    "LeadCapturePosition",
    "lint_definition",
    # Engine
    "score",
    "match_result",
    "resolve_next",
    "FlowNavigator",
    # Session and flow
    "SessionTracker",
    "QuizRun",
    "Screen",
    "validate_lead",
    # Transports
    "get_transport",
    "Attribution",
    "HttpSessionTransport",
    "MockTransport",
    "DefinitionLoadError",
    "SessionTransportError",
]
