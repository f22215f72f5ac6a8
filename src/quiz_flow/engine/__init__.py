"""
Quiz flow engine

Pure scoring, result matching and navigation. No network concerns here.
"""

from .answers import Answers, is_answered, toggle_choice, can_proceed
from .scorer import score, selected_option_ids
from .matcher import match_result, in_range
from .navigator import FlowNavigator, resolve_next, index_of

__all__ = [
    "Answers",
    "is_answered",
    "toggle_choice",
    "can_proceed",
    "score",
    "selected_option_ids",
    "match_result",
    "in_range",
    "FlowNavigator",
    "resolve_next",
    "index_of",
]
