"""
Result Matcher - picks the result tier for a final score

Tiers are checked in list order and the first whose inclusive range
contains the score wins, so authoring order is significant: with tiers
[0..10] and [5..15] a score of 7 always lands in the first.

A tier without any bound never matches by range. When nothing matches
the tier flagged default is used, else the first tier in the list.
"""

from typing import Optional, Sequence

from ..quiz.schema import QuizResult


def in_range(result: QuizResult, total: int) -> bool:
    """Whether a score falls inside a tier's (possibly open) range."""
    has_min = result.min_score is not None
    has_max = result.max_score is not None

    if has_min and has_max:
        return result.min_score <= total <= result.max_score
    if has_min:
        return total >= result.min_score
    if has_max:
        return total <= result.max_score
    return False


def match_result(results: Sequence[QuizResult], total: int) -> Optional[QuizResult]:
    """
    Match a score against the result tiers.

    Args:
        results: Result tiers in authoring order
        total: Final score

    Returns:
        Matched tier, or None when the quiz has no results at all
    """
    for result in results:
        if in_range(result, total):
            return result

    for result in results:
        if result.is_default:
            return result

    # No default configured: first tier is the safety net
    return results[0] if results else None
