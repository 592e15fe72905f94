"""Scoring, percentage, percentile and pass/fail rules for finalized attempts."""
from dataclasses import dataclass
from typing import Iterable, Sequence

from app.core.constants import AttemptQuestionStatusEnum


@dataclass(frozen=True)
class AttemptTally:
    total_questions: int
    attempted_count: int
    correct_count: int
    wrong_count: int
    skipped_count: int
    marked_for_review_count: int


def tally(attempt_questions: Sequence) -> AttemptTally:
    """Count statuses and correctness over an attempt's questions.

    Correct and wrong are read from ``is_correct`` rather than ``status``, so a
    question answered and later skipped still counts toward the score.
    """
    return AttemptTally(
        total_questions=len(attempt_questions),
        attempted_count=sum(1 for aq in attempt_questions if aq.status == AttemptQuestionStatusEnum.ATTEMPTED),
        correct_count=sum(1 for aq in attempt_questions if aq.is_correct is True),
        wrong_count=sum(1 for aq in attempt_questions if aq.is_correct is False),
        skipped_count=sum(1 for aq in attempt_questions if aq.status == AttemptQuestionStatusEnum.SKIPPED),
        marked_for_review_count=sum(1 for aq in attempt_questions if aq.is_marked_for_review),
    )


def compute_score(correct_count: int, wrong_count: int, correct_marks: float, negative_marks: float) -> float:
    # negative_marks is a magnitude; a signed value would reward wrong answers
    return correct_count * correct_marks - wrong_count * abs(negative_marks)


def compute_max_score(total_questions: int, correct_marks: float) -> float:
    return total_questions * correct_marks


def compute_percentage(total_score: float, max_score: float) -> float:
    if not max_score or max_score <= 0:
        return 0.0
    return total_score * 100 / max_score


def compute_percentile(score: float, scores: Iterable[float]) -> float:
    """Share of completed scores that are less than or equal to ``score``, 0-100."""
    valid = [s for s in scores if s is not None]
    if not valid:
        return 0.0
    at_or_below = sum(1 for s in valid if s <= score)
    return at_or_below / len(valid) * 100


def has_passed(percentage: float, passing_percentage: float) -> bool:
    if percentage is None or passing_percentage is None:
        return False
    return percentage >= passing_percentage
