from __future__ import annotations
from datetime import datetime
from typing import Dict, List

from .models import Rating, RatingCategory

MIN_SCORE = 1
MAX_SCORE = 5
PERCENT_PER_POINT = 20


def score_to_percentage(score: int) -> int:
    return score * PERCENT_PER_POINT


class RatingDraft:
    """
    Scores staged for one staff member during a single rating session.

    The draft lives only as long as the session that owns it: it is handed to
    ``service.submit_ratings`` which writes it and empties it, or it is
    dropped with ``discard()``.
    """

    def __init__(self) -> None:
        self._scores: Dict[RatingCategory, int] = {}

    def set(self, category, score: int) -> None:
        category = RatingCategory(category)
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValueError("score must be an integer")
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValueError(f"score must be between {MIN_SCORE} and {MAX_SCORE}")
        self._scores[category] = score

    @property
    def scores(self) -> Dict[RatingCategory, int]:
        return dict(self._scores)

    def is_empty(self) -> bool:
        return not self._scores

    def discard(self) -> None:
        self._scores.clear()

    def to_records(self, staff_id: int, week: int, now: datetime) -> List[Rating]:
        return [
            Rating(
                staff_id=staff_id,
                category=category,
                score=score,
                percentage=score_to_percentage(score),
                week=week,
                timestamp=now,
                rating_date=now,
            )
            for category, score in self._scores.items()
        ]
