"""Rating-system domain modules."""

from domain.ratings.common import (
    DEFAULT_RATING,
    PROVISIONAL_THRESHOLD,
    MatchRatingUpdate,
    MatchResult,
    PlayerRating,
    RatingCalculationResult,
    RatingScope,
)
from domain.ratings.protocol import RatingCalculator, RatingStore

__all__ = [
    "DEFAULT_RATING",
    "PROVISIONAL_THRESHOLD",
    "MatchRatingUpdate",
    "MatchResult",
    "PlayerRating",
    "RatingCalculationResult",
    "RatingCalculator",
    "RatingScope",
    "RatingStore",
]
