"""Database repository helpers."""

from repositories.ratings.repository import PLAYER_RATING_REPOSITORY, PlayerRatingRepository

__all__ = [
    "PLAYER_RATING_REPOSITORY",
    "PlayerRatingRepository",
]
