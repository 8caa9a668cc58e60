"""ORM models."""

from models.base import Base
from models.player_rating import PlayerRatingSnapshot

__all__ = [
    "Base",
    "PlayerRatingSnapshot",
]
