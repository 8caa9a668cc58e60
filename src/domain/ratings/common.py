"""Shared types for rating systems."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

DEFAULT_RATING = 1200
PROVISIONAL_THRESHOLD = 2


class RatingScope(str, Enum):
    """Which competition a rating snapshot belongs to."""

    LEAGUE = "league"
    TOURNAMENT = "tournament"


@dataclass(frozen=True)
class MatchResult:
    """Canonical completed-match payload used by rating calculators."""

    match_id: str
    player1_id: str
    player2_id: str
    player1_score: int
    player2_score: int
    completed_at: datetime

    @property
    def player1_won(self) -> bool:
        # Equal scores count as a player2 win.
        return self.player1_score > self.player2_score

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player1_id, self.player2_id)


@dataclass(frozen=True)
class PlayerRating:
    """Stored rating snapshot for one player before a calculation run."""

    player_id: str
    current_rating: int
    matches_played: int = 0
    is_provisional: bool = True

    @property
    def is_established(self) -> bool:
        return self.matches_played > 0


@dataclass(frozen=True)
class RatingCalculationResult:
    """Per-player outcome of a league recomputation."""

    player_id: str
    old_rating: int
    new_rating: int
    rating_change: int
    matches_played: int
    is_provisional: bool


@dataclass(frozen=True)
class MatchRatingUpdate:
    """Outcome of one point exchange between two rated players."""

    player1_new_rating: int
    player2_new_rating: int
    points_exchanged: int
