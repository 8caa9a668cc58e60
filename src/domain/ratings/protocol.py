"""Shared protocols for rating calculators and their stores."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from sqlalchemy.orm import Session

from domain.ratings.common import (
    MatchRatingUpdate,
    MatchResult,
    PlayerRating,
    RatingCalculationResult,
    RatingScope,
)


@runtime_checkable
class RatingCalculator(Protocol):
    """Base contract all rating calculators satisfy."""

    def calculate_match_ratings(
        self,
        match: MatchResult,
        player1_current_rating: int,
        player2_current_rating: int,
    ) -> MatchRatingUpdate: ...

    def calculate_league_ratings(
        self,
        matches: Iterable[MatchResult],
        player_ratings: Mapping[str, PlayerRating],
    ) -> list[RatingCalculationResult]: ...


@runtime_checkable
class RatingStore(Protocol):
    """Persistence contract used by the rating update workflows."""

    def lock_scope(self, session: Session, scope: RatingScope, scope_id: str) -> None: ...

    def fetch_matches(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        *,
        completed_before: datetime | None = None,
    ) -> list[MatchResult]: ...

    def fetch_match(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        match_id: str,
    ) -> MatchResult | None: ...

    def fetch_ratings(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
    ) -> dict[str, PlayerRating]: ...

    def fetch_participant_ids(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
    ) -> list[str]: ...

    def upsert_ratings(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        ratings: Sequence[PlayerRating],
        *,
        updated_at: datetime,
    ) -> None: ...


__all__ = [
    "RatingCalculator",
    "RatingStore",
]
