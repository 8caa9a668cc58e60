"""Rating update workflows: fetch matches, recompute, upsert snapshots.

Every workflow runs inside one transaction per scope. The scope is locked
first so concurrent recomputations for the same league or tournament
cannot interleave their read-modify-write cycles, and any persistence
error rolls the whole transaction back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.ratings.common import (
    DEFAULT_RATING,
    MatchResult,
    PlayerRating,
    RatingCalculationResult,
    RatingScope,
)
from domain.ratings.protocol import RatingCalculator, RatingStore

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@dataclass(frozen=True)
class PlayerRatingChange:
    player_id: str
    old_rating: int
    new_rating: int
    rating_change: int


@dataclass(frozen=True)
class RatingUpdateResult:
    """Outcome of one rating update trigger."""

    success: bool
    error: str | None = None
    updated_players: int = 0
    total_matches_processed: int = 0
    player_ratings: tuple[PlayerRatingChange, ...] = field(default_factory=tuple)
    dry_run: bool = False

    @classmethod
    def failure(cls, error: str) -> RatingUpdateResult:
        return cls(success=False, error=error)


def build_prior_ratings(
    matches: Iterable[MatchResult],
    stored_ratings: Mapping[str, PlayerRating],
    *,
    default_rating: int = DEFAULT_RATING,
) -> dict[str, PlayerRating]:
    """Seed every player in the corpus as unrated at their stored rating.

    Recomputation replays the full history, so stored match counts are
    not carried into the run.
    """
    prior: dict[str, PlayerRating] = {}
    for match in matches:
        for player_id in (match.player1_id, match.player2_id):
            if player_id in prior:
                continue
            stored = stored_ratings.get(player_id)
            prior[player_id] = PlayerRating(
                player_id=player_id,
                current_rating=stored.current_rating if stored is not None else default_rating,
                matches_played=0,
                is_provisional=stored.is_provisional if stored is not None else True,
            )
    return prior


def _to_snapshots(results: Iterable[RatingCalculationResult]) -> list[PlayerRating]:
    return [
        PlayerRating(
            player_id=result.player_id,
            current_rating=result.new_rating,
            matches_played=result.matches_played,
            is_provisional=result.is_provisional,
        )
        for result in results
    ]


def _to_changes(results: Iterable[RatingCalculationResult]) -> tuple[PlayerRatingChange, ...]:
    return tuple(
        PlayerRatingChange(
            player_id=result.player_id,
            old_rating=result.old_rating,
            new_rating=result.new_rating,
            rating_change=result.rating_change,
        )
        for result in results
    )


def _recompute(
    session: Session,
    *,
    store: RatingStore,
    calculator: RatingCalculator,
    scope: RatingScope,
    scope_id: str,
    completed_before: datetime | None,
) -> tuple[list[MatchResult], list[RatingCalculationResult]]:
    matches = store.fetch_matches(session, scope, scope_id, completed_before=completed_before)
    stored_ratings = store.fetch_ratings(session, scope, scope_id)
    prior_ratings = build_prior_ratings(matches, stored_ratings)
    results = calculator.calculate_league_ratings(matches, prior_ratings)
    return matches, results


def update_ratings_for_match(
    *,
    session_factory: SessionFactory,
    store: RatingStore,
    calculator: RatingCalculator,
    scope: RatingScope,
    scope_id: str,
    match_id: str,
    dry_run: bool = False,
    now: Callable[[], datetime] | None = None,
) -> RatingUpdateResult:
    """Recompute ratings over every match up to and including ``match_id``.

    All players in the corpus are persisted; only the two participants of
    the triggering match are reported back.
    """
    with session_factory() as session:
        try:
            store.lock_scope(session, scope, scope_id)
            match = store.fetch_match(session, scope, scope_id, match_id)
            if match is None:
                session.rollback()
                return RatingUpdateResult.failure("Match not found or not completed")

            matches, results = _recompute(
                session,
                store=store,
                calculator=calculator,
                scope=scope,
                scope_id=scope_id,
                completed_before=match.completed_at,
            )

            if dry_run:
                session.rollback()
            else:
                store.upsert_ratings(
                    session,
                    scope,
                    scope_id,
                    _to_snapshots(results),
                    updated_at=(now or _utc_now)(),
                )
                session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception(
                "rating update failed for %s=%s match_id=%s", scope.value, scope_id, match_id
            )
            return RatingUpdateResult.failure("Failed to update ratings in database")

    logger.info(
        "updated ratings for %s=%s match_id=%s players=%d matches=%d dry_run=%s",
        scope.value,
        scope_id,
        match_id,
        len(results),
        len(matches),
        dry_run,
    )
    return RatingUpdateResult(
        success=True,
        updated_players=len(results),
        total_matches_processed=len(matches),
        player_ratings=_to_changes(result for result in results if match.involves(result.player_id)),
        dry_run=dry_run,
    )


def recalculate_all_ratings(
    *,
    session_factory: SessionFactory,
    store: RatingStore,
    calculator: RatingCalculator,
    scope: RatingScope,
    scope_id: str,
    seed_participants: bool = False,
    dry_run: bool = False,
    now: Callable[[], datetime] | None = None,
) -> RatingUpdateResult:
    """Recompute every rating in one scope from all of its completed matches.

    With ``seed_participants`` rostered players that have no completed
    match also get a default provisional snapshot.
    """
    with session_factory() as session:
        try:
            store.lock_scope(session, scope, scope_id)
            matches, results = _recompute(
                session,
                store=store,
                calculator=calculator,
                scope=scope,
                scope_id=scope_id,
                completed_before=None,
            )

            snapshots = _to_snapshots(results)
            if seed_participants:
                snapshots.extend(
                    _default_snapshots(
                        store.fetch_participant_ids(session, scope, scope_id),
                        rated={result.player_id for result in results},
                    )
                )

            if dry_run:
                session.rollback()
            else:
                store.upsert_ratings(
                    session,
                    scope,
                    scope_id,
                    snapshots,
                    updated_at=(now or _utc_now)(),
                )
                session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("rating recalculation failed for %s=%s", scope.value, scope_id)
            return RatingUpdateResult.failure("Failed to update ratings in database")

    logger.info(
        "recalculated ratings for %s=%s players=%d matches=%d dry_run=%s",
        scope.value,
        scope_id,
        len(snapshots),
        len(matches),
        dry_run,
    )
    return RatingUpdateResult(
        success=True,
        updated_players=len(snapshots),
        total_matches_processed=len(matches),
        player_ratings=_to_changes(results),
        dry_run=dry_run,
    )


def _default_snapshots(participant_ids: Iterable[str], *, rated: set[str]) -> list[PlayerRating]:
    return [
        PlayerRating(
            player_id=player_id,
            current_rating=DEFAULT_RATING,
            matches_played=0,
            is_provisional=True,
        )
        for player_id in participant_ids
        if player_id not in rated
    ]


def _utc_now() -> datetime:
    return datetime.now(UTC)


__all__ = [
    "PlayerRatingChange",
    "RatingUpdateResult",
    "build_prior_ratings",
    "recalculate_all_ratings",
    "update_ratings_for_match",
]
