"""Persistence for per-scope player rating snapshots using SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session

from domain.ratings.common import MatchResult, PlayerRating, RatingScope
from models import PlayerRatingSnapshot
from repositories.ratings.common import fetch_completed_matches, fetch_match, fetch_participant_ids

logger = logging.getLogger(__name__)

_UPDATE_COLUMNS = ("current_rating", "matches_played", "is_provisional", "last_updated_at")


def _scope_column_name(scope: RatingScope) -> str:
    return "league_id" if scope == RatingScope.LEAGUE else "tournament_id"


class PlayerRatingRepository:
    """SQL-backed rating store keyed by (player_id, league_id) or (player_id, tournament_id)."""

    def ensure_schema(self, engine: Engine) -> None:
        """Create the player_ratings table and its indexes if they do not exist."""
        with engine.begin() as connection:
            PlayerRatingSnapshot.__table__.create(bind=connection, checkfirst=True)

    def lock_scope(self, session: Session, scope: RatingScope, scope_id: str) -> None:
        """Serialize rating writers for one scope until the transaction ends."""
        bind = session.get_bind()
        if bind is None or bind.dialect.name != "postgresql":
            logger.debug("advisory locks unsupported on %s; skipping", getattr(bind, "dialect", None))
            return

        session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
            {"lock_key": f"player_ratings:{scope.value}:{scope_id}"},
        )

    def fetch_matches(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        *,
        completed_before: datetime | None = None,
    ) -> list[MatchResult]:
        return fetch_completed_matches(
            session,
            scope,
            scope_id,
            completed_before=completed_before,
        )

    def fetch_match(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        match_id: str,
    ) -> MatchResult | None:
        return fetch_match(session, scope, scope_id, match_id)

    def fetch_participant_ids(self, session: Session, scope: RatingScope, scope_id: str) -> list[str]:
        return fetch_participant_ids(session, scope, scope_id)

    def fetch_ratings(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
    ) -> dict[str, PlayerRating]:
        """Stored snapshots for one scope, keyed by player id."""
        scope_column = getattr(PlayerRatingSnapshot, _scope_column_name(scope))
        statement = select(PlayerRatingSnapshot).where(scope_column == scope_id)
        return {
            snapshot.player_id: PlayerRating(
                player_id=snapshot.player_id,
                current_rating=snapshot.current_rating,
                matches_played=snapshot.matches_played,
                is_provisional=snapshot.is_provisional,
            )
            for snapshot in session.scalars(statement)
        }

    def upsert_ratings(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        ratings: Sequence[PlayerRating],
        *,
        updated_at: datetime,
    ) -> None:
        """Insert or overwrite snapshots, resolving conflicts on the scope key."""
        if not ratings:
            return

        scope_column = _scope_column_name(scope)
        rows: list[dict[str, Any]] = [
            {
                "player_id": rating.player_id,
                "league_id": scope_id if scope == RatingScope.LEAGUE else None,
                "tournament_id": scope_id if scope == RatingScope.TOURNAMENT else None,
                "current_rating": rating.current_rating,
                "matches_played": rating.matches_played,
                "is_provisional": rating.is_provisional,
                "last_updated_at": updated_at,
            }
            for rating in ratings
        ]

        statement = self._insert_statement(session).values(rows)
        statement = statement.on_conflict_do_update(
            index_elements=["player_id", scope_column],
            set_={column: getattr(statement.excluded, column) for column in _UPDATE_COLUMNS},
        )
        session.execute(statement)
        logger.debug("upserted %d rating rows for %s=%s", len(rows), scope_column, scope_id)

    def top_ratings(
        self,
        session: Session,
        scope: RatingScope,
        scope_id: str,
        *,
        limit: int = 20,
        include_provisional: bool = True,
    ) -> list[PlayerRatingSnapshot]:
        """Highest-rated snapshots in one scope."""
        scope_column = getattr(PlayerRatingSnapshot, _scope_column_name(scope))
        statement = select(PlayerRatingSnapshot).where(scope_column == scope_id)
        if not include_provisional:
            statement = statement.where(PlayerRatingSnapshot.is_provisional.is_(False))
        statement = statement.order_by(
            PlayerRatingSnapshot.current_rating.desc(),
            PlayerRatingSnapshot.matches_played.desc(),
            PlayerRatingSnapshot.player_id.asc(),
        ).limit(limit)
        return list(session.scalars(statement))

    @staticmethod
    def _insert_statement(session: Session):
        bind = session.get_bind()
        dialect_name = bind.dialect.name if bind is not None else None
        if dialect_name == "postgresql":
            return pg_insert(PlayerRatingSnapshot)
        if dialect_name == "sqlite":
            return sqlite_insert(PlayerRatingSnapshot)
        raise ArgumentError(f"Rating upsert is not supported for dialect {dialect_name!r}")


PLAYER_RATING_REPOSITORY = PlayerRatingRepository()
