"""Read helpers over the league application's match and roster tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, select
from sqlalchemy.orm import Session

from domain.ratings.common import MatchResult, RatingScope

source_metadata = MetaData()

_leagues = Table(
    "leagues",
    source_metadata,
    Column("id", String(64), primary_key=True),
    Column("slug", String(128)),
    Column("name", String(256)),
)

_tournaments = Table(
    "tournaments",
    source_metadata,
    Column("id", String(64), primary_key=True),
    Column("league_id", String(64)),
    Column("slug", String(128)),
    Column("name", String(256)),
)

_matches = Table(
    "matches",
    source_metadata,
    Column("id", String(64), primary_key=True),
    Column("league_id", String(64)),
    Column("tournament_id", String(64)),
    Column("player1_id", String(64)),
    Column("player2_id", String(64)),
    Column("player1_score", Integer),
    Column("player2_score", Integer),
    Column("status", String(32)),
    Column("completed_at", DateTime(timezone=True)),
)

_participants = Table(
    "participants",
    source_metadata,
    Column("id", String(64), primary_key=True),
    Column("league_id", String(64)),
    Column("name", String(256)),
)

_tournament_participants = Table(
    "tournament_participants",
    source_metadata,
    Column("tournament_id", String(64)),
    Column("participant_id", String(64)),
)

COMPLETED_STATUS = "completed"


def _scope_table(scope: RatingScope) -> Table:
    return _leagues if scope == RatingScope.LEAGUE else _tournaments


def _match_scope_column(scope: RatingScope):
    return _matches.c.league_id if scope == RatingScope.LEAGUE else _matches.c.tournament_id


def _row_to_match(row) -> MatchResult:
    return MatchResult(
        match_id=str(row.id),
        player1_id=str(row.player1_id),
        player2_id=str(row.player2_id),
        player1_score=int(row.player1_score or 0),
        player2_score=int(row.player2_score or 0),
        completed_at=row.completed_at,
    )


def fetch_completed_matches(
    session: Session,
    scope: RatingScope,
    scope_id: str,
    *,
    completed_before: datetime | None = None,
) -> list[MatchResult]:
    """Load completed matches for one scope, oldest first.

    ``completed_before`` is inclusive, so the match that triggered an update
    is part of its own corpus.
    """
    statement = (
        select(
            _matches.c.id,
            _matches.c.player1_id,
            _matches.c.player2_id,
            _matches.c.player1_score,
            _matches.c.player2_score,
            _matches.c.completed_at,
        )
        .where(_match_scope_column(scope) == scope_id)
        .where(_matches.c.status == COMPLETED_STATUS)
        .where(_matches.c.completed_at.is_not(None))
        .order_by(_matches.c.completed_at.asc(), _matches.c.id.asc())
    )
    if completed_before is not None:
        statement = statement.where(_matches.c.completed_at <= completed_before)

    return [_row_to_match(row) for row in session.execute(statement)]


def fetch_match(
    session: Session,
    scope: RatingScope,
    scope_id: str,
    match_id: str,
) -> MatchResult | None:
    """Load one completed match, or None when missing or not completed."""
    statement = (
        select(
            _matches.c.id,
            _matches.c.player1_id,
            _matches.c.player2_id,
            _matches.c.player1_score,
            _matches.c.player2_score,
            _matches.c.completed_at,
        )
        .where(_matches.c.id == match_id)
        .where(_match_scope_column(scope) == scope_id)
        .where(_matches.c.status == COMPLETED_STATUS)
        .where(_matches.c.completed_at.is_not(None))
    )
    row = session.execute(statement).first()
    return None if row is None else _row_to_match(row)


def fetch_participant_ids(session: Session, scope: RatingScope, scope_id: str) -> list[str]:
    """Ids of every rostered player in one scope."""
    if scope == RatingScope.LEAGUE:
        statement = (
            select(_participants.c.id)
            .where(_participants.c.league_id == scope_id)
            .order_by(_participants.c.id)
        )
    else:
        statement = (
            select(_tournament_participants.c.participant_id)
            .where(_tournament_participants.c.tournament_id == scope_id)
            .order_by(_tournament_participants.c.participant_id)
        )
    return [str(value) for value in session.scalars(statement)]


def fetch_participant_names(session: Session, player_ids: list[str]) -> dict[str, str]:
    if not player_ids:
        return {}
    statement = select(_participants.c.id, _participants.c.name).where(
        _participants.c.id.in_(player_ids)
    )
    return {str(row.id): str(row.name) for row in session.execute(statement)}


def fetch_scopes(session: Session, scope: RatingScope) -> list[tuple[str, str]]:
    """(id, name) for every league or tournament."""
    table = _scope_table(scope)
    statement = select(table.c.id, table.c.name).order_by(table.c.id)
    return [(str(row.id), str(row.name)) for row in session.execute(statement)]


def resolve_scope_id(session: Session, scope: RatingScope, id_or_slug: str) -> str | None:
    """Accept either a primary key or a slug and return the primary key."""
    table = _scope_table(scope)
    statement = select(table.c.id).where(
        (table.c.id == id_or_slug) | (table.c.slug == id_or_slug)
    )
    value = session.scalars(statement).first()
    return None if value is None else str(value)
