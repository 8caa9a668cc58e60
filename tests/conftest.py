"""Shared SQLite fixtures for persistence and workflow tests."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import insert
from sqlalchemy.engine import Engine

from db import create_db_engine, create_session_factory
from repositories.ratings.common import source_metadata
from repositories.ratings.repository import PLAYER_RATING_REPOSITORY

LEAGUE_ID = "league-1"
TOURNAMENT_ID = "tournament-1"
BASE_TIME = datetime(2026, 2, 1, 19, 0, 0)
UPDATED_AT = datetime(2026, 2, 2, 8, 30, 0)


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'league.db'}")
    source_metadata.create_all(engine)
    PLAYER_RATING_REPOSITORY.ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    return create_session_factory(engine)


def insert_rows(engine: Engine, table_name: str, rows: Iterable[dict[str, Any]]) -> None:
    rows = list(rows)
    if not rows:
        return
    with engine.begin() as connection:
        connection.execute(insert(source_metadata.tables[table_name]), rows)


def match_row(
    match_id: str,
    player1_id: str,
    player2_id: str,
    player1_score: int,
    player2_score: int,
    *,
    minutes: int,
    league_id: str | None = LEAGUE_ID,
    tournament_id: str | None = None,
    status: str = "completed",
) -> dict[str, Any]:
    return {
        "id": match_id,
        "league_id": league_id,
        "tournament_id": tournament_id,
        "player1_id": player1_id,
        "player2_id": player2_id,
        "player1_score": player1_score,
        "player2_score": player2_score,
        "status": status,
        "completed_at": BASE_TIME + timedelta(minutes=minutes) if status == "completed" else None,
    }


@pytest.fixture
def league(engine: Engine) -> Engine:
    """One league, four rostered players, three completed matches and one scheduled."""
    insert_rows(engine, "leagues", [{"id": LEAGUE_ID, "slug": "tuesday-night", "name": "Tuesday Night"}])
    insert_rows(
        engine,
        "participants",
        [
            {"id": "a", "league_id": LEAGUE_ID, "name": "Alice"},
            {"id": "b", "league_id": LEAGUE_ID, "name": "Bob"},
            {"id": "c", "league_id": LEAGUE_ID, "name": "Chen"},
            {"id": "d", "league_id": LEAGUE_ID, "name": "Dana"},
        ],
    )
    insert_rows(
        engine,
        "matches",
        [
            match_row("m1", "a", "b", 3, 1, minutes=10),
            match_row("m2", "c", "a", 3, 2, minutes=20),
            match_row("m3", "b", "c", 3, 0, minutes=30),
            match_row("m4", "a", "d", 0, 0, minutes=40, status="scheduled"),
        ],
    )
    return engine
