"""player_ratings table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class PlayerRatingSnapshot(Base):
    """Current rating of one player within one league or tournament."""

    __tablename__ = "player_ratings"
    __table_args__ = (
        UniqueConstraint("player_id", "league_id", name="uq_player_ratings_player_league"),
        UniqueConstraint("player_id", "tournament_id", name="uq_player_ratings_player_tournament"),
        CheckConstraint("matches_played >= 0", name="ck_player_ratings_matches_played"),
        CheckConstraint(
            "league_id IS NOT NULL OR tournament_id IS NOT NULL",
            name="ck_player_ratings_scope",
        ),
        Index("idx_player_ratings_league_rating", "league_id", "current_rating"),
        Index("idx_player_ratings_tournament_rating", "tournament_id", "current_rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    league_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tournament_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    current_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=1200)
    matches_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_provisional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
