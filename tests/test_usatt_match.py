"""Unit tests for single-match USATT point exchange."""

from __future__ import annotations

from datetime import datetime

import pytest

from domain.ratings.common import MatchResult
from domain.ratings.usatt.calculator import USATTParameters, USATTRatingCalculator


def _match(player1_score: int, player2_score: int) -> MatchResult:
    return MatchResult(
        match_id="m1",
        player1_id="p1",
        player2_id="p2",
        player1_score=player1_score,
        player2_score=player2_score,
        completed_at=datetime(2026, 1, 1, 12, 0, 0),
    )


def test_favorite_win_exchanges_expected_points() -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(11, 9), 1500, 1400)

    assert update.player1_new_rating == 1504
    assert update.player2_new_rating == 1396
    assert update.points_exchanged == 4


def test_upset_win_exchanges_upset_points() -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(3, 1), 1400, 1500)

    assert update.player1_new_rating == 1420
    assert update.player2_new_rating == 1480
    assert update.points_exchanged == 20


def test_player2_win_moves_points_to_player2() -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(0, 3), 1400, 1500)

    assert update.player1_new_rating == 1396
    assert update.player2_new_rating == 1504
    assert update.points_exchanged == 4


def test_equal_scores_count_as_player2_win() -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(2, 2), 1500, 1400)

    # player2 was the lower-rated side, so the tie is scored as an upset.
    assert update.player1_new_rating == 1480
    assert update.player2_new_rating == 1420
    assert update.points_exchanged == 20


def test_equal_ratings_are_never_an_upset() -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(3, 0), 1200, 1200)

    assert update.points_exchanged == 8
    assert update.player1_new_rating == 1208
    assert update.player2_new_rating == 1192


@pytest.mark.parametrize("player1_rating", [100, 900, 1200, 1450, 1999, 2600])
@pytest.mark.parametrize("player2_rating", [150, 1200, 1380, 2400])
@pytest.mark.parametrize("scores", [(3, 1), (1, 3), (2, 2)])
def test_exchange_is_zero_sum(player1_rating: int, player2_rating: int, scores: tuple[int, int]) -> None:
    update = USATTRatingCalculator().calculate_match_ratings(_match(*scores), player1_rating, player2_rating)

    player1_delta = update.player1_new_rating - player1_rating
    player2_delta = update.player2_new_rating - player2_rating
    assert player1_delta == -player2_delta
    assert abs(player1_delta) == update.points_exchanged
    assert update.points_exchanged >= 0


def test_single_match_ignores_configured_bounds() -> None:
    calculator = USATTRatingCalculator(USATTParameters(rating_floor=1400, rating_ceiling=1450))
    update = calculator.calculate_match_ratings(_match(3, 0), 1400, 1500)

    assert update.player1_new_rating == 1420
    assert update.player2_new_rating == 1480
