"""USATT-style point exchange rating logic.

League recomputation runs four chronological passes over the completed
matches. Each pass is a pure function that takes the previous pass's
ratings and returns a new mapping:

1. established players only, established-vs-established matches;
2. bootstrap a starting rating for every unrated player from the
   adjusted ratings of the established opponents they met;
3. full point exchange over every match, then clamp established players
   back up to their starting rating;
4. full point exchange again on top of pass 3, without clamping.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from math import floor

from domain.ratings.common import (
    DEFAULT_RATING,
    PROVISIONAL_THRESHOLD,
    MatchRatingUpdate,
    MatchResult,
    PlayerRating,
    RatingCalculationResult,
)
from domain.ratings.usatt.exchange import point_exchange


@dataclass(frozen=True)
class USATTParameters:
    initial_rating: int = DEFAULT_RATING
    provisional_threshold: int = PROVISIONAL_THRESHOLD
    pass2_credit_threshold: int = 50
    pass2_full_credit_threshold: int = 75
    bootstrap_win_bonus: int = 10
    bootstrap_loss_penalty: int = 10
    bootstrap_min_rating: int = 100
    rating_floor: int | None = None
    rating_ceiling: int | None = None


def exchange(player1_rating: int, player2_rating: int, player1_won: bool) -> MatchRatingUpdate:
    """Apply one zero-sum point exchange between two ratings."""
    rating_diff = player1_rating - player2_rating
    is_upset = (player1_won and rating_diff < 0) or (not player1_won and rating_diff > 0)
    points = point_exchange(rating_diff, is_upset)

    if player1_won:
        return MatchRatingUpdate(
            player1_new_rating=player1_rating + points,
            player2_new_rating=player2_rating - points,
            points_exchanged=points,
        )
    return MatchRatingUpdate(
        player1_new_rating=player1_rating - points,
        player2_new_rating=player2_rating + points,
        points_exchanged=points,
    )


def sort_matches(matches: Iterable[MatchResult]) -> list[MatchResult]:
    """Order matches by completion time; ties keep their input order."""
    return sorted(matches, key=lambda match: match.completed_at)


def count_matches(matches: Iterable[MatchResult]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for match in matches:
        counts[match.player1_id] += 1
        counts[match.player2_id] += 1
    return counts


def _sweep(
    matches: Sequence[MatchResult],
    starting_ratings: Mapping[str, int],
    *,
    default_rating: int,
) -> dict[str, int]:
    ratings = dict(starting_ratings)
    for match in matches:
        update = exchange(
            ratings.get(match.player1_id, default_rating),
            ratings.get(match.player2_id, default_rating),
            match.player1_won,
        )
        ratings[match.player1_id] = update.player1_new_rating
        ratings[match.player2_id] = update.player2_new_rating
    return ratings


def run_pass1(
    matches: Sequence[MatchResult],
    player_ratings: Mapping[str, PlayerRating],
) -> dict[str, int]:
    """Exchange points between established players only."""
    ratings = {
        player_id: rating.current_rating
        for player_id, rating in player_ratings.items()
        if rating.is_established
    }
    for match in matches:
        if match.player1_id not in ratings or match.player2_id not in ratings:
            continue
        update = exchange(ratings[match.player1_id], ratings[match.player2_id], match.player1_won)
        ratings[match.player1_id] = update.player1_new_rating
        ratings[match.player2_id] = update.player2_new_rating
    return ratings


def pass2_adjustments(
    player_ratings: Mapping[str, PlayerRating],
    pass1_ratings: Mapping[str, int],
    params: USATTParameters,
) -> dict[str, int]:
    """Opponent strength of each established player as seen by unrated players."""
    adjustments: dict[str, int] = {}
    for player_id, rating in player_ratings.items():
        if not rating.is_established:
            continue
        pass1_rating = pass1_ratings.get(player_id, rating.current_rating)
        points_gained = pass1_rating - rating.current_rating

        if points_gained < params.pass2_credit_threshold:
            adjustments[player_id] = rating.current_rating
        elif points_gained < params.pass2_full_credit_threshold:
            adjustments[player_id] = pass1_rating
        else:
            # Large gains get the same credit as moderate ones for now.
            adjustments[player_id] = pass1_rating
    return adjustments


def bootstrap_rating(
    wins_against: Sequence[int],
    losses_against: Sequence[int],
    params: USATTParameters,
) -> int:
    """Starting rating for an unrated player from resolved opponent ratings."""
    if wins_against and losses_against:
        return floor((max(wins_against) + min(losses_against)) / 2)
    if wins_against:
        return max(wins_against) + params.bootstrap_win_bonus
    if losses_against:
        return max(min(losses_against) - params.bootstrap_loss_penalty, params.bootstrap_min_rating)
    return params.initial_rating


def run_pass2(
    matches: Sequence[MatchResult],
    player_ratings: Mapping[str, PlayerRating],
    pass1_ratings: Mapping[str, int],
    params: USATTParameters,
) -> dict[str, int]:
    """Carry established players forward and bootstrap unrated ones."""
    adjustments = pass2_adjustments(player_ratings, pass1_ratings, params)
    ratings: dict[str, int] = {
        player_id: pass1_ratings.get(player_id, rating.current_rating)
        for player_id, rating in player_ratings.items()
        if rating.is_established
    }

    matches_by_player: dict[str, list[MatchResult]] = defaultdict(list)
    for match in matches:
        matches_by_player[match.player1_id].append(match)
        if match.player2_id != match.player1_id:
            matches_by_player[match.player2_id].append(match)

    for player_id, rating in player_ratings.items():
        if rating.is_established:
            continue

        wins_against: list[int] = []
        losses_against: list[int] = []
        for match in matches_by_player.get(player_id, ()):
            is_player1 = match.player1_id == player_id
            opponent_id = match.player2_id if is_player1 else match.player1_id
            opponent_rating = adjustments.get(opponent_id)
            if opponent_rating is None:
                continue

            won = match.player1_won if is_player1 else not match.player1_won
            if won:
                wins_against.append(opponent_rating)
            else:
                losses_against.append(opponent_rating)

        ratings[player_id] = bootstrap_rating(wins_against, losses_against, params)

    return ratings


def run_pass3(
    matches: Sequence[MatchResult],
    player_ratings: Mapping[str, PlayerRating],
    pass2_ratings: Mapping[str, int],
    params: USATTParameters,
) -> dict[str, int]:
    """Full exchange from pass 2; established players never end below their start."""
    ratings = _sweep(matches, pass2_ratings, default_rating=params.initial_rating)
    for player_id, rating in player_ratings.items():
        if not rating.is_established:
            continue
        if ratings.get(player_id, rating.current_rating) < rating.current_rating:
            ratings[player_id] = rating.current_rating
    return ratings


def run_pass4(
    matches: Sequence[MatchResult],
    pass3_ratings: Mapping[str, int],
    params: USATTParameters,
) -> dict[str, int]:
    """Final exchange on top of the clamped pass 3 ratings."""
    return _sweep(matches, pass3_ratings, default_rating=params.initial_rating)


class USATTRatingCalculator:
    """Stateless USATT point exchange calculator."""

    def __init__(self, params: USATTParameters | None = None) -> None:
        self.params = params or USATTParameters()

    def calculate_match_ratings(
        self,
        match: MatchResult,
        player1_current_rating: int,
        player2_current_rating: int,
    ) -> MatchRatingUpdate:
        """Exchange points for one match between two known ratings, without bounds."""
        return exchange(player1_current_rating, player2_current_rating, match.player1_won)

    def calculate_league_ratings(
        self,
        matches: Iterable[MatchResult],
        player_ratings: Mapping[str, PlayerRating],
    ) -> list[RatingCalculationResult]:
        """Recompute every input player's rating from the full match history."""
        sorted_matches = sort_matches(matches)

        pass1_ratings = run_pass1(sorted_matches, player_ratings)
        pass2_ratings = run_pass2(sorted_matches, player_ratings, pass1_ratings, self.params)
        pass3_ratings = run_pass3(sorted_matches, player_ratings, pass2_ratings, self.params)
        final_ratings = run_pass4(sorted_matches, pass3_ratings, self.params)

        match_counts = count_matches(sorted_matches)
        results: list[RatingCalculationResult] = []
        for player_id, rating in player_ratings.items():
            old_rating = rating.current_rating
            total_matches = match_counts.get(player_id, 0)
            if total_matches > 0:
                new_rating = self._bound(final_ratings.get(player_id, old_rating))
            else:
                new_rating = old_rating

            results.append(
                RatingCalculationResult(
                    player_id=player_id,
                    old_rating=old_rating,
                    new_rating=new_rating,
                    rating_change=new_rating - old_rating,
                    matches_played=total_matches,
                    is_provisional=total_matches < self.params.provisional_threshold,
                )
            )
        return results

    def _bound(self, rating: int) -> int:
        if self.params.rating_floor is not None and rating < self.params.rating_floor:
            return self.params.rating_floor
        if self.params.rating_ceiling is not None and rating > self.params.rating_ceiling:
            return self.params.rating_ceiling
        return rating
