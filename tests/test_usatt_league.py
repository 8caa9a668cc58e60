"""Unit tests for four-pass USATT league recomputation."""

from __future__ import annotations

import random
from collections import Counter
from datetime import datetime, timedelta

from domain.ratings.common import MatchResult, PlayerRating
from domain.ratings.usatt.calculator import (
    USATTParameters,
    USATTRatingCalculator,
    bootstrap_rating,
    pass2_adjustments,
    run_pass1,
    run_pass2,
    run_pass3,
    run_pass4,
    sort_matches,
)

BASE_TIME = datetime(2026, 3, 1, 18, 0, 0)


def _match(
    match_id: str,
    player1_id: str,
    player2_id: str,
    player1_score: int,
    player2_score: int,
    *,
    minutes: int = 0,
) -> MatchResult:
    return MatchResult(
        match_id=match_id,
        player1_id=player1_id,
        player2_id=player2_id,
        player1_score=player1_score,
        player2_score=player2_score,
        completed_at=BASE_TIME + timedelta(minutes=minutes),
    )


def _established(player_id: str, rating: int, matches_played: int = 5) -> PlayerRating:
    return PlayerRating(
        player_id=player_id,
        current_rating=rating,
        matches_played=matches_played,
        is_provisional=False,
    )


def _unrated(player_id: str, rating: int = 1200) -> PlayerRating:
    return PlayerRating(player_id=player_id, current_rating=rating, matches_played=0)


def _by_player(results):
    return {result.player_id: result for result in results}


def test_empty_corpus_and_empty_ratings_return_no_results() -> None:
    assert USATTRatingCalculator().calculate_league_ratings([], {}) == []


def test_players_without_matches_keep_their_rating() -> None:
    ratings = {"e": _established("e", 1600), "u": _unrated("u", 1350)}
    results = _by_player(USATTRatingCalculator().calculate_league_ratings([], ratings))

    assert results["e"].new_rating == 1600
    assert results["u"].new_rating == 1350
    assert all(result.rating_change == 0 for result in results.values())
    assert all(result.matches_played == 0 for result in results.values())
    assert all(result.is_provisional for result in results.values())


def test_two_established_players_single_match() -> None:
    ratings = {
        "p1": _established("p1", 1500, matches_played=2),
        "p2": _established("p2", 1400, matches_played=2),
    }
    matches = [_match("m1", "p1", "p2", 11, 9)]

    pass1 = run_pass1(matches, ratings)
    assert pass1 == {"p1": 1504, "p2": 1396}

    results = _by_player(USATTRatingCalculator().calculate_league_ratings(matches, ratings))
    # pass 3: 1508/1392, p2 clamped back to 1400; pass 4: 1512/1396
    assert results["p1"].new_rating == 1512
    assert results["p2"].new_rating == 1396
    assert results["p1"].rating_change == 12
    assert results["p2"].rating_change == -4
    assert results["p1"].matches_played == 1
    assert results["p1"].is_provisional is True


def test_pass1_skips_matches_with_unrated_players() -> None:
    ratings = {"e1": _established("e1", 1500), "e2": _established("e2", 1500), "u": _unrated("u")}
    matches = [
        _match("m1", "u", "e1", 3, 0, minutes=1),
        _match("m2", "e1", "e2", 3, 1, minutes=2),
    ]

    assert run_pass1(matches, ratings) == {"e1": 1508, "e2": 1492}


def test_unrated_player_with_only_wins_gets_best_win_plus_bonus() -> None:
    ratings = {"e": _established("e", 1600), "u": _unrated("u")}
    matches = [_match("m1", "u", "e", 3, 1)]

    pass1 = run_pass1(matches, ratings)
    pass2 = run_pass2(matches, ratings, pass1, USATTParameters())

    assert pass2 == {"e": 1600, "u": 1610}


def test_unrated_player_with_mixed_record_gets_midpoint() -> None:
    ratings = {
        "e1": _established("e1", 1700),
        "e2": _established("e2", 1300),
        "u": _unrated("u"),
    }
    matches = [
        _match("m1", "u", "e1", 3, 2, minutes=1),
        _match("m2", "e2", "u", 3, 0, minutes=2),
    ]

    pass1 = run_pass1(matches, ratings)
    pass2 = run_pass2(matches, ratings, pass1, USATTParameters())

    assert pass2["u"] == 1500


def test_bootstrap_rules() -> None:
    params = USATTParameters()

    assert bootstrap_rating([], [], params) == 1200
    assert bootstrap_rating([1500, 1400], [], params) == 1510
    assert bootstrap_rating([], [1300, 1400], params) == 1290
    assert bootstrap_rating([], [105], params) == 100
    assert bootstrap_rating([1301], [1600, 1700], params) == 1450


def test_unrated_opponents_do_not_resolve_in_pass2() -> None:
    ratings = {"u1": _unrated("u1"), "u2": _unrated("u2")}
    matches = [_match("m1", "u1", "u2", 3, 0)]

    pass2 = run_pass2(matches, ratings, run_pass1(matches, ratings), USATTParameters())

    assert pass2 == {"u1": 1200, "u2": 1200}


def test_pass2_adjustment_credits_large_gains_only() -> None:
    ratings = {"e": _established("e", 1500)}
    params = USATTParameters()

    assert pass2_adjustments(ratings, {"e": 1549}, params) == {"e": 1500}
    assert pass2_adjustments(ratings, {"e": 1550}, params) == {"e": 1550}
    assert pass2_adjustments(ratings, {"e": 1574}, params) == {"e": 1574}
    assert pass2_adjustments(ratings, {"e": 1620}, params) == {"e": 1620}
    assert pass2_adjustments(ratings, {"e": 1400}, params) == {"e": 1500}


def test_pass2_carries_pass1_rating_for_established_players() -> None:
    ratings = {"e1": _established("e1", 1500), "e2": _established("e2", 1500)}
    pass1 = {"e1": 1492, "e2": 1508}

    assert run_pass2([], ratings, pass1, USATTParameters()) == pass1


def test_pass3_clamps_established_players_to_starting_rating() -> None:
    ratings = {"e1": _established("e1", 1500), "e2": _established("e2", 1500)}
    matches = [_match("m1", "e1", "e2", 1, 3)]
    params = USATTParameters()

    pass1 = run_pass1(matches, ratings)
    pass2 = run_pass2(matches, ratings, pass1, params)
    pass3 = run_pass3(matches, ratings, pass2, params)
    pass4 = run_pass4(matches, pass3, params)

    assert pass3 == {"e1": 1500, "e2": 1515}
    # the floor only holds at the pass 3 checkpoint
    assert pass4 == {"e1": 1493, "e2": 1522}


def test_pass3_floor_holds_for_random_corpora() -> None:
    rng = random.Random(7)
    params = USATTParameters()
    player_ids = [f"p{index}" for index in range(8)]

    for _ in range(25):
        ratings = {
            player_id: (
                _established(player_id, rng.randint(800, 2200))
                if rng.random() < 0.6
                else _unrated(player_id)
            )
            for player_id in player_ids
        }
        matches = []
        for index in range(30):
            player1_id, player2_id = rng.sample(player_ids, 2)
            matches.append(
                _match(f"m{index}", player1_id, player2_id, rng.randint(0, 3), rng.randint(0, 3), minutes=index)
            )

        pass1 = run_pass1(matches, ratings)
        pass2 = run_pass2(matches, ratings, pass1, params)
        pass3 = run_pass3(matches, ratings, pass2, params)

        for player_id, rating in ratings.items():
            if rating.is_established:
                assert pass3[player_id] >= rating.current_rating


def test_new_player_against_established_full_run() -> None:
    ratings = {"e": _established("e", 1600), "u": _unrated("u")}
    matches = [_match("m1", "u", "e", 3, 1)]

    results = _by_player(USATTRatingCalculator().calculate_league_ratings(matches, ratings))

    # pass 2: u=1610; pass 3: 1618/1592, e clamped to 1600; pass 4: 1625/1593
    assert results["u"].old_rating == 1200
    assert results["u"].new_rating == 1625
    assert results["u"].rating_change == 425
    assert results["e"].new_rating == 1593


def test_configured_bounds_apply_to_final_rating() -> None:
    ratings = {"e": _established("e", 1600), "u": _unrated("u")}
    matches = [_match("m1", "u", "e", 3, 1)]
    calculator = USATTRatingCalculator(USATTParameters(rating_floor=1595, rating_ceiling=1610))

    results = _by_player(calculator.calculate_league_ratings(matches, ratings))

    assert results["u"].new_rating == 1610
    assert results["e"].new_rating == 1595


def test_players_missing_from_ratings_start_at_default_and_get_no_result() -> None:
    ratings = {"e": _established("e", 1200)}
    matches = [_match("m1", "ghost", "e", 3, 0)]

    results = USATTRatingCalculator().calculate_league_ratings(matches, ratings)

    assert [result.player_id for result in results] == ["e"]
    # ghost enters pass 3 at 1200; e is clamped back to 1200 then loses again
    assert results[0].new_rating == 1192


def test_matches_played_and_provisional_flag_follow_the_corpus() -> None:
    rng = random.Random(11)
    player_ids = ["a", "b", "c", "d", "e"]
    ratings = {player_id: _unrated(player_id) for player_id in player_ids}
    ratings["f"] = _established("f", 1500)
    matches = []
    for index in range(17):
        player1_id, player2_id = rng.sample(player_ids, 2)
        matches.append(_match(f"m{index}", player1_id, player2_id, 3, rng.randint(0, 2), minutes=index))

    expected_counts = Counter()
    for match in matches:
        expected_counts[match.player1_id] += 1
        expected_counts[match.player2_id] += 1

    results = USATTRatingCalculator().calculate_league_ratings(matches, ratings)

    assert {result.player_id for result in results} == set(ratings)
    for result in results:
        assert result.matches_played == expected_counts.get(result.player_id, 0)
        assert result.is_provisional == (result.matches_played < 2)
        assert result.rating_change == result.new_rating - result.old_rating


def test_provisional_threshold_is_configurable() -> None:
    ratings = {"a": _unrated("a"), "b": _unrated("b")}
    matches = [_match("m1", "a", "b", 3, 0, minutes=1), _match("m2", "b", "a", 3, 0, minutes=2)]
    calculator = USATTRatingCalculator(USATTParameters(provisional_threshold=3))

    results = calculator.calculate_league_ratings(matches, ratings)

    assert all(result.matches_played == 2 for result in results)
    assert all(result.is_provisional for result in results)


def test_recalculation_is_deterministic_and_order_independent_of_input() -> None:
    ratings = {
        "a": _established("a", 1450),
        "b": _established("b", 1610),
        "c": _unrated("c"),
        "d": _unrated("d"),
    }
    matches = [
        _match("m1", "a", "b", 3, 2, minutes=1),
        _match("m2", "c", "a", 1, 3, minutes=2),
        _match("m3", "d", "b", 3, 1, minutes=3),
        _match("m4", "c", "d", 3, 0, minutes=4),
        _match("m5", "b", "c", 3, 3, minutes=5),
    ]
    calculator = USATTRatingCalculator()

    first = calculator.calculate_league_ratings(matches, ratings)
    second = calculator.calculate_league_ratings(matches, ratings)
    shuffled = calculator.calculate_league_ratings(list(reversed(matches)), ratings)

    assert first == second
    assert first == shuffled


def test_inputs_are_not_mutated() -> None:
    ratings = {"e": _established("e", 1600), "u": _unrated("u")}
    matches = [_match("m2", "u", "e", 3, 1, minutes=2), _match("m1", "e", "u", 3, 1, minutes=1)]
    ratings_before = dict(ratings)
    matches_before = list(matches)

    USATTRatingCalculator().calculate_league_ratings(matches, ratings)

    assert ratings == ratings_before
    assert matches == matches_before


def test_equal_timestamps_keep_input_order() -> None:
    first = _match("first", "a", "b", 3, 0)
    second = _match("second", "b", "a", 3, 0)
    later = _match("later", "a", "b", 3, 0, minutes=5)

    assert sort_matches([later, second, first]) == [second, first, later]


def test_equal_scores_do_not_raise_in_league_run() -> None:
    ratings = {"a": _unrated("a"), "e": _established("e", 1500)}
    matches = [_match("m1", "a", "e", 2, 2)]

    results = _by_player(USATTRatingCalculator().calculate_league_ratings(matches, ratings))

    # a is scored as losing to e: pass 2 gives 1490
    assert results["a"].matches_played == 1
    assert results["a"].new_rating < 1500


def test_equal_scores_credit_unrated_player2_as_winner_in_pass2() -> None:
    ratings = {"e": _established("e", 1500), "u": _unrated("u")}
    matches = [_match("m1", "e", "u", 2, 2)]

    pass2 = run_pass2(matches, ratings, run_pass1(matches, ratings), USATTParameters())

    # same branch as the exchange: player2 takes the tie
    assert pass2["u"] == 1510
