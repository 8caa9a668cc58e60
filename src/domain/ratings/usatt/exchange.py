"""USATT point exchange table."""

from __future__ import annotations

from dataclasses import dataclass
from math import inf


@dataclass(frozen=True)
class ExchangeRule:
    """Points moved for one band of absolute rating difference."""

    min_diff: float
    max_diff: float
    expected: int
    upset: int

    def covers(self, abs_rating_diff: float) -> bool:
        return self.min_diff <= abs_rating_diff <= self.max_diff


POINT_EXCHANGE_TABLE: tuple[ExchangeRule, ...] = (
    ExchangeRule(min_diff=0, max_diff=12, expected=8, upset=8),
    ExchangeRule(min_diff=13, max_diff=37, expected=7, upset=10),
    ExchangeRule(min_diff=38, max_diff=62, expected=6, upset=13),
    ExchangeRule(min_diff=63, max_diff=87, expected=5, upset=16),
    ExchangeRule(min_diff=88, max_diff=112, expected=4, upset=20),
    ExchangeRule(min_diff=113, max_diff=137, expected=3, upset=25),
    ExchangeRule(min_diff=138, max_diff=162, expected=2, upset=30),
    ExchangeRule(min_diff=163, max_diff=187, expected=2, upset=35),
    ExchangeRule(min_diff=188, max_diff=212, expected=1, upset=40),
    ExchangeRule(min_diff=213, max_diff=237, expected=1, upset=45),
    ExchangeRule(min_diff=238, max_diff=inf, expected=0, upset=50),
)

FALLBACK_EXPECTED_POINTS = 0
FALLBACK_UPSET_POINTS = 50


def point_exchange(rating_diff: float, is_upset: bool) -> int:
    """Return the points the winner takes from the loser.

    ``rating_diff`` may be signed; only its magnitude selects the band.
    Fractional gaps are truncated to whole rating points first.
    """
    abs_rating_diff = int(abs(rating_diff))
    for rule in POINT_EXCHANGE_TABLE:
        if rule.covers(abs_rating_diff):
            return rule.upset if is_upset else rule.expected
    return FALLBACK_UPSET_POINTS if is_upset else FALLBACK_EXPECTED_POINTS


__all__ = [
    "ExchangeRule",
    "FALLBACK_EXPECTED_POINTS",
    "FALLBACK_UPSET_POINTS",
    "POINT_EXCHANGE_TABLE",
    "point_exchange",
]
