"""USATT point exchange rating modules."""

from domain.ratings.usatt.calculator import (
    USATTParameters,
    USATTRatingCalculator,
    exchange,
    run_pass1,
    run_pass2,
    run_pass3,
    run_pass4,
)
from domain.ratings.usatt.config import USATTSystemConfig, load_usatt_system_configs
from domain.ratings.usatt.exchange import POINT_EXCHANGE_TABLE, ExchangeRule, point_exchange

__all__ = [
    "ExchangeRule",
    "POINT_EXCHANGE_TABLE",
    "USATTParameters",
    "USATTRatingCalculator",
    "USATTSystemConfig",
    "exchange",
    "load_usatt_system_configs",
    "point_exchange",
    "run_pass1",
    "run_pass2",
    "run_pass3",
    "run_pass4",
]
