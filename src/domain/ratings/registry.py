"""Registry of available rating system implementations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from domain.ratings.config_base import BaseSystemConfig, select_config
from domain.ratings.protocol import RatingCalculator
from domain.ratings.usatt.calculator import USATTRatingCalculator
from domain.ratings.usatt.config import load_usatt_system_configs

ROOT_DIR = Path(__file__).resolve().parents[3]

LoadConfigsFn = Callable[[Path], list[Any]]
CreateCalculatorFn = Callable[[Any], RatingCalculator]


@dataclass(frozen=True)
class RatingSystemDescriptor:
    """Everything required to build one rating system variant."""

    algorithm: str
    label: str
    config_dir: Path
    load_configs: LoadConfigsFn
    create_calculator: CreateCalculatorFn

    def load_calculator(
        self,
        config_dir: Path | None = None,
        config_name: str | None = None,
    ) -> tuple[BaseSystemConfig, RatingCalculator]:
        """Load configs and build the calculator for the selected one."""
        configs = self.load_configs(config_dir or self.config_dir)
        config = select_config(configs, config_name)
        return config, self.create_calculator(config)


_REGISTRY: dict[str, RatingSystemDescriptor] = {}


def register(descriptor: RatingSystemDescriptor) -> None:
    """Register one rating-system descriptor."""
    key = descriptor.algorithm.lower()
    if key in _REGISTRY:
        raise ValueError(f"Duplicate rating descriptor registration for key={key}")
    _REGISTRY[key] = descriptor


def get_all() -> list[RatingSystemDescriptor]:
    """Return all registered descriptors in deterministic order."""
    return [_REGISTRY[key] for key in sorted(_REGISTRY)]


def get(algorithm: str) -> RatingSystemDescriptor:
    """Get one registered descriptor by algorithm key."""
    try:
        return _REGISTRY[algorithm.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(
            f"No rating descriptor registered for {algorithm}. Available: {available}"
        ) from exc


def _register_defaults() -> None:
    if _REGISTRY:
        return
    register(
        RatingSystemDescriptor(
            algorithm="usatt",
            label="USATT (USA Table Tennis)",
            config_dir=ROOT_DIR / "configs" / "ratings" / "usatt",
            load_configs=load_usatt_system_configs,
            create_calculator=lambda config: USATTRatingCalculator(config.parameters),
        )
    )


_register_defaults()

__all__ = [
    "RatingSystemDescriptor",
    "get",
    "get_all",
    "register",
]
