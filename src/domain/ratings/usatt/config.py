"""Load USATT system definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from domain.ratings.config_base import BaseSystemConfig, load_system_configs
from domain.ratings.usatt.calculator import USATTParameters


@dataclass(frozen=True)
class USATTSystemConfig(BaseSystemConfig):
    """Configuration for one USATT rating system."""

    parameters: USATTParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.parameters.initial_rating,
            "provisional_threshold": self.parameters.provisional_threshold,
            "pass2_credit_threshold": self.parameters.pass2_credit_threshold,
            "pass2_full_credit_threshold": self.parameters.pass2_full_credit_threshold,
            "bootstrap_win_bonus": self.parameters.bootstrap_win_bonus,
            "bootstrap_loss_penalty": self.parameters.bootstrap_loss_penalty,
            "bootstrap_min_rating": self.parameters.bootstrap_min_rating,
            "rating_floor": self.parameters.rating_floor,
            "rating_ceiling": self.parameters.rating_ceiling,
        }


def load_usatt_system_configs(config_dir: Path) -> list[USATTSystemConfig]:
    """Load and validate all USATT system TOML config files in a directory."""
    return load_system_configs(
        config_dir,
        _parse_usatt_system_config,
        duplicate_name_label="usatt",
    )


def _optional_int(raw: dict[str, Any], key: str) -> int | None:
    value = raw.get(key)
    return None if value is None else int(value)


def _parse_usatt_system_config(raw: dict[str, Any], file_path: Path) -> USATTSystemConfig:
    system_raw = raw.get("system", {})
    usatt_raw = raw.get("usatt", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    defaults = USATTParameters()
    parameters = USATTParameters(
        initial_rating=int(usatt_raw.get("initial_rating", defaults.initial_rating)),
        provisional_threshold=int(
            usatt_raw.get("provisional_threshold", defaults.provisional_threshold)
        ),
        pass2_credit_threshold=int(
            usatt_raw.get("pass2_credit_threshold", defaults.pass2_credit_threshold)
        ),
        pass2_full_credit_threshold=int(
            usatt_raw.get("pass2_full_credit_threshold", defaults.pass2_full_credit_threshold)
        ),
        bootstrap_win_bonus=int(usatt_raw.get("bootstrap_win_bonus", defaults.bootstrap_win_bonus)),
        bootstrap_loss_penalty=int(
            usatt_raw.get("bootstrap_loss_penalty", defaults.bootstrap_loss_penalty)
        ),
        bootstrap_min_rating=int(
            usatt_raw.get("bootstrap_min_rating", defaults.bootstrap_min_rating)
        ),
        rating_floor=_optional_int(usatt_raw, "rating_floor"),
        rating_ceiling=_optional_int(usatt_raw, "rating_ceiling"),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)

    return USATTSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
    )


def _validate_parameters(*, file_path: Path, parameters: USATTParameters) -> None:
    if parameters.initial_rating <= 0:
        raise ValueError(f"{file_path}: [usatt].initial_rating must be > 0")
    if parameters.provisional_threshold < 0:
        raise ValueError(f"{file_path}: [usatt].provisional_threshold must be >= 0")
    if parameters.pass2_credit_threshold < 0:
        raise ValueError(f"{file_path}: [usatt].pass2_credit_threshold must be >= 0")
    if parameters.pass2_full_credit_threshold < parameters.pass2_credit_threshold:
        raise ValueError(
            f"{file_path}: [usatt].pass2_full_credit_threshold must be >= pass2_credit_threshold"
        )
    if parameters.bootstrap_win_bonus < 0:
        raise ValueError(f"{file_path}: [usatt].bootstrap_win_bonus must be >= 0")
    if parameters.bootstrap_loss_penalty < 0:
        raise ValueError(f"{file_path}: [usatt].bootstrap_loss_penalty must be >= 0")
    if parameters.bootstrap_min_rating < 0:
        raise ValueError(f"{file_path}: [usatt].bootstrap_min_rating must be >= 0")
    if (
        parameters.rating_floor is not None
        and parameters.rating_ceiling is not None
        and parameters.rating_floor > parameters.rating_ceiling
    ):
        raise ValueError(f"{file_path}: [usatt].rating_floor must be <= rating_ceiling")
