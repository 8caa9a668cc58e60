"""TOML loading shared by every rating-system config directory."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar
import tomllib


@dataclass(frozen=True)
class BaseSystemConfig:
    """Name, description and source file of one rating-system variant."""

    name: str
    description: str | None
    file_path: Path

    def as_config_json(self) -> dict[str, Any]:
        raise NotImplementedError


ConfigT = TypeVar("ConfigT", bound=BaseSystemConfig)


def _read_toml(file_path: Path) -> dict[str, Any]:
    with file_path.open("rb") as file:
        return tomllib.load(file)


def load_system_configs(
    config_dir: Path,
    parser: Callable[[dict[str, Any], Path], ConfigT],
    *,
    duplicate_name_label: str = "rating",
) -> list[ConfigT]:
    """Parse every ``*.toml`` in ``config_dir``, sorted by file name.

    System names must be unique within one directory.
    """
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    systems = [parser(_read_toml(file_path), file_path) for file_path in config_files]

    duplicates = sorted(name for name, count in Counter(s.name for s in systems).items() if count > 1)
    if duplicates:
        raise ValueError(
            f"Duplicate {duplicate_name_label} system names found in {config_dir}: {duplicates}"
        )
    return systems


def select_config(configs: list[ConfigT], config_name: str | None) -> ConfigT:
    """Pick one config by file name or system name; the first one when no name is given."""
    if config_name is None:
        return configs[0]

    for config in configs:
        if config_name in (config.file_path.name, config.name):
            return config

    available = ", ".join(config.file_path.name for config in configs)
    raise KeyError(f"No config named '{config_name}'. Available: {available}")


__all__ = ["BaseSystemConfig", "load_system_configs", "select_config"]
