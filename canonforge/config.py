"""Load engine settings from TOML (e.g. canonforge.toml).

Config file is looked up in order:
  1. Explicit path passed to load_config()
  2. Path in CANONFORGE_CONFIG env var (if set)
  3. canonforge.toml in the current working directory

Only the ``[canonforge]`` table is read. If no file is found, built-in
defaults are used.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DISCOVERY_LIMITS = {
    "npc": 7,
    "location": 4,
    "faction": 3,
    "item": 3,
    "creature": 3,
    "quest": 2,
    "encounter": 2,
    "other": 3,
}


class EngineConfig(BaseModel):
    """Tunable knobs for scanning and discovery filtering."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    context_radius: int = Field(default=50, ge=0, description="Characters of context kept on each side of a mention.")
    verb_window: int = Field(default=40, ge=0, description="Window around creation/ownership verbs searched by the verb pass.")
    min_single_word_length: int = Field(default=4, ge=1, description="Minimum length of single-word mentions.")
    min_discovery_length: int = Field(default=4, ge=1, description="Discoveries shorter than this are treated as generic.")
    discovery_limits: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_DISCOVERY_LIMITS))
    default_discovery_limit: int = Field(default=5, ge=0)
    max_discoveries: int = Field(default=15, ge=0, description="Total cap on discoveries returned by one scan.")
    log_level: str = Field(default="INFO", description="Level of the canonforge package logger, e.g. DEBUG.")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    def limit_for(self, entity_type: str) -> int:
        return self.discovery_limits.get(entity_type, self.default_discovery_limit)


def _default_config_paths(path: str | Path | None) -> list[Path]:
    """Return paths to check for the config file (first existing wins)."""
    paths: list[Path] = []
    if path is not None:
        paths.append(Path(path))
    if os.environ.get("CANONFORGE_CONFIG"):
        paths.append(Path(os.environ["CANONFORGE_CONFIG"]))
    paths.append(Path.cwd() / "canonforge.toml")
    return paths


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load EngineConfig from the first readable TOML file.

    Raises:
        pydantic.ValidationError: if the ``[canonforge]`` table holds unknown
            keys or values of the wrong type.
    """
    for candidate in _default_config_paths(path):
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            continue
        section = data.get("canonforge", {})
        return EngineConfig.model_validate(section)
    return EngineConfig()


DEFAULT_CONFIG = EngineConfig()
