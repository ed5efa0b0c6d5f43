"""
Configuration system for Snake Arena.

Provides a hierarchical dataclass-based config with JSON serialization,
validation, and sensible defaults for game rules, pathfinding limits,
benchmarking, playback pacing, output and logging.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any

from snakearena.core.errors import ConfigError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class GameConfig:
    """Grid and game rule settings."""
    grid_size: int = 16
    max_frames: int = 25000
    food_score: int = 10
    tick_budget_ms: float = 100.0      # wall-clock budget per algorithm call
    spawn_attempts: int = 1000         # random food draws before scanning
    validate_directions: bool = False  # treat non-unit directions as "no valid move"

    def validate(self) -> list[str]:
        errors = []
        if self.grid_size < 4:
            errors.append(f"game.grid_size must be >= 4, got {self.grid_size}")
        if self.grid_size % 2 != 0:
            errors.append(f"game.grid_size must be even, got {self.grid_size}")
        if self.grid_size > 64:
            errors.append(f"game.grid_size must be <= 64, got {self.grid_size}")
        if self.max_frames < 1:
            errors.append(f"game.max_frames must be >= 1, got {self.max_frames}")
        if self.food_score < 0:
            errors.append(f"game.food_score must be >= 0, got {self.food_score}")
        if self.tick_budget_ms <= 0:
            errors.append(f"game.tick_budget_ms must be > 0, got {self.tick_budget_ms}")
        if self.spawn_attempts < 1:
            errors.append(f"game.spawn_attempts must be >= 1, got {self.spawn_attempts}")
        return errors


@dataclass
class PathfindingConfig:
    """Limits for the BFS helper exposed to algorithms."""
    max_nodes: int = 500

    def validate(self) -> list[str]:
        errors = []
        if self.max_nodes < 1:
            errors.append(f"pathfinding.max_nodes must be >= 1, got {self.max_nodes}")
        return errors


@dataclass
class BenchmarkConfig:
    """Benchmark batch settings."""
    num_games: int = 10
    start_seed: int = 1
    parallel_workers: int = 1

    def validate(self) -> list[str]:
        errors = []
        if self.num_games < 1:
            errors.append(f"benchmark.num_games must be >= 1, got {self.num_games}")
        if self.num_games > 10_000:
            errors.append(f"benchmark.num_games must be <= 10000, got {self.num_games}")
        if self.parallel_workers < 1:
            errors.append(f"benchmark.parallel_workers must be >= 1, got {self.parallel_workers}")
        return errors


@dataclass
class PlaybackConfig:
    """Visual playback pacing."""
    interval_ms: int = 150             # timer period for step-by-step playback
    ticks_per_step: int = 1            # speed multiplier
    visual_interval_ms: int = 33       # ~30fps snapshot publication in fast-forward
    target_seconds: float = 30.0       # wall-clock budget for a fast-forward batch
    enforce_budget: bool = False       # end a game early once its budget is spent

    def validate(self) -> list[str]:
        errors = []
        if self.interval_ms < 1:
            errors.append(f"playback.interval_ms must be >= 1, got {self.interval_ms}")
        if self.ticks_per_step < 1:
            errors.append(f"playback.ticks_per_step must be >= 1, got {self.ticks_per_step}")
        if self.visual_interval_ms < 0:
            errors.append(f"playback.visual_interval_ms must be >= 0, got {self.visual_interval_ms}")
        if self.target_seconds <= 0:
            errors.append(f"playback.target_seconds must be > 0, got {self.target_seconds}")
        return errors


@dataclass
class OutputConfig:
    """Run output settings."""
    output_dir: str = "runs"
    save_replays: bool = False
    replay_every_n_ticks: int = 1

    def validate(self) -> list[str]:
        errors = []
        if not self.output_dir:
            errors.append("output.output_dir must not be empty")
        if self.replay_every_n_ticks < 1:
            errors.append(f"output.replay_every_n_ticks must be >= 1, got {self.replay_every_n_ticks}")
        return errors


@dataclass
class LoggingConfig:
    """Log verbosity."""
    level: str = "INFO"

    def validate(self) -> list[str]:
        errors = []
        if self.level.upper() not in LOG_LEVELS:
            errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got '{self.level}'")
        return errors


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class ArenaConfig:
    """
    Top-level Snake Arena configuration.

    All parameters are adjustable. Nested dataclasses group related settings.
    Load from JSON with `load_config()`, validate with `validate()`.
    """
    game: GameConfig = field(default_factory=GameConfig)
    pathfinding: PathfindingConfig = field(default_factory=PathfindingConfig)
    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> list[str]:
        """Validate all config sections. Returns list of error messages (empty = valid)."""
        errors = []
        for f in fields(self):
            sub = getattr(self, f.name)
            if hasattr(sub, "validate"):
                errors.extend(sub.validate())
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dict for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArenaConfig:
        """Create ArenaConfig from nested dict, merging with defaults."""
        config = cls()
        _merge_into_dataclass(config, data)
        return config

    def copy(self) -> ArenaConfig:
        """Deep copy of this config."""
        return deepcopy(self)


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def _merge_into_dataclass(target: Any, source: dict[str, Any]) -> None:
    """
    Recursively merge a dict into a dataclass instance.
    Unknown keys emit a warning but don't raise.
    """
    if not isinstance(source, dict):
        return

    known_fields = {f.name for f in fields(target)}
    for key, value in source.items():
        if key not in known_fields:
            warnings.warn(
                f"Unknown config key '{key}' in section {type(target).__name__} - ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)

        if hasattr(current, "__dataclass_fields__") and isinstance(value, dict):
            _merge_into_dataclass(current, value)
        else:
            setattr(target, key, value)


def load_config(path: str | Path) -> ArenaConfig:
    """
    Load config from a JSON file. Missing fields use defaults.

    Args:
        path: Path to JSON config file.

    Returns:
        Validated ArenaConfig instance.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If JSON is malformed.
        ConfigError: If config values are invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    config = ArenaConfig.from_dict(data)

    errors = config.validate()
    if errors:
        msg = "Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigError(msg)

    return config


def save_config(config: ArenaConfig, path: str | Path) -> None:
    """Save config to JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def get_default_config() -> ArenaConfig:
    """Return a fresh default config (all defaults, validated)."""
    config = ArenaConfig()
    errors = config.validate()
    assert not errors, f"Default config is invalid: {errors}"
    return config


def apply_param_override(config: ArenaConfig, dotted_key: str, value: Any) -> None:
    """
    Apply a single parameter override using dot notation.

    Example:
        apply_param_override(config, "game.max_frames", 500)
        apply_param_override(config, "benchmark.num_games", 25)

    Args:
        config: ArenaConfig to modify in-place.
        dotted_key: Dot-separated path like "game.grid_size".
        value: New value to set.

    Raises:
        KeyError: If the path doesn't exist.
    """
    parts = dotted_key.split(".")
    obj = config
    for part in parts[:-1]:
        if not hasattr(obj, part):
            raise KeyError(f"Config path '{dotted_key}' invalid: '{part}' not found in {type(obj).__name__}")
        obj = getattr(obj, part)

    final_key = parts[-1]
    if not hasattr(obj, final_key):
        raise KeyError(f"Config path '{dotted_key}' invalid: '{final_key}' not found in {type(obj).__name__}")

    setattr(obj, final_key, value)
