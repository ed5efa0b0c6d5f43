"""
Unit tests for the configuration system.

Tests cover:
- Default config creation and validation
- JSON load/save roundtrip
- Partial config loading (missing fields use defaults)
- Invalid value detection
- Unknown key warnings
- Dot-notation parameter overrides
- The shipped default_config.json
"""

import json
import warnings
from pathlib import Path

import pytest

from snakearena.core.config import (
    ArenaConfig,
    apply_param_override,
    get_default_config,
    load_config,
    save_config,
)
from snakearena.core.errors import ConfigError


REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "default_config.json"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def default_config() -> ArenaConfig:
    """Fresh default config."""
    return get_default_config()


@pytest.fixture
def tmp_config_path(tmp_path) -> Path:
    return tmp_path / "test_config.json"


@pytest.fixture
def minimal_config_path(tmp_path) -> Path:
    """Config file with only a few overrides."""
    path = tmp_path / "minimal.json"
    path.write_text(json.dumps({
        "game": {"max_frames": 500},
        "benchmark": {"num_games": 3},
    }))
    return path


@pytest.fixture
def invalid_config_path(tmp_path) -> Path:
    path = tmp_path / "invalid.json"
    path.write_text(json.dumps({
        "game": {"grid_size": 15, "max_frames": 0},
        "benchmark": {"num_games": 0},
    }))
    return path


# ---------------------------------------------------------------------------
# Default Config Tests
# ---------------------------------------------------------------------------

class TestDefaultConfig:
    """Tests for default configuration creation."""

    def test_default_config_valid(self, default_config: ArenaConfig):
        errors = default_config.validate()
        assert errors == [], f"Default config has errors: {errors}"

    def test_default_game_values(self, default_config: ArenaConfig):
        assert default_config.game.grid_size == 16
        assert default_config.game.max_frames == 25000
        assert default_config.game.food_score == 10
        assert default_config.game.tick_budget_ms == 100.0
        assert default_config.game.spawn_attempts == 1000
        assert default_config.game.validate_directions is False

    def test_default_benchmark_values(self, default_config: ArenaConfig):
        assert default_config.benchmark.num_games == 10
        assert default_config.benchmark.start_seed == 1
        assert default_config.pathfinding.max_nodes == 500

    def test_default_playback_values(self, default_config: ArenaConfig):
        assert default_config.playback.visual_interval_ms == 33
        assert default_config.playback.target_seconds == 30.0
        assert default_config.playback.enforce_budget is False

    def test_shipped_config_loads(self):
        config = load_config(REPO_CONFIG)
        assert config.game.max_frames == 25000
        assert config.benchmark.parallel_workers == 1


# ---------------------------------------------------------------------------
# JSON Load / Save Tests
# ---------------------------------------------------------------------------

class TestConfigIO:
    """Tests for config file I/O."""

    def test_save_and_load_roundtrip(self, default_config: ArenaConfig, tmp_config_path: Path):
        default_config.game.food_score = 7
        default_config.output.save_replays = True
        save_config(default_config, tmp_config_path)
        loaded = load_config(tmp_config_path)
        assert loaded == default_config

    def test_save_creates_parent_dirs(self, default_config: ArenaConfig, tmp_path: Path):
        deep_path = tmp_path / "a" / "b" / "config.json"
        save_config(default_config, deep_path)
        assert deep_path.exists()

    def test_load_partial_config_uses_defaults(self, minimal_config_path: Path):
        config = load_config(minimal_config_path)
        assert config.game.max_frames == 500
        assert config.benchmark.num_games == 3
        # Not in file
        assert config.game.grid_size == 16
        assert config.playback.interval_ms == 150

    def test_load_nonexistent_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent_path/config.json")

    def test_load_malformed_json_raises(self, tmp_path: Path):
        bad_path = tmp_path / "bad.json"
        bad_path.write_text("{invalid json content!!}")
        with pytest.raises(json.JSONDecodeError):
            load_config(bad_path)

    def test_load_invalid_values_raises(self, invalid_config_path: Path):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(invalid_config_path)

    def test_config_error_is_value_error(self, invalid_config_path: Path):
        with pytest.raises(ValueError):
            load_config(invalid_config_path)

    def test_copy_is_independent(self, default_config: ArenaConfig):
        copy = default_config.copy()
        copy.game.max_frames = 5
        assert default_config.game.max_frames == 25000


# ---------------------------------------------------------------------------
# Unknown Keys
# ---------------------------------------------------------------------------

class TestUnknownKeys:
    def test_unknown_top_level_key_warns(self, tmp_path: Path):
        path = tmp_path / "extra.json"
        path.write_text(json.dumps({"game": {"max_frames": 100}, "unknown_section": {"foo": "bar"}}))
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            config = load_config(path)
            assert any("Unknown config key" in str(warning.message) for warning in w)
        assert config.game.max_frames == 100

    def test_unknown_nested_key_warns(self, tmp_path: Path):
        path = tmp_path / "extra_nested.json"
        path.write_text(json.dumps({"game": {"max_frames": 100, "walls": True}}))
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            load_config(path)
            assert any("walls" in str(warning.message) for warning in w)


# ---------------------------------------------------------------------------
# Validation Tests
# ---------------------------------------------------------------------------

class TestValidation:
    """Tests for config validation rules."""

    @pytest.mark.parametrize("dotted_key, value, fragment", [
        ("game.grid_size", 2, "game.grid_size"),
        ("game.grid_size", 15, "must be even"),
        ("game.grid_size", 128, "game.grid_size"),
        ("game.max_frames", 0, "game.max_frames"),
        ("game.food_score", -1, "game.food_score"),
        ("game.tick_budget_ms", 0, "game.tick_budget_ms"),
        ("game.spawn_attempts", 0, "game.spawn_attempts"),
        ("pathfinding.max_nodes", 0, "pathfinding.max_nodes"),
        ("benchmark.num_games", 0, "benchmark.num_games"),
        ("benchmark.num_games", 10_001, "benchmark.num_games"),
        ("benchmark.parallel_workers", 0, "parallel_workers"),
        ("playback.interval_ms", 0, "playback.interval_ms"),
        ("playback.ticks_per_step", 0, "ticks_per_step"),
        ("playback.target_seconds", 0, "target_seconds"),
        ("output.output_dir", "", "output_dir"),
        ("output.replay_every_n_ticks", 0, "replay_every_n_ticks"),
        ("logging.level", "LOUD", "logging.level"),
    ])
    def test_invalid_value(self, dotted_key, value, fragment):
        config = ArenaConfig()
        apply_param_override(config, dotted_key, value)
        errors = config.validate()
        assert any(fragment in e for e in errors), errors

    def test_lowercase_log_level_ok(self):
        config = ArenaConfig()
        config.logging.level = "debug"
        assert config.validate() == []


# ---------------------------------------------------------------------------
# Parameter Override Tests
# ---------------------------------------------------------------------------

class TestParamOverride:
    def test_override_nested(self, default_config: ArenaConfig):
        apply_param_override(default_config, "game.max_frames", 500)
        assert default_config.game.max_frames == 500

    def test_override_unknown_section(self, default_config: ArenaConfig):
        with pytest.raises(KeyError):
            apply_param_override(default_config, "arena.max_frames", 500)

    def test_override_unknown_field(self, default_config: ArenaConfig):
        with pytest.raises(KeyError):
            apply_param_override(default_config, "game.walls", True)
