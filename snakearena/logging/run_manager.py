"""
Run Manager for Snake Arena.

Manages output directories for benchmark runs:
  - Creates timestamped run directories under a base output path
  - Copies the config used for the run
  - Writes per-game CSV, summary, submission record and optional replays
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from snakearena.core.config import ArenaConfig, save_config
from snakearena.logging.csv_logger import CSVLogger
from snakearena.logging.snapshot import ReplayRecorder
from snakearena.simulation.benchmark import BenchmarkResult, GameResult
from snakearena.simulation.submission import Submission

logger = logging.getLogger(__name__)


class RunManager:
    """
    Manages a single benchmark run's output directory.

    Directory structure:
        {base_dir}/{run_name}/
            config.json          - copy of the arena config
            algorithm.py         - the benchmarked source, when known
            games.csv            - one row per game
            summary.json         - aggregated benchmark result
            submission.json      - leaderboard record, when named
            replays/             - recorded games (output.save_replays)
                game_0000.json
                ...

    Attributes:
        run_dir: Path to this run's output directory.
        csv_logger: CSVLogger for per-game rows.
        replay_recorder: ReplayRecorder, or None when replays are off.
    """

    def __init__(
        self,
        config: ArenaConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Initialize a run manager and create the output directory.

        Args:
            config: Arena configuration (will be saved as config.json).
            base_dir: Base output directory. None = config.output.output_dir.
            run_name: Name for this run's subdirectory. None = timestamp.
        """
        if base_dir is None:
            base_dir = config.output.output_dir

        if run_name is None:
            run_name = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.config = config
        self.run_dir = Path(base_dir) / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        config_path = self.run_dir / "config.json"
        save_config(config, config_path)
        self._config_path = config_path

        self.csv_logger = CSVLogger(self.run_dir / "games.csv")
        self.replay_recorder: Optional[ReplayRecorder] = None
        if config.output.save_replays:
            self.replay_recorder = ReplayRecorder(
                self.run_dir, every_n_ticks=config.output.replay_every_n_ticks,
            )

        logger.info("Run directory: %s", self.run_dir)

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def games_path(self) -> Path:
        """Path to the per-game CSV file."""
        return self.csv_logger.file_path

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"

    def save_source(self, source: str) -> Path:
        path = self.run_dir / "algorithm.py"
        path.write_text(source, encoding="utf-8")
        return path

    def attach_recorder(self, game, game_index: int) -> None:
        """Benchmark on_game_start hook: record the game if replays are on."""
        if self.replay_recorder is not None:
            self.replay_recorder.attach(game, game_index)

    def log_game(self, game: GameResult) -> None:
        """Log a finished game to CSV and flush its replay, if one was recorded."""
        self.csv_logger.log_game(game)
        if self.replay_recorder is not None and self.replay_recorder.is_recording(game.game_index):
            self.replay_recorder.save(game.game_index, {"score": game.score})

    def finalize(
        self,
        result: BenchmarkResult,
        submission: Optional[Submission] = None,
    ) -> None:
        """
        Write summary.json and, if given, submission.json.

        Args:
            result: The finished benchmark.
            submission: Optional leaderboard record.
        """
        _write_json(self.summary_path, result.summary())
        if submission is not None:
            _write_json(self.run_dir / "submission.json", submission.to_dict())

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """
        List all run directories under the base directory.

        Returns:
            Sorted list of run directory names.
        """
        base = Path(base_dir)
        if not base.exists():
            return []
        return sorted(
            d.name for d in base.iterdir()
            if d.is_dir() and (d / "config.json").exists()
        )

    @staticmethod
    def load_summary(run_dir: str | Path) -> Optional[dict[str, Any]]:
        """summary.json of a run, or None if the run has none."""
        path = Path(run_dir) / "summary.json"
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"


def _write_json(path: Path, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
