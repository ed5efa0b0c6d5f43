"""
Benchmark Runner for Snake Arena.

Plays a fixed number of headless games with consecutive seeds and
aggregates the scores. Game i always uses seed start_seed + i, so a
deterministic algorithm gets the same result on every run.

Supports parallel execution via concurrent.futures.ProcessPoolExecutor
when the algorithm is given as source text.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from snakearena.core.config import ArenaConfig, get_default_config
from snakearena.core.types import DecisionFunction, GameOverReason
from snakearena.sandbox.compiler import compile_algorithm
from snakearena.simulation.engine import SnakeGame

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes for benchmark results
# ---------------------------------------------------------------------------

@dataclass
class GameResult:
    """Outcome of one benchmark game."""
    game_index: int
    seed: int
    score: int = 0
    frames: int = 0
    length: int = 0
    reason: Optional[GameOverReason] = None
    reason_detail: Optional[str] = None

    @property
    def survived(self) -> bool:
        """True if the game lasted until the frame limit."""
        return self.reason is GameOverReason.FRAME_LIMIT

    def to_row(self) -> dict[str, Any]:
        """Flat dict for CSV export."""
        return {
            "game_index": self.game_index,
            "seed": self.seed,
            "score": self.score,
            "frames": self.frames,
            "length": self.length,
            "reason": self.reason.value if self.reason else "",
            "reason_detail": self.reason_detail or "",
            "survived": self.survived,
        }


@dataclass
class BenchmarkResult:
    """Aggregated results of a benchmark batch."""
    games: list[GameResult] = field(default_factory=list)

    # Aggregated stats (computed by aggregate())
    scores: list[int] = field(default_factory=list)
    avg_score: float = 0.0
    max_score: int = 0
    min_score: int = 0
    survival_rate: float = 0.0
    reason_counts: dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def aggregate(self) -> None:
        """Compute aggregated statistics from individual games."""
        self.games.sort(key=lambda g: g.game_index)
        self.scores = [g.score for g in self.games]
        if not self.games:
            return

        arr = np.array(self.scores, dtype=float)
        self.avg_score = float(np.mean(arr))
        self.max_score = int(np.max(arr))
        self.min_score = int(np.min(arr))

        survivals = sum(1 for g in self.games if g.survived)
        self.survival_rate = 100.0 * survivals / len(self.games)

        counts = Counter(g.reason.value for g in self.games if g.reason is not None)
        self.reason_counts = dict(counts)

    @property
    def num_games(self) -> int:
        return len(self.games)

    def to_dict(self) -> dict[str, Any]:
        """Result using the external key names."""
        return {
            "scores": list(self.scores),
            "avgScore": self.avg_score,
            "maxScore": self.max_score,
            "minScore": self.min_score,
            "survivalRate": self.survival_rate,
        }

    def summary(self) -> dict[str, Any]:
        """Extended summary for run output."""
        data = self.to_dict()
        data["gamesPlayed"] = self.num_games
        data["reasonCounts"] = dict(self.reason_counts)
        data["elapsedSeconds"] = round(self.elapsed_seconds, 3)
        return data


# ---------------------------------------------------------------------------
# Single game
# ---------------------------------------------------------------------------

def play_game(
    decision_fn: DecisionFunction,
    seed: int,
    game_index: int,
    config: ArenaConfig,
    on_game_start: Optional[Callable[[SnakeGame, int], None]] = None,
) -> GameResult:
    """
    Play one headless game to completion.

    Args:
        decision_fn: The algorithm.
        seed: Food placement seed.
        game_index: Position of this game in the batch.
        config: Arena configuration.
        on_game_start: Optional hook(game, game_index) called before the
            first tick (e.g. to attach a replay recorder).

    Returns:
        GameResult for the finished game.
    """
    game = SnakeGame(decision_fn, seed=seed, config=config)
    if on_game_start is not None:
        on_game_start(game, game_index)

    final = game.run_to_completion()
    return GameResult(
        game_index=game_index,
        seed=seed,
        score=final.score,
        frames=final.frame,
        length=final.length,
        reason=final.reason,
        reason_detail=final.reason_detail,
    )


def _run_single_game(
    source: str,
    seed: int,
    game_index: int,
    config_dict: dict,
) -> GameResult:
    """
    Compile the algorithm and play one game.

    Top-level so it can be pickled for ProcessPoolExecutor; each worker
    compiles its own copy of the source.
    """
    config = ArenaConfig.from_dict(config_dict)
    decision_fn = compile_algorithm(
        source,
        grid_size=config.game.grid_size,
        max_path_nodes=config.pathfinding.max_nodes,
    )
    return play_game(decision_fn, seed, game_index, config)


# ---------------------------------------------------------------------------
# BenchmarkRunner class
# ---------------------------------------------------------------------------

class BenchmarkRunner:
    """
    Runs a batch of games for one algorithm and aggregates the scores.

    Usage:
        runner = BenchmarkRunner(config)
        result = runner.run(decision_fn)
        print(result.avg_score)

    Attributes:
        config: Arena configuration (rules and benchmark defaults).
    """

    def __init__(self, config: Optional[ArenaConfig] = None):
        self.config = config or get_default_config()

    def _resolve(self, num_games: Optional[int], start_seed: Optional[int]) -> tuple[int, int]:
        if num_games is None:
            num_games = self.config.benchmark.num_games
        if start_seed is None:
            start_seed = self.config.benchmark.start_seed
        if num_games < 1:
            raise ValueError(f"num_games must be >= 1, got {num_games}")
        return num_games, start_seed

    def run(
        self,
        decision_fn: DecisionFunction,
        num_games: Optional[int] = None,
        start_seed: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        on_game_start: Optional[Callable[[SnakeGame, int], None]] = None,
        on_game_end: Optional[Callable[[GameResult], None]] = None,
    ) -> BenchmarkResult:
        """
        Play num_games games sequentially with seeds start_seed + i.

        Args:
            decision_fn: The algorithm.
            num_games: Games to play. None = config.benchmark.num_games.
            start_seed: Seed of game 0. None = config.benchmark.start_seed.
            progress_callback: Optional callback(completed, total) after every game.
            on_game_start: Optional hook(game, game_index) for each fresh engine.
            on_game_end: Optional hook receiving each GameResult.

        Returns:
            BenchmarkResult with per-game results and aggregates.

        Raises:
            ValueError: If num_games < 1.
        """
        num_games, start_seed = self._resolve(num_games, start_seed)
        start_time = time.time()

        games = []
        for i in range(num_games):
            result = play_game(decision_fn, start_seed + i, i, self.config, on_game_start)
            games.append(result)
            logger.debug(
                "Game %d/%d (seed=%d): score=%d frames=%d (%s)",
                i + 1, num_games, result.seed, result.score, result.frames, result.reason_detail,
            )
            if on_game_end is not None:
                on_game_end(result)
            if progress_callback is not None:
                progress_callback(i + 1, num_games)

        return self._finish(games, start_time)

    def run_source(
        self,
        source: str,
        num_games: Optional[int] = None,
        start_seed: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        parallel: bool = False,
        on_game_start: Optional[Callable[[SnakeGame, int], None]] = None,
        on_game_end: Optional[Callable[[GameResult], None]] = None,
    ) -> BenchmarkResult:
        """
        Compile source and benchmark it.

        With parallel=True and benchmark.parallel_workers > 1 the games are
        spread across worker processes. Results are ordered by game index,
        so both paths give the same BenchmarkResult, and on_game_end is
        called in game index order. An on_game_start hook needs the engine
        in this process, so passing one runs the games sequentially.

        Raises:
            CompilationError: If the source does not compile.
            ValueError: If num_games < 1.
        """
        num_games, start_seed = self._resolve(num_games, start_seed)
        decision_fn = compile_algorithm(
            source,
            grid_size=self.config.game.grid_size,
            max_path_nodes=self.config.pathfinding.max_nodes,
        )

        workers = self.config.benchmark.parallel_workers
        if parallel and on_game_start is not None:
            logger.warning("Per-game start hooks need in-process games; running sequentially")
            parallel = False

        if not (parallel and workers > 1 and num_games > 1):
            return self.run(
                decision_fn, num_games, start_seed, progress_callback,
                on_game_start=on_game_start, on_game_end=on_game_end,
            )

        start_time = time.time()
        config_dict = self.config.to_dict()
        games = []
        completed = 0

        logger.info("Running %d games on %d workers", num_games, workers)
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_run_single_game, source, start_seed + i, i, config_dict)
                for i in range(num_games)
            ]
            for future in futures:
                result = future.result()
                games.append(result)
                completed += 1
                if on_game_end is not None:
                    on_game_end(result)
                if progress_callback is not None:
                    progress_callback(completed, num_games)

        return self._finish(games, start_time)

    def _finish(self, games: list[GameResult], start_time: float) -> BenchmarkResult:
        result = BenchmarkResult(games=games)
        result.aggregate()
        result.elapsed_seconds = time.time() - start_time
        logger.info(
            "Benchmark finished: %d games, avg=%.2f max=%d survival=%.0f%% (%.2fs)",
            result.num_games, result.avg_score, result.max_score,
            result.survival_rate, result.elapsed_seconds,
        )
        return result

    def __repr__(self) -> str:
        return (
            f"BenchmarkRunner(num_games={self.config.benchmark.num_games}, "
            f"start_seed={self.config.benchmark.start_seed}, "
            f"workers={self.config.benchmark.parallel_workers})"
        )


def run_benchmark(
    decision_fn: DecisionFunction,
    num_games: int = 10,
    start_seed: int = 1,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    config: Optional[ArenaConfig] = None,
) -> BenchmarkResult:
    """Benchmark an algorithm with default settings."""
    return BenchmarkRunner(config).run(decision_fn, num_games, start_seed, progress_callback)
