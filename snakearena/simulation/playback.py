"""
Visual playback for Snake Arena.

Two drivers sit on top of the headless engine:

  PlaybackController  ticks one game on a background thread at a fixed
                      interval, for watching an algorithm play.
  FastForwardPlayer   plays a batch of games under a wall-clock budget,
                      ticking in bursts and publishing snapshots at a
                      bounded rate.

The engine itself has no notion of time; speed is only the rate at which
these drivers call tick().
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Optional

from snakearena.core.config import ArenaConfig, get_default_config
from snakearena.core.types import DecisionFunction, Snapshot
from snakearena.simulation.benchmark import BenchmarkResult, GameResult
from snakearena.simulation.engine import SnakeGame

logger = logging.getLogger(__name__)


# Catch-up factor: aim for 1.5x the frames the elapsed share of the budget would allow
CATCH_UP_FACTOR = 1.5

# Pause between bursts, roughly one display frame
FRAME_SLEEP_SECONDS = 1.0 / 60.0

BUDGET_EXHAUSTED = "time budget exhausted"


# ---------------------------------------------------------------------------
# Step-by-step playback
# ---------------------------------------------------------------------------

class PlaybackController:
    """
    Plays one game on a background thread.

    Every `interval_ms` the controller ticks the game `ticks_per_step`
    times, reports the snapshot to `on_state_change`, and on game over
    stops itself and calls `on_game_end(score)`.

    Attributes:
        game: The engine being played.
        interval_ms: Delay between steps.
        ticks_per_step: Ticks per step (speed multiplier).
    """

    def __init__(
        self,
        decision_fn: DecisionFunction,
        on_state_change: Callable[[Snapshot], None],
        on_game_end: Optional[Callable[[int], None]] = None,
        seed: Optional[int] = None,
        interval_ms: Optional[int] = None,
        ticks_per_step: Optional[int] = None,
        config: Optional[ArenaConfig] = None,
    ):
        self.config = config or get_default_config()
        self.decision_fn = decision_fn
        self.on_state_change = on_state_change
        self.on_game_end = on_game_end

        self.interval_ms = interval_ms if interval_ms is not None else self.config.playback.interval_ms
        self.ticks_per_step = max(1, ticks_per_step if ticks_per_step is not None else self.config.playback.ticks_per_step)

        self.game = SnakeGame(decision_fn, seed=seed, config=self.config)

        self.lock = threading.Lock()
        self.thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

    @property
    def seed(self) -> int:
        return self.game.seed

    @property
    def is_running(self) -> bool:
        """Whether the background loop is active."""
        return self._running

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking in the background. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._stop_event = threading.Event()
        self.thread = threading.Thread(
            target=self._run_loop,
            args=(self._stop_event,),
            name="snakearena-playback",
            daemon=True,
        )
        self.thread.start()

    def stop(self) -> None:
        """Stop the loop. Idempotent; safe to call from a callback."""
        self._running = False
        self._stop_event.set()
        thread, self.thread = self.thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.debug("Playback loop starting (seed=%s, interval=%dms)", self.seed, self.interval_ms)
        while not stop_event.wait(self.interval_ms / 1000.0):
            self.step()
            if self.game.is_over:
                break
        logger.debug("Playback loop stopped at frame %d", self.game.frame)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self) -> Snapshot:
        """
        Advance one step synchronously and publish the snapshot.

        Returns:
            Snapshot after the step.
        """
        with self.lock:
            if self.game.is_over:
                return self.game.get_state()
            for _ in range(self.ticks_per_step):
                snapshot = self.game.tick()
                if snapshot.is_over:
                    break

        self.on_state_change(snapshot)
        if snapshot.is_over:
            self.stop()
            if self.on_game_end is not None:
                self.on_game_end(snapshot.score)
        return snapshot

    def reset(self, seed: Optional[int] = None) -> Snapshot:
        """
        Stop and start a fresh game with the same algorithm.

        Args:
            seed: Seed for the new game. None = current time in milliseconds.
        """
        self.stop()
        with self.lock:
            self.game = SnakeGame(self.decision_fn, seed=seed, config=self.config)
            snapshot = self.game.get_state()
        self.on_state_change(snapshot)
        return snapshot

    def set_speed(self, interval_ms: Optional[int] = None, ticks_per_step: Optional[int] = None) -> None:
        """Change pacing; a running loop restarts with the new values."""
        if interval_ms is not None:
            self.interval_ms = interval_ms
        if ticks_per_step is not None:
            self.ticks_per_step = max(1, ticks_per_step)
        if self._running:
            self.stop()
            self.start()

    def get_state(self) -> Snapshot:
        return self.game.get_state()

    def destroy(self) -> None:
        self.stop()

    def __repr__(self) -> str:
        return (
            f"PlaybackController(seed={self.seed}, interval_ms={self.interval_ms}, "
            f"ticks_per_step={self.ticks_per_step}, running={self._running})"
        )


# ---------------------------------------------------------------------------
# Time-budgeted batch playback
# ---------------------------------------------------------------------------

class FastForwardPlayer:
    """
    Plays a benchmark batch visibly within a wall-clock budget.

    Each game gets target_seconds / num_games. Ticks run in bursts sized to
    stay ahead of the budget, and snapshots are published at most once per
    `visual_interval_ms` plus once when the game ends.

    Unless `playback.enforce_budget` is set, games always run to their
    natural end, so the scores match the headless benchmark for the same
    seeds.
    """

    def __init__(
        self,
        decision_fn: DecisionFunction,
        on_snapshot: Callable[[Snapshot, int], None],
        on_game_end: Optional[Callable[[GameResult], None]] = None,
        config: Optional[ArenaConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or get_default_config()
        self.decision_fn = decision_fn
        self.on_snapshot = on_snapshot
        self.on_game_end = on_game_end
        self.clock = clock
        self.sleep = sleep
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Abort the batch after the current burst. Idempotent."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def play(
        self,
        num_games: Optional[int] = None,
        start_seed: Optional[int] = None,
        target_seconds: Optional[float] = None,
    ) -> BenchmarkResult:
        """
        Play the batch.

        Args:
            num_games: Games to play. None = config.benchmark.num_games.
            start_seed: Seed of game 0. None = config.benchmark.start_seed.
            target_seconds: Wall-clock budget for the whole batch.
                None = config.playback.target_seconds.

        Returns:
            BenchmarkResult over the games that finished (fewer than
            num_games if stopped early).

        Raises:
            ValueError: If num_games < 1.
        """
        bench = self.config.benchmark
        num_games = num_games if num_games is not None else bench.num_games
        start_seed = start_seed if start_seed is not None else bench.start_seed
        if target_seconds is None:
            target_seconds = self.config.playback.target_seconds
        if num_games < 1:
            raise ValueError(f"num_games must be >= 1, got {num_games}")

        self._stop_event.clear()
        budget = target_seconds / num_games
        batch_start = self.clock()

        games = []
        for i in range(num_games):
            if self.stopped:
                break
            result = self._play_one(i, start_seed + i, budget)
            if result is None:
                break
            games.append(result)
            if self.on_game_end is not None:
                self.on_game_end(result)

        bench_result = BenchmarkResult(games=games)
        bench_result.aggregate()
        bench_result.elapsed_seconds = self.clock() - batch_start
        return bench_result

    def _play_one(self, game_index: int, seed: int, budget: float) -> Optional[GameResult]:
        game = SnakeGame(self.decision_fn, seed=seed, config=self.config)
        max_frames = game.max_frames
        visual_interval = self.config.playback.visual_interval_ms / 1000.0
        enforce = self.config.playback.enforce_budget

        self.on_snapshot(game.get_state(), game_index)

        start = self.clock()
        last_visual = start
        frame_count = 0
        timed_out = False

        while True:
            if self.stopped:
                logger.info("Fast-forward stopped during game %d", game_index + 1)
                return None

            now = self.clock()
            elapsed = now - start
            target_frames = min(max_frames, math.floor(elapsed / budget * max_frames * CATCH_UP_FACTOR))

            while frame_count < target_frames and not game.is_over:
                if enforce and self.clock() - start >= budget:
                    timed_out = True
                    break
                game.tick()
                frame_count += 1

            if game.is_over or timed_out:
                break
            if enforce and elapsed >= budget:
                timed_out = True
                break

            if now - last_visual >= visual_interval:
                self.on_snapshot(game.get_state(), game_index)
                last_visual = now

            self.sleep(FRAME_SLEEP_SECONDS)

        final = game.get_state()
        self.on_snapshot(final, game_index)

        return GameResult(
            game_index=game_index,
            seed=seed,
            score=final.score,
            frames=final.frame,
            length=final.length,
            reason=final.reason,
            reason_detail=BUDGET_EXHAUSTED if timed_out else final.reason_detail,
        )
