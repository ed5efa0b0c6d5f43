"""
Simulation Engine: deterministic tick loop for Snake Arena.

One SnakeGame owns a snake body, a food cell, the score and the frame
counter. Each tick asks the algorithm for a direction, moves the snake and
resolves eating and collisions. Every failure of the algorithm is captured
as a terminal game-over state; nothing raised by the algorithm escapes
`tick()`.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from snakearena.core.config import ArenaConfig, get_default_config
from snakearena.core.rng import SeededRandom
from snakearena.core.types import (
    DecisionFunction,
    GameContext,
    GameOverReason,
    Position,
    Snapshot,
)
from snakearena.utils.grid import as_direction, is_valid_direction, step

logger = logging.getLogger(__name__)


INITIAL_BODY: tuple[Position, ...] = (
    Position(0, 0, 0),
    Position(-1, 0, 0),
    Position(-2, 0, 0),
)


class SnakeGame:
    """
    Headless snake game driven by an algorithm.

    States: running, then game over (terminal). Once over, `tick()` returns
    the unchanged snapshot. A game is single-owner: callers serialize
    `tick()` and `reset()`.

    Attributes:
        config: Arena configuration (grid size, rules, tick budget).
        decision_fn: The algorithm called once per tick.
        seed: Seed the current game was started with.
        max_frames: Frame limit; reaching it ends the game as a survival.
        rng: Per-game seeded generator used for food placement.
        on_tick: Optional callback invoked after each tick(snapshot, game).
    """

    def __init__(
        self,
        decision_fn: DecisionFunction,
        seed: Optional[int] = None,
        max_frames: Optional[int] = None,
        config: Optional[ArenaConfig] = None,
    ):
        """
        Create a game and place the first food.

        Args:
            decision_fn: Algorithm mapping a GameContext to a direction or None.
            seed: Food placement seed. None = current time in milliseconds.
            max_frames: Frame limit. None = config.game.max_frames.
            config: Arena configuration. None = defaults.
        """
        self.config = config or get_default_config()
        self.decision_fn = decision_fn
        self.max_frames = max_frames if max_frames is not None else self.config.game.max_frames
        self.grid_size = self.config.game.grid_size
        self.half = self.grid_size // 2

        self.on_tick: Optional[Callable[[Snapshot, "SnakeGame"], None]] = None

        self.seed = seed if seed is not None else int(time.time() * 1000)
        self.rng = SeededRandom(self.seed)
        self._init_state()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _init_state(self) -> None:
        self.body: list[Position] = list(INITIAL_BODY)
        self.food: Position = self._spawn_food()
        self.score = 0
        self.frame = 0
        self.game_over = False
        self.reason: Optional[GameOverReason] = None
        self.reason_detail: Optional[str] = None

    def reset(self, seed: Optional[int] = None) -> Snapshot:
        """
        Return to the initial state, keeping the algorithm.

        Args:
            seed: New food placement seed. None = continue the current
                generator rather than reseeding.

        Returns:
            The fresh snapshot.
        """
        if seed is not None:
            self.seed = seed
            self.rng = SeededRandom(seed)
        self._init_state()
        return self.get_state()

    # ------------------------------------------------------------------
    # Food placement
    # ------------------------------------------------------------------

    def _spawn_food(self) -> Position:
        """
        Pick a free cell for the next food.

        Random draws first; after `spawn_attempts` misses, scan the grid in
        x, y, z order for the first free cell.
        """
        occupied = set(self.body)
        low, high = -self.half, self.half - 1

        pos = None
        for _ in range(self.config.game.spawn_attempts):
            pos = Position(
                self.rng.next_int(low, high),
                self.rng.next_int(low, high),
                self.rng.next_int(low, high),
            )
            if pos not in occupied:
                return pos

        for x in range(low, high + 1):
            for y in range(low, high + 1):
                for z in range(low, high + 1):
                    cell = Position(x, y, z)
                    if cell not in occupied:
                        return cell

        logger.warning("Grid is full (%d cells); food placed on the body", len(occupied))
        return pos

    # ------------------------------------------------------------------
    # Core tick
    # ------------------------------------------------------------------

    def tick(self) -> Snapshot:
        """
        Advance one frame.

        Processing order:
          1. Increment frame; end the game at the frame limit
          2. Build the algorithm's context from copies of the state
          3. Call the algorithm and read its direction, timing both
             against the tick budget
          4. Move the head; check collision against the cells that will
             still be occupied after the move
          5. Grow on food (and respawn it) or drop the tail

        Returns:
            Snapshot after this tick.
        """
        if self.game_over:
            return self.get_state()

        # --- 1. Frame limit ---
        self.frame += 1
        if self.frame >= self.max_frames:
            return self._end(GameOverReason.FRAME_LIMIT)

        # --- 2. Context ---
        ctx = GameContext(
            snake=list(self.body),
            food=self.food,
            score=self.score,
            frame=self.frame,
            grid_size=self.grid_size,
        )

        # --- 3. Decision (reading the return value counts against the budget) ---
        try:
            start = time.perf_counter()
            result = self.decision_fn(ctx)
            direction = None if result is None else as_direction(result)
            elapsed_ms = (time.perf_counter() - start) * 1000.0
        except Exception as e:
            return self._end(GameOverReason.DECISION_ERROR, f"algorithm error: {e}")

        if elapsed_ms > self.config.game.tick_budget_ms:
            return self._end(
                GameOverReason.DECISION_TIMEOUT,
                f"algorithm too slow ({round(elapsed_ms)}ms per frame)",
            )

        if direction is None:
            return self._end(GameOverReason.NO_VALID_MOVE)

        if self.config.game.validate_directions and not is_valid_direction(direction):
            return self._end(
                GameOverReason.NO_VALID_MOVE,
                f"invalid direction ({direction.x}, {direction.y}, {direction.z})",
            )

        # --- 4. Movement and collision ---
        new_head = step(self.body[0], direction, self.grid_size)
        will_eat = new_head == self.food

        # The tail vacates its cell this tick unless the snake grows
        obstacles = set(self.body) if will_eat else set(self.body[:-1])
        if new_head in obstacles:
            return self._end(GameOverReason.SELF_COLLISION)

        # --- 5. Grow or shrink back ---
        self.body.insert(0, new_head)
        if will_eat:
            self.score += self.config.game.food_score
            self.food = self._spawn_food()
        else:
            self.body.pop()

        return self._publish()

    def _end(self, reason: GameOverReason, detail: Optional[str] = None) -> Snapshot:
        self.game_over = True
        self.reason = reason
        self.reason_detail = detail if detail is not None else reason.value
        logger.debug(
            "Game seed=%s over at frame %d: %s (score=%d)",
            self.seed, self.frame, self.reason_detail, self.score,
        )
        return self._publish()

    def _publish(self) -> Snapshot:
        snapshot = self.get_state()
        if self.on_tick is not None:
            self.on_tick(snapshot, self)
        return snapshot

    # ------------------------------------------------------------------
    # Multi-tick run
    # ------------------------------------------------------------------

    def run_to_completion(self) -> Snapshot:
        """
        Tick until the game ends.

        Always terminates within max_frames ticks, short of a single
        algorithm call that never returns.

        Returns:
            Final snapshot.
        """
        while not self.game_over:
            self.tick()
        return self.get_state()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def get_state(self) -> Snapshot:
        """Current snapshot (a copy; mutating it never affects the game)."""
        return Snapshot(
            body=tuple(self.body),
            food=self.food,
            score=self.score,
            frame=self.frame,
            is_over=self.game_over,
            reason=self.reason,
            reason_detail=self.reason_detail,
        )

    @property
    def is_over(self) -> bool:
        """Whether the game has ended."""
        return self.game_over

    @property
    def length(self) -> int:
        """Current body length."""
        return len(self.body)

    def __repr__(self) -> str:
        return (
            f"SnakeGame(seed={self.seed}, frame={self.frame}, "
            f"score={self.score}, length={len(self.body)}, "
            f"over={self.game_over})"
        )
