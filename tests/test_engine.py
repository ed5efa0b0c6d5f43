"""
Unit tests for the Simulation Engine (tick loop).

Tests cover:
- Game initialization (body, food, counters)
- Movement, wrapping and growth on food
- Every game-over reason:
  - no valid move
  - self collision
  - algorithm error / unreadable return value
  - algorithm too slow
  - frame limit reached
- Terminal state is frozen
- Food placement (deterministic, never on the body, full-grid fallback)
- Copies of the algorithm's context and snapshots
- Optional strict direction validation
- Deterministic replay (same seed → same result)
- Reset and callback hooks
"""

import time

import numpy as np
import pytest

from snakearena.core.config import ArenaConfig
from snakearena.core.rng import SeededRandom
from snakearena.core.types import Direction, GameOverReason, Position, Snapshot
from snakearena.simulation.engine import INITIAL_BODY, SnakeGame


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------

def move(direction):
    """Algorithm that always returns the same direction."""
    return lambda ctx: direction


def no_move(ctx):
    return None


def greedy(ctx):
    """Step toward the food without entering the body."""
    from snakearena.utils.grid import ALL_DIRECTIONS, distance, step

    body = set(ctx.snake[1:])
    options = [d for d in ALL_DIRECTIONS if step(ctx.head, d) not in body]
    if not options:
        return None
    return min(options, key=lambda d: distance(step(ctx.head, d), ctx.food))


@pytest.fixture
def config() -> ArenaConfig:
    return ArenaConfig()


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

class TestGameInit:
    def test_initial_body(self):
        game = SnakeGame(no_move, seed=1)
        assert tuple(game.body) == INITIAL_BODY
        assert game.length == 3

    def test_counters_start_at_zero(self):
        state = SnakeGame(no_move, seed=1).get_state()
        assert state.frame == 0
        assert state.score == 0
        assert state.is_over is False
        assert state.reason is None

    def test_food_not_on_body(self):
        for seed in range(1, 30):
            game = SnakeGame(no_move, seed=seed)
            assert game.food not in game.body

    def test_first_food_follows_seeded_draws(self):
        rng = SeededRandom(1)
        while True:
            expected = Position(rng.next_int(-8, 7), rng.next_int(-8, 7), rng.next_int(-8, 7))
            if expected not in INITIAL_BODY:
                break
        assert SnakeGame(no_move, seed=1).food == expected

    def test_seed_defaults_to_clock(self):
        game = SnakeGame(no_move)
        assert isinstance(game.seed, int)
        assert game.seed > 0

    def test_max_frames_from_config(self, config):
        config.game.max_frames = 77
        assert SnakeGame(no_move, seed=1, config=config).max_frames == 77

    def test_repr(self):
        assert "SnakeGame" in repr(SnakeGame(no_move, seed=1))


# ---------------------------------------------------------------------------
# Movement and growth
# ---------------------------------------------------------------------------

class TestMovement:
    def test_moves_head_and_drops_tail(self):
        game = SnakeGame(move((0, 1, 0)), seed=1)
        game.food = Position(5, 5, 5)
        state = game.tick()
        assert state.body == (Position(0, 1, 0), Position(0, 0, 0), Position(-1, 0, 0))
        assert state.frame == 1
        assert state.is_over is False

    def test_wraps_at_edge(self):
        game = SnakeGame(move((0, 0, -1)), seed=1)
        game.food = Position(5, 5, 5)
        for _ in range(9):
            state = game.tick()
        assert state.head == Position(0, 0, 7)

    def test_eating_grows_and_scores(self):
        game = SnakeGame(move((1, 0, 0)), seed=1)
        game.food = Position(1, 0, 0)
        state = game.tick()
        assert state.score == 10
        assert state.length == 4
        assert state.body[0] == Position(1, 0, 0)
        assert state.body[-1] == Position(-2, 0, 0)
        assert state.food not in state.body

    def test_food_score_from_config(self, config):
        config.game.food_score = 3
        game = SnakeGame(move((1, 0, 0)), seed=1, config=config)
        game.food = Position(1, 0, 0)
        assert game.tick().score == 3

    def test_accepts_dict_and_object_directions(self):
        game = SnakeGame(lambda ctx: {"x": 0, "y": -1, "z": 0}, seed=1)
        game.food = Position(5, 5, 5)
        assert game.tick().head == Position(0, -1, 0)

        game = SnakeGame(lambda ctx: Direction(0, 0, 1), seed=1)
        game.food = Position(5, 5, 5)
        assert game.tick().head == Position(0, 0, 1)


# ---------------------------------------------------------------------------
# Game over reasons
# ---------------------------------------------------------------------------

class TestGameOver:
    def test_no_valid_move(self):
        state = SnakeGame(no_move, seed=1).tick()
        assert state.is_over
        assert state.reason is GameOverReason.NO_VALID_MOVE
        assert state.reason_detail == "no valid move"
        assert state.frame == 1

    @pytest.mark.parametrize("result", [0, (), [0, 1]])
    def test_falsy_or_short_result_is_error(self, result):
        state = SnakeGame(lambda ctx: result, seed=1).tick()
        assert state.reason is GameOverReason.DECISION_ERROR

    def test_numpy_direction_accepted(self):
        game = SnakeGame(lambda ctx: np.array([0, 1, 0]), seed=1)
        game.food = Position(5, 5, 5)
        state = game.tick()
        assert not state.is_over
        assert state.head == Position(0, 1, 0)

    def test_raising_generator_is_error(self):
        game = SnakeGame(lambda ctx: (1 // v for v in [1, 0, 1]), seed=1)
        state = game.tick()
        assert state.reason is GameOverReason.DECISION_ERROR
        assert "by zero" in state.reason_detail

    def test_self_collision_on_first_frame(self):
        game = SnakeGame(move((-1, 0, 0)), seed=1)
        state = game.tick()
        assert state.is_over
        assert state.reason is GameOverReason.SELF_COLLISION
        assert state.frame == 1
        assert state.body == INITIAL_BODY

    def test_algorithm_error(self):
        def broken(ctx):
            raise ValueError("boom")

        state = SnakeGame(broken, seed=1).tick()
        assert state.reason is GameOverReason.DECISION_ERROR
        assert state.reason_detail == "algorithm error: boom"

    def test_unreadable_direction_is_error(self):
        state = SnakeGame(lambda ctx: "up", seed=1).tick()
        assert state.reason is GameOverReason.DECISION_ERROR
        assert state.reason_detail.startswith("algorithm error:")

    def test_algorithm_too_slow(self, config):
        config.game.tick_budget_ms = 20

        def slow(ctx):
            time.sleep(0.06)
            return (0, 1, 0)

        state = SnakeGame(slow, seed=1, config=config).tick()
        assert state.reason is GameOverReason.DECISION_TIMEOUT
        assert state.reason_detail.startswith("algorithm too slow (")
        assert state.reason_detail.endswith("ms per frame)")
        # The slow move is not applied
        assert state.body == INITIAL_BODY

    def test_default_budget_is_100ms(self):
        def busy(ctx):
            t0 = time.perf_counter()
            while time.perf_counter() - t0 < 0.15:
                pass
            return (0, 1, 0)

        state = SnakeGame(busy, seed=1, config=ArenaConfig()).tick()
        assert state.reason is GameOverReason.DECISION_TIMEOUT
        assert state.body == INITIAL_BODY

    def test_frame_limit(self):
        game = SnakeGame(move((0, 1, 0)), seed=1, max_frames=5)
        game.food = Position(5, 5, 5)
        states = [game.tick() for _ in range(5)]
        assert all(not s.is_over for s in states[:4])
        assert states[-1].is_over
        assert states[-1].reason is GameOverReason.FRAME_LIMIT
        assert states[-1].reason.is_survival
        assert states[-1].frame == 5

    def test_frame_limit_does_not_call_algorithm(self):
        calls = []

        def counting(ctx):
            calls.append(ctx.frame)
            return (0, 1, 0)

        game = SnakeGame(counting, seed=1, max_frames=3)
        game.food = Position(5, 5, 5)
        game.run_to_completion()
        assert calls == [1, 2]

    def test_over_is_terminal(self):
        game = SnakeGame(no_move, seed=1)
        first = game.tick()
        again = game.tick()
        assert again == first
        assert game.frame == 1


# ---------------------------------------------------------------------------
# Food placement
# ---------------------------------------------------------------------------

class TestFoodPlacement:
    def test_food_never_on_body(self):
        game = SnakeGame(greedy, seed=3, max_frames=1500)
        violations = []

        def check(snapshot, _game):
            if snapshot.food in snapshot.body:
                violations.append(snapshot.frame)

        game.on_tick = check
        final = game.run_to_completion()
        assert final.score > 0
        assert violations == []

    def test_scan_finds_last_free_cell(self, config):
        config.game.grid_size = 4
        game = SnakeGame(no_move, seed=1, config=config)
        cells = [Position(x, y, z) for x in range(-2, 2) for y in range(-2, 2) for z in range(-2, 2)]
        game.body = [c for c in cells if c != Position(1, 1, 1)]
        assert game._spawn_food() == Position(1, 1, 1)

    def test_full_grid_keeps_last_sample(self, config, caplog):
        config.game.grid_size = 4
        game = SnakeGame(no_move, seed=1, config=config)
        game.body = [Position(x, y, z) for x in range(-2, 2) for y in range(-2, 2) for z in range(-2, 2)]
        with caplog.at_level("WARNING", logger="snakearena.simulation.engine"):
            food = game._spawn_food()
        assert food in game.body
        assert "full" in caplog.text


# ---------------------------------------------------------------------------
# Context and snapshot isolation
# ---------------------------------------------------------------------------

class TestIsolation:
    def test_context_fields(self):
        seen = []

        def record(ctx):
            seen.append(ctx)
            return (0, 1, 0)

        game = SnakeGame(record, seed=1)
        food = game.food
        game.tick()
        ctx = seen[0]
        assert ctx.snake == list(INITIAL_BODY)
        assert ctx.head == Position(0, 0, 0)
        assert ctx.tail == Position(-2, 0, 0)
        assert ctx.food == food
        assert ctx.score == 0
        assert ctx.frame == 1
        assert ctx.grid_size == 16

    def test_mutating_context_does_not_affect_game(self):
        def vandal(ctx):
            ctx.snake.clear()
            return (0, 1, 0)

        game = SnakeGame(vandal, seed=1)
        game.food = Position(5, 5, 5)
        state = game.tick()
        assert state.length == 3

    def test_snapshot_is_a_copy(self):
        game = SnakeGame(move((0, 1, 0)), seed=1)
        game.food = Position(5, 5, 5)
        before = game.get_state()
        game.tick()
        assert before.frame == 0
        assert before.body == INITIAL_BODY

    def test_snapshot_to_dict(self):
        d = SnakeGame(no_move, seed=1).tick().to_dict()
        assert d["body"][0] == {"x": 0, "y": 0, "z": 0}
        assert d["isOver"] is True
        assert d["reason"] == "no valid move"
        assert set(d) == {"body", "food", "score", "frame", "isOver", "reason", "reasonDetail"}


# ---------------------------------------------------------------------------
# Direction validation
# ---------------------------------------------------------------------------

class TestDirectionValidation:
    def test_permissive_by_default(self):
        game = SnakeGame(move((1, 1, 0)), seed=1)
        game.food = Position(5, 5, 5)
        state = game.tick()
        assert state.is_over is False
        assert state.head == Position(1, 1, 0)

    def test_strict_mode_rejects_diagonal(self, config):
        config.game.validate_directions = True
        state = SnakeGame(move((1, 1, 0)), seed=1, config=config).tick()
        assert state.reason is GameOverReason.NO_VALID_MOVE
        assert "invalid direction" in state.reason_detail

    def test_strict_mode_accepts_unit_step(self, config):
        config.game.validate_directions = True
        game = SnakeGame(move((0, 0, 1)), seed=1, config=config)
        game.food = Position(5, 5, 5)
        assert game.tick().is_over is False


# ---------------------------------------------------------------------------
# Determinism, reset, callbacks
# ---------------------------------------------------------------------------

class TestDeterminism:
    def test_same_seed_same_game(self):
        a = SnakeGame(greedy, seed=11, max_frames=800).run_to_completion()
        b = SnakeGame(greedy, seed=11, max_frames=800).run_to_completion()
        assert a == b

    def test_different_seeds_differ(self):
        a = SnakeGame(no_move, seed=1)
        b = SnakeGame(no_move, seed=2)
        assert a.food != b.food

    def test_reset_with_seed_matches_fresh_game(self):
        game = SnakeGame(greedy, seed=5, max_frames=200)
        game.run_to_completion()
        state = game.reset(seed=9)
        fresh = SnakeGame(greedy, seed=9, max_frames=200)
        assert state == fresh.get_state()
        assert game.run_to_completion() == fresh.run_to_completion()

    def test_reset_clears_game_over(self):
        game = SnakeGame(no_move, seed=1)
        game.tick()
        state = game.reset()
        assert state.is_over is False
        assert state.frame == 0
        assert state.score == 0

    def test_on_tick_called_every_tick(self):
        snapshots = []
        game = SnakeGame(move((0, 1, 0)), seed=1, max_frames=4)
        game.food = Position(5, 5, 5)
        game.on_tick = lambda snapshot, g: snapshots.append(snapshot)
        game.run_to_completion()
        assert [s.frame for s in snapshots] == [1, 2, 3, 4]
        assert all(isinstance(s, Snapshot) for s in snapshots)
