"""
Tests for the built-in algorithms.

Tests cover:
- Every built-in compiles through the sandbox
- Built-ins never error or time out over short games
- Greedy scores on a known seed
- Demo spiral's first move
- Unknown names are rejected
"""

import pytest

from snakearena.core.types import GameOverReason
from snakearena.sandbox.builtin import BUILTIN_ALGORITHMS, load_builtin
from snakearena.simulation.engine import SnakeGame


@pytest.mark.parametrize("name", sorted(BUILTIN_ALGORITHMS))
def test_builtin_compiles(name):
    assert callable(load_builtin(name))


@pytest.mark.parametrize("name", sorted(BUILTIN_ALGORITHMS))
def test_builtin_plays_cleanly(name):
    game = SnakeGame(load_builtin(name), seed=1, max_frames=300)
    final = game.run_to_completion()
    assert final.is_over
    assert final.reason not in (GameOverReason.DECISION_ERROR, GameOverReason.DECISION_TIMEOUT)


def test_greedy_scores():
    final = SnakeGame(load_builtin("greedy"), seed=1, max_frames=500).run_to_completion()
    assert final.score > 0


def test_smart_scores():
    final = SnakeGame(load_builtin("smart"), seed=1, max_frames=500).run_to_completion()
    assert final.score > 0


def test_demo_first_move_is_plus_x():
    game = SnakeGame(load_builtin("demo"), seed=1)
    state = game.tick()
    assert state.head == (1, 0, 0)


def test_unknown_builtin():
    with pytest.raises(KeyError, match="Available"):
        load_builtin("nope")
