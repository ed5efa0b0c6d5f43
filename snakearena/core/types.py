"""
Core value types for Snake Arena.

Positions and directions are immutable named tuples so they can be used
directly as set members and dict keys. Snapshots are frozen dataclasses:
the engine hands out fresh instances and never shares its own state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional


class Position(NamedTuple):
    """A grid cell."""
    x: int
    y: int
    z: int

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "z": self.z}


class Direction(NamedTuple):
    """A single step. Valid directions have exactly one ±1 axis."""
    x: int
    y: int
    z: int

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "z": self.z}


class GameOverReason(str, Enum):
    """Why a game ended. Values are the strings shown to users."""
    SELF_COLLISION = "self collision"
    NO_VALID_MOVE = "no valid move"
    DECISION_ERROR = "algorithm error"
    DECISION_TIMEOUT = "algorithm too slow"
    FRAME_LIMIT = "frame limit reached"

    @property
    def is_survival(self) -> bool:
        """Reaching the frame limit counts as surviving the game."""
        return self is GameOverReason.FRAME_LIMIT


@dataclass(frozen=True)
class GameContext:
    """
    Read-only view of the game handed to an algorithm each tick.

    Attributes:
        snake: Body cells, head first. A fresh list every tick.
        food: Current food cell.
        score: Current score.
        frame: Current frame number.
        grid_size: Cells per axis.
    """
    snake: list[Position]
    food: Position
    score: int
    frame: int
    grid_size: int

    @property
    def head(self) -> Position:
        return self.snake[0]

    @property
    def tail(self) -> Position:
        return self.snake[-1]


@dataclass(frozen=True)
class Snapshot:
    """
    State of one game at a moment in time.

    Attributes:
        body: Body cells, head first.
        food: Food cell.
        score: Score so far.
        frame: Frames elapsed.
        is_over: Whether the game has ended.
        reason: Why the game ended (None while running).
        reason_detail: Human-readable detail for the reason (e.g. the error).
    """
    body: tuple[Position, ...]
    food: Position
    score: int
    frame: int
    is_over: bool = False
    reason: Optional[GameOverReason] = None
    reason_detail: Optional[str] = None

    @property
    def head(self) -> Position:
        return self.body[0]

    @property
    def length(self) -> int:
        return len(self.body)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape consumed by the UI and leaderboard layers."""
        return {
            "body": [p.to_dict() for p in self.body],
            "food": self.food.to_dict(),
            "score": self.score,
            "frame": self.frame,
            "isOver": self.is_over,
            "reason": self.reason.value if self.reason is not None else None,
            "reasonDetail": self.reason_detail,
        }


# An algorithm maps a context to a direction, or None when it has no move.
DecisionFunction = Callable[[GameContext], Any]
