"""
Grid utilities for Snake Arena.

Provides toroidal (wrap-around) 3D grid math: coordinate wrapping,
wrapped Manhattan distance, neighbor enumeration, direction helpers and a
bounded breadth-first search.

The grid spans [-size/2, size/2) on every axis. All functions are pure and
take the axis length as `size` (16 by default).
"""

from __future__ import annotations

import operator
from collections import deque
from functools import partial
from types import SimpleNamespace
from typing import Any, Iterable, Optional, Sequence

from snakearena.core.types import Direction, Position


GRID_SIZE = 16
HALF_GRID = GRID_SIZE // 2

# ~40 minutes of play at 10 frames/sec
MAX_FRAMES = 25000

# Hard cap on BFS visits; a 16^3 grid has 4096 cells
MAX_PATH_NODES = 500

DEFAULT_PATH_DEPTH = 30

ALL_DIRECTIONS: tuple[Direction, ...] = (
    Direction(1, 0, 0),    # +X
    Direction(-1, 0, 0),   # -X
    Direction(0, 1, 0),    # +Y
    Direction(0, -1, 0),   # -Y
    Direction(0, 0, 1),    # +Z
    Direction(0, 0, -1),   # -Z
)


def _wrap_axis(value: int, size: int) -> int:
    half = size // 2
    while value < -half:
        value += size
    while value >= half:
        value -= size
    return value


def wrap(pos: Sequence[int], size: int = GRID_SIZE) -> Position:
    """
    Wrap a position so every axis lies in [-size/2, size/2).

    Args:
        pos: Any (x, y, z) sequence; may be out of range.
        size: Axis length.

    Returns:
        Wrapped Position.
    """
    x, y, z = pos
    return Position(_wrap_axis(x, size), _wrap_axis(y, size), _wrap_axis(z, size))


def equals(a: Sequence[int], b: Sequence[int]) -> bool:
    """True if both positions name the same cell (no wrapping applied)."""
    return tuple(a) == tuple(b)


def key_of(pos: Sequence[int]) -> str:
    """String key "x,y,z" for a position."""
    x, y, z = pos
    return f"{x},{y},{z}"


def distance(a: Sequence[int], b: Sequence[int], size: int = GRID_SIZE) -> int:
    """
    Shortest Manhattan distance between two cells on the torus.

    Each axis contributes min(|a - b|, size - |a - b|).
    """
    total = 0
    for ai, bi in zip(a, b):
        d = abs(ai - bi)
        total += min(d, size - d)
    return total


def step(pos: Sequence[int], direction: Sequence[int], size: int = GRID_SIZE) -> Position:
    """Move one step from pos along direction, wrapped."""
    return wrap(
        (pos[0] + direction[0], pos[1] + direction[1], pos[2] + direction[2]),
        size,
    )


def neighbors(pos: Sequence[int], size: int = GRID_SIZE) -> list[Position]:
    """The 6 face-adjacent cells of pos, in ALL_DIRECTIONS order."""
    return [step(pos, d, size) for d in ALL_DIRECTIONS]


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def normalize_direction(src: Sequence[int], dst: Sequence[int]) -> Direction:
    """
    Direction of a single step from src to an adjacent dst.

    A delta larger than 1 on an axis means the step crossed the grid edge,
    so it is replaced by -sign(delta). Only meaningful when dst is adjacent
    to src (possibly via wrap).
    """
    deltas = []
    for s, d in zip(src, dst):
        delta = d - s
        if abs(delta) > 1:
            delta = -_sign(delta)
        deltas.append(delta)
    return Direction(*deltas)


def is_valid_direction(direction: Sequence[int]) -> bool:
    """True if exactly one axis is non-zero and it is ±1."""
    try:
        values = [int(v) for v in direction]
    except (TypeError, ValueError):
        return False
    if len(values) != 3:
        return False
    non_zero = [v for v in values if v != 0]
    return len(non_zero) == 1 and abs(non_zero[0]) == 1


def create_obstacle_set(positions: Iterable[Sequence[int]]) -> set[Position]:
    """Set of cells for O(1) collision checks."""
    return {Position(*p) for p in positions}


def find_path(
    start: Sequence[int],
    goal: Sequence[int],
    obstacles: set[Position],
    max_depth: int = DEFAULT_PATH_DEPTH,
    size: int = GRID_SIZE,
    max_nodes: int = MAX_PATH_NODES,
) -> Optional[list[Position]]:
    """
    Breadth-first search on the wrapped 6-connected grid.

    The search gives up once more than `max_nodes` cells have been visited
    or the frontier is deeper than `max_depth`. Running out of budget is
    reported the same way as a truly unreachable goal.

    Args:
        start: Starting cell.
        goal: Target cell.
        obstacles: Cells that cannot be entered.
        max_depth: Longest path length to consider.
        size: Axis length.
        max_nodes: Visit budget.

    Returns:
        Cells from the first step up to and including goal ([] if
        start == goal), or None if no path was found.
    """
    start = Position(*start)
    goal = Position(*goal)

    queue: deque[tuple[Position, list[Position]]] = deque([(start, [])])
    visited: set[Position] = {start}

    while queue:
        if len(visited) > max_nodes:
            break

        current, path = queue.popleft()

        if len(path) > max_depth:
            break

        if current == goal:
            return path

        for neighbor in neighbors(current, size):
            if neighbor in visited or neighbor in obstacles:
                continue
            visited.add(neighbor)
            queue.append((neighbor, path + [neighbor]))

    return None


def make_utils(size: int = GRID_SIZE, max_nodes: int = MAX_PATH_NODES) -> SimpleNamespace:
    """
    Build the utilities namespace exposed to user algorithms as `utils`.

    Grid-dependent helpers are bound to `size` so algorithms never pass it.
    """
    return SimpleNamespace(
        wrap=partial(wrap, size=size),
        equals=equals,
        key_of=key_of,
        distance=partial(distance, size=size),
        neighbors=partial(neighbors, size=size),
        step=partial(step, size=size),
        create_obstacle_set=create_obstacle_set,
        find_path=partial(find_path, size=size, max_nodes=max_nodes),
        normalize_direction=normalize_direction,
        is_valid_direction=is_valid_direction,
        ALL_DIRECTIONS=ALL_DIRECTIONS,
        GRID_SIZE=size,
        Position=Position,
        Direction=Direction,
    )


def as_direction(value: Any) -> Direction:
    """
    Read an algorithm's return value as a Direction.

    Accepts Direction/Position tuples, any 3-item sequence and objects with
    x, y, z attributes.

    Raises:
        TypeError: If the value cannot be read as three integers.
    """
    if isinstance(value, Direction):
        return value
    if all(hasattr(value, axis) for axis in ("x", "y", "z")):
        parts = (value.x, value.y, value.z)
    elif isinstance(value, dict):
        try:
            parts = (value["x"], value["y"], value["z"])
        except KeyError as exc:
            raise TypeError(f"direction dict is missing axis {exc}") from exc
    else:
        try:
            parts = tuple(value)
        except TypeError as exc:
            raise TypeError(f"cannot read {type(value).__name__} as a direction") from exc
    if len(parts) != 3:
        raise TypeError(f"direction needs 3 components, got {len(parts)}")
    try:
        return Direction(*(operator.index(p) for p in parts))
    except TypeError as exc:
        raise TypeError(f"direction components must be ints, got {parts!r}") from exc
