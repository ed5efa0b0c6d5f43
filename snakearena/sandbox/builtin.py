"""
Built-in algorithms for Snake Arena.

Each algorithm is kept as source text, exactly as a user would submit it,
so it goes through the same compiler as submissions. They seed the editor
and serve as reference points on the leaderboard.
"""

from __future__ import annotations

from snakearena.core.types import DecisionFunction
from snakearena.sandbox.compiler import compile_algorithm


TEMPLATE_SOURCE = '''\
"""
Your Snake AI algorithm.

Make the snake eat food and survive as long as possible!

Rules:
  - Grid: 16x16x16 cells, edges wrap around
  - Max frames: 25,000 per game (reaching it counts as surviving)
  - Benchmark: 10 games, best average score wins

ctx fields:
  ctx.snake      list of positions, ctx.snake[0] is the head
  ctx.food       current food position
  ctx.score      current score
  ctx.frame      frames survived
  ctx.grid_size  16 (grid runs from -8 to +7)

utils:
  utils.wrap(pos), utils.distance(a, b), utils.equals(a, b),
  utils.key_of(pos), utils.neighbors(pos), utils.step(pos, d),
  utils.create_obstacle_set(cells), utils.find_path(start, goal, obstacles, max_depth),
  utils.normalize_direction(a, b), utils.ALL_DIRECTIONS, utils.GRID_SIZE

Return a direction such as (1, 0, 0), or None if there is no valid move.
"""


def algorithm(ctx):
    head = ctx.snake[0]
    body = utils.create_obstacle_set(ctx.snake[1:])

    # Keep the moves that do not run into our own body
    valid = [d for d in utils.ALL_DIRECTIONS if utils.step(head, d) not in body]
    if not valid:
        return None

    # Pick the one that ends up closest to the food
    return min(valid, key=lambda d: utils.distance(utils.step(head, d), ctx.food))
'''


GREEDY_SOURCE = '''\
# Greedy: always step toward the food by wrapped Manhattan distance,
# never into the body. Simple but surprisingly effective.


def algorithm(ctx):
    head = ctx.snake[0]
    body = ctx.snake[1:]

    best_dir = None
    best_dist = None

    for d in utils.ALL_DIRECTIONS:
        new_head = utils.wrap((head.x + d.x, head.y + d.y, head.z + d.z))

        if any(utils.equals(seg, new_head) for seg in body):
            continue

        dist = utils.distance(new_head, ctx.food)
        if best_dist is None or dist < best_dist:
            best_dist = dist
            best_dir = d

    return best_dir
'''


SMART_SOURCE = '''\
# Smart: BFS to the food, but only take the step if the tail is still
# reachable afterwards. Otherwise follow the tail to buy time.


def algorithm(ctx):
    snake = ctx.snake
    food = ctx.food
    head = snake[0]

    # Tail stays an obstacle while heading for food
    body = utils.create_obstacle_set(snake[1:])
    path_to_food = utils.find_path(head, food, body, 30)

    if path_to_food:
        next_pos = path_to_food[0]

        # Simulate the move
        future = [next_pos] + snake
        if not utils.equals(next_pos, food):
            future.pop()
        future_tail = future[-1]

        # The tail itself is the target, so it is not an obstacle
        future_body = utils.create_obstacle_set(future[1:-1])
        if utils.find_path(next_pos, future_tail, future_body, 20):
            return utils.normalize_direction(head, next_pos)

    # Survival mode: chase the tail
    tail = snake[-1]
    path_to_tail = utils.find_path(head, tail, utils.create_obstacle_set(snake[1:-1]), 20)
    if path_to_tail:
        return utils.normalize_direction(head, path_to_tail[0])

    # Last resort: any free neighbour
    for d in utils.ALL_DIRECTIONS:
        if utils.step(head, d) not in body:
            return d

    return None
'''


DEMO_SOURCE = '''\
# Demo: a 3D spiral that switches axis every 8 frames. No intelligence,
# just movement.

SPIRAL = [
    (1, 0, 0),
    (0, 1, 0),
    (-1, 0, 0),
    (0, -1, 0),
    (0, 0, 1),
    (0, 0, -1),
]


def algorithm(ctx):
    head = ctx.snake[0]
    body = utils.create_obstacle_set(ctx.snake[1:])

    preferred = SPIRAL[(ctx.frame // 8) % len(SPIRAL)]
    if utils.step(head, preferred) not in body:
        return preferred

    for d in utils.ALL_DIRECTIONS:
        if utils.step(head, d) not in body:
            return d

    return None
'''


BUILTIN_ALGORITHMS: dict[str, str] = {
    "template": TEMPLATE_SOURCE,
    "greedy": GREEDY_SOURCE,
    "smart": SMART_SOURCE,
    "demo": DEMO_SOURCE,
}


def load_builtin(name: str, grid_size: int = 16) -> DecisionFunction:
    """
    Compile a built-in algorithm by name.

    Raises:
        KeyError: If no built-in algorithm has that name.
    """
    if name not in BUILTIN_ALGORITHMS:
        raise KeyError(
            f"Unknown built-in algorithm '{name}'. "
            f"Available: {', '.join(sorted(BUILTIN_ALGORITHMS))}"
        )
    return compile_algorithm(BUILTIN_ALGORITHMS[name], grid_size=grid_size)
