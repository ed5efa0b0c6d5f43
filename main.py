"""
Snake Arena: CLI Entry Point

Usage:
    python main.py --mode benchmark --algorithm smart
    python main.py --mode benchmark --algorithm my_algo.py --games 25 --parallel
    python main.py --mode play --algorithm greedy --seed 7
    python main.py --ui
"""

import argparse
import sys
import threading
import time
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Snake Arena: Benchmark 3D snake algorithms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --ui                                          Launch Streamlit UI
  python main.py --mode benchmark --algorithm smart            Benchmark a built-in algorithm
  python main.py --mode benchmark --algorithm algo.py --name "My Snake"   Benchmark and write a submission
  python main.py --mode play --algorithm algo.py --seed 3      Watch one game in the terminal
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["benchmark", "play"],
        default=None,
        help="Run mode: 'benchmark' for a scored batch, 'play' to watch one game",
    )
    parser.add_argument(
        "--algorithm",
        type=str,
        default="smart",
        help="Path to an algorithm .py file, or a built-in name (template, greedy, smart, demo)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_config.json",
        help="Path to JSON config file (default: config/default_config.json)",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch Streamlit web UI (ignores --mode)",
    )
    parser.add_argument(
        "--games",
        type=int,
        default=None,
        help="Override number of benchmark games",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override start seed (benchmark) or game seed (play)",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run benchmark games in worker processes (benchmark.parallel_workers)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Override output directory",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Algorithm name; writes submission.json for the run",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: config value, or SNAKEARENA_LOG_LEVEL)",
    )

    return parser.parse_args()


def launch_ui() -> None:
    """Launch the Streamlit web UI."""
    import subprocess
    ui_path = Path(__file__).parent / "snakearena" / "ui" / "app.py"
    if not ui_path.exists():
        print(f"Error: UI app not found at {ui_path}")
        sys.exit(1)
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(ui_path),
            "--server.port=8501",
            "--server.headless=true",
            "--browser.gatherUsageStats=false",
        ],
        check=True,
    )


def load_arena_config(config_path: str):
    """Load the config file, or defaults if it doesn't exist."""
    from snakearena.core.config import get_default_config, load_config

    if Path(config_path).exists():
        return load_config(config_path)
    print(f"  (config {config_path} not found, using defaults)")
    return get_default_config()


def resolve_algorithm(choice: str) -> tuple[str, str]:
    """
    Resolve --algorithm to (label, source).

    A path to an existing file wins over a built-in of the same name.
    """
    from snakearena.sandbox.builtin import BUILTIN_ALGORITHMS

    path = Path(choice)
    if path.is_file():
        return path.stem, path.read_text(encoding="utf-8")
    if choice in BUILTIN_ALGORITHMS:
        return choice, BUILTIN_ALGORITHMS[choice]

    print(f"Error: '{choice}' is neither a file nor a built-in algorithm "
          f"({', '.join(sorted(BUILTIN_ALGORITHMS))}).")
    sys.exit(1)


def run_benchmark_mode(config, label: str, source: str, parallel: bool = False,
                       name: str | None = None, output_dir: str | None = None) -> None:
    """Benchmark an algorithm and write the run directory."""
    from snakearena.core.errors import CompilationError
    from snakearena.logging.run_manager import RunManager
    from snakearena.simulation.benchmark import BenchmarkRunner
    from snakearena.simulation.submission import Submission

    bench = config.benchmark
    out_dir = output_dir or config.output.output_dir

    print(f"[Snake Arena] Benchmark")
    print(f"  Algorithm: {label}")
    print(f"  Games: {bench.num_games} (seeds {bench.start_seed}..{bench.start_seed + bench.num_games - 1})")
    print(f"  Grid: {config.game.grid_size}^3, max frames {config.game.max_frames}")
    print(f"  Workers: {bench.parallel_workers if parallel else 1}")
    if parallel and config.output.save_replays:
        print("  (replays are recorded in-process, so games run sequentially)")
    print(f"  Output: {out_dir}")
    print()

    run_manager = RunManager(config, base_dir=out_dir)
    run_manager.save_source(source)
    runner = BenchmarkRunner(config)

    def on_game_end(game) -> None:
        run_manager.log_game(game)
        print(f"  Game {game.game_index + 1:3d} | Seed {game.seed:6d} | "
              f"Score: {game.score:6d} | Frames: {game.frames:6d} | {game.reason_detail}")

    try:
        result = runner.run_source(
            source,
            parallel=parallel,
            on_game_start=run_manager.attach_recorder if run_manager.replay_recorder is not None else None,
            on_game_end=on_game_end,
        )
    except CompilationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print()
    print(f"[Result]")
    print(f"  Scores: {result.scores}")
    print(f"  Average: {result.avg_score:.2f}")
    print(f"  Max / Min: {result.max_score} / {result.min_score}")
    print(f"  Survival rate: {result.survival_rate:.0f}%")
    print(f"  Elapsed: {result.elapsed_seconds:.1f}s")

    submission = None
    if name is not None:
        submission = Submission.from_benchmark(name, source, result)
        errors = submission.validate()
        if errors:
            print("  Submission not written:")
            for err in errors:
                print(f"    - {err}")
            submission = None
        else:
            print(f"  Submission: {submission.name} ({submission.lines_of_code} lines of code)")

    run_manager.finalize(result, submission)
    print(f"  Output saved to: {run_manager.run_dir}")


def run_play_mode(config, label: str, source: str, seed: int | None = None) -> None:
    """Play one game with a live status line."""
    from snakearena.core.errors import CompilationError
    from snakearena.sandbox.compiler import compile_algorithm
    from snakearena.simulation.playback import PlaybackController

    try:
        decision_fn = compile_algorithm(
            source,
            grid_size=config.game.grid_size,
            max_path_nodes=config.pathfinding.max_nodes,
        )
    except CompilationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    finished = threading.Event()

    def on_state_change(state) -> None:
        head = state.head
        print(f"\r  Frame {state.frame:6d} | Score: {state.score:6d} | Length: {state.length:4d} | "
              f"Head: ({head.x:3d},{head.y:3d},{head.z:3d})", end="", flush=True)

    def on_game_end(score: int) -> None:
        finished.set()

    controller = PlaybackController(
        decision_fn, on_state_change, on_game_end, seed=seed, config=config,
    )

    print(f"[Snake Arena] Playing {label} (seed {controller.seed}, "
          f"{controller.interval_ms}ms x {controller.ticks_per_step} ticks)")
    start_time = time.time()
    controller.start()
    try:
        finished.wait()
    except KeyboardInterrupt:
        print("\n  Interrupted.")
    finally:
        controller.destroy()

    state = controller.get_state()
    print()
    print(f"[Result]")
    print(f"  Score: {state.score}")
    print(f"  Frames: {state.frame}")
    print(f"  Ended: {state.reason_detail or 'stopped'}")
    print(f"  Elapsed: {time.time() - start_time:.1f}s")


def main() -> None:
    args = parse_args()

    if args.ui:
        launch_ui()
        return

    if args.mode is None:
        print("Error: Specify --mode (benchmark|play) or --ui to launch the web interface.")
        print("Run with --help for usage information.")
        sys.exit(1)

    from snakearena.core.errors import ConfigError
    from snakearena.logging.log_config import configure_logging

    try:
        config = load_arena_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.games is not None:
        config.benchmark.num_games = args.games
    if args.seed is not None:
        config.benchmark.start_seed = args.seed

    errors = config.validate()
    if errors:
        print("Error: invalid settings:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)

    configure_logging(args.log_level, default=config.logging.level)
    label, source = resolve_algorithm(args.algorithm)

    if args.mode == "benchmark":
        run_benchmark_mode(
            config, label, source,
            parallel=args.parallel,
            name=args.name,
            output_dir=args.output,
        )
    elif args.mode == "play":
        run_play_mode(config, label, source, seed=args.seed)


if __name__ == "__main__":
    main()
