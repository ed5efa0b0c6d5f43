"""
Editor page for the Snake Arena UI.

Allows users to:
  - Write an algorithm or load a built-in one
  - Compile it and see sandbox errors
  - Run the headless benchmark, or a visual fast-forward benchmark
  - Build a leaderboard submission record
"""

import json
import time
from copy import deepcopy

import streamlit as st

from snakearena.core.config import get_default_config
from snakearena.core.errors import CompilationError
from snakearena.sandbox.builtin import BUILTIN_ALGORITHMS, TEMPLATE_SOURCE
from snakearena.sandbox.compiler import compile_algorithm
from snakearena.simulation.benchmark import BenchmarkResult, BenchmarkRunner
from snakearena.simulation.playback import FastForwardPlayer
from snakearena.simulation.submission import Submission
from snakearena.ui.components.charts import (
    games_dataframe,
    reason_breakdown,
    scores_by_game,
)
from snakearena.ui.components.grid_view import render_game_3d


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------

def _init_session_state() -> None:
    defaults = {
        "editor_source": TEMPLATE_SOURCE,
        "editor_error": None,
        "editor_result": None,
        "editor_previous_result": None,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


# ---------------------------------------------------------------------------
# Main render
# ---------------------------------------------------------------------------

def render_editor() -> None:
    """Render the algorithm editor page."""
    _init_session_state()
    st.title("📝 Algorithm Editor")

    config = deepcopy(st.session_state.get("config", get_default_config()))

    # --- Load a built-in ---
    col1, col2 = st.columns([3, 1])
    with col1:
        builtin = st.selectbox("Load built-in", options=sorted(BUILTIN_ALGORITHMS), key="ed_builtin")
    with col2:
        st.write("")
        if st.button("📥 Load", key="ed_load"):
            st.session_state.editor_source = BUILTIN_ALGORITHMS[builtin]
            st.session_state.editor_error = None
            st.rerun()

    source = st.text_area(
        "Algorithm source",
        value=st.session_state.editor_source,
        height=420,
        key="ed_source",
    )
    st.session_state.editor_source = source

    # --- Benchmark parameters ---
    col1, col2, col3 = st.columns(3)
    with col1:
        num_games = st.number_input(
            "Games", min_value=1, max_value=1000,
            value=config.benchmark.num_games, step=1, key="ed_games",
        )
    with col2:
        start_seed = st.number_input(
            "Start seed", min_value=0, max_value=999999999,
            value=config.benchmark.start_seed, step=1, key="ed_seed",
        )
    with col3:
        target_seconds = st.number_input(
            "Visual budget (s)", min_value=1.0, max_value=600.0,
            value=float(config.playback.target_seconds), step=5.0, key="ed_budget",
        )

    btn1, btn2, btn3 = st.columns(3)
    compile_btn = btn1.button("🔧 Compile", key="ed_compile")
    bench_btn = btn2.button("🏁 Benchmark", key="ed_bench")
    visual_btn = btn3.button("🎬 Visual Benchmark", key="ed_visual")

    if compile_btn or bench_btn or visual_btn:
        decision_fn = _compile(source, config)
        if decision_fn is not None:
            if compile_btn:
                st.success("Compiled successfully.")
            elif bench_btn:
                _run_headless(decision_fn, config, int(num_games), int(start_seed))
            else:
                _run_visual(decision_fn, config, int(num_games), int(start_seed), float(target_seconds))

    if st.session_state.editor_error:
        st.error(st.session_state.editor_error)

    result = st.session_state.editor_result
    if result is not None:
        _display_result(result, st.session_state.editor_previous_result)
        _render_submission(source, result)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def _compile(source: str, config):
    try:
        fn = compile_algorithm(
            source,
            grid_size=config.game.grid_size,
            max_path_nodes=config.pathfinding.max_nodes,
        )
    except CompilationError as e:
        st.session_state.editor_error = str(e)
        return None
    st.session_state.editor_error = None
    return fn


def _store_result(result: BenchmarkResult) -> None:
    if st.session_state.editor_result is not None:
        st.session_state.editor_previous_result = st.session_state.editor_result
    st.session_state.editor_result = result


def _run_headless(decision_fn, config, num_games: int, start_seed: int) -> None:
    progress_bar = st.progress(0.0, text="Running benchmark...")

    def progress_cb(done: int, total: int) -> None:
        progress_bar.progress(done / total, text=f"Game {done}/{total}")

    runner = BenchmarkRunner(config)
    result = runner.run(decision_fn, num_games, start_seed, progress_callback=progress_cb)
    progress_bar.progress(1.0, text=f"Done in {result.elapsed_seconds:.1f}s")
    _store_result(result)


def _run_visual(decision_fn, config, num_games: int, start_seed: int, target_seconds: float) -> None:
    status = st.empty()
    view = st.empty()
    scores: list[int] = []

    def on_snapshot(snapshot, game_index: int) -> None:
        status.markdown(
            f"**Game {game_index + 1}/{num_games}** | Frame {snapshot.frame} | "
            f"Score {snapshot.score} | Scores so far: {scores}"
        )
        view.plotly_chart(
            render_game_3d(snapshot, grid_size=config.game.grid_size, height=520),
            use_container_width=True,
        )

    def on_game_end(game) -> None:
        scores.append(game.score)

    player = FastForwardPlayer(decision_fn, on_snapshot, on_game_end, config=config)
    start = time.time()
    result = player.play(num_games, start_seed, target_seconds)
    status.markdown(f"Visual benchmark finished in {time.time() - start:.1f}s")
    _store_result(result)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def _display_result(result: BenchmarkResult, previous) -> None:
    st.markdown("---")
    st.subheader("Benchmark Result")

    cols = st.columns(4)
    delta = None
    if previous is not None:
        delta = f"{result.avg_score - previous.avg_score:+.1f}"
    cols[0].metric("Average", f"{result.avg_score:.1f}", delta=delta)
    cols[1].metric("Max", result.max_score)
    cols[2].metric("Min", result.min_score)
    cols[3].metric("Survival", f"{result.survival_rate:.0f}%")

    df = games_dataframe(result.games)
    col1, col2 = st.columns([2, 1])
    with col1:
        st.plotly_chart(scores_by_game(df), use_container_width=True)
    with col2:
        st.plotly_chart(reason_breakdown(result.reason_counts), use_container_width=True)

    with st.expander("Per-game results"):
        st.dataframe(df, use_container_width=True)


def _render_submission(source: str, result: BenchmarkResult) -> None:
    st.markdown("---")
    st.subheader("Submission")

    name = st.text_input("Algorithm name", max_chars=50, key="ed_name")
    if not name.strip():
        st.caption("Enter a name to build a leaderboard record.")
        return

    submission = Submission.from_benchmark(name, source, result)
    errors = submission.validate()
    if errors:
        for err in errors:
            st.error(err)
        return

    payload = json.dumps(submission.to_dict(), indent=2)
    st.code(json.dumps({k: v for k, v in submission.to_dict().items() if k != "code"}, indent=2), language="json")
    st.download_button(
        "💾 Download submission.json",
        data=payload,
        file_name="submission.json",
        mime="application/json",
        key="ed_download",
    )
