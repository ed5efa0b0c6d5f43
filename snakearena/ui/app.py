"""
Snake Arena: Streamlit Web UI

Multi-page application with sidebar navigation:
  1. Editor    Write an algorithm, compile it, benchmark it
  2. Playback  Watch one game in 3D, step by step or auto-play
  3. Results   Browse and compare past benchmark runs
"""

import streamlit as st
from pathlib import Path

# Must be the very first Streamlit command
st.set_page_config(
    page_title="Snake Arena",
    page_icon="🐍",
    layout="wide",
    initial_sidebar_state="expanded",
)


def main() -> None:
    """Main entry point for the Streamlit app."""

    # --- Sidebar navigation ---
    st.sidebar.title("🐍 Snake Arena")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        options=[
            "🏠 Home",
            "📝 Editor",
            "🎮 Playback",
            "📊 Results Viewer",
        ],
        index=0,
    )

    # --- Page routing ---
    if page == "🏠 Home":
        _render_home()
    elif page == "📝 Editor":
        from snakearena.ui.pages.editor import render_editor
        render_editor()
    elif page == "🎮 Playback":
        from snakearena.ui.pages.playback import render_playback
        render_playback()
    elif page == "📊 Results Viewer":
        from snakearena.ui.pages.results_viewer import render_results_viewer
        render_results_viewer()


def _render_home() -> None:
    """Render the home page."""
    from snakearena.core.config import get_default_config
    from snakearena.logging.run_manager import RunManager
    from snakearena.sandbox.builtin import BUILTIN_ALGORITHMS

    config = st.session_state.get("config", get_default_config())
    game = config.game

    st.title("🐍 Snake Arena")
    st.markdown(f"""
    Write a Python function that steers a snake through a **{game.grid_size}×{game.grid_size}×{game.grid_size}**
    wrap-around grid. Eat food, don't bite yourself, and survive as long as you can.

    ### Quick Start

    1. **📝 Editor**: Start from the template or a built-in algorithm, compile it and
       run the benchmark ({config.benchmark.num_games} games, seeds {config.benchmark.start_seed} and up)
    2. **🎮 Playback**: Watch your snake play a single game in 3D
    3. **📊 Results Viewer**: Browse past runs saved from the CLI and compare them

    ### Rules

    | Rule | Value |
    |------|-------|
    | **Food** | +{game.food_score} points, snake grows by one |
    | **Frame limit** | {game.max_frames:,} frames (reaching it counts as surviving) |
    | **Time limit** | {game.tick_budget_ms:.0f} ms per decision |
    | **Game over** | Self collision, no valid move, an error or a slow decision |
    | **Score** | Average over all benchmark games |
    """)

    st.markdown("---")
    col1, col2, col3 = st.columns(3)

    runs_dir = Path(config.output.output_dir)
    col1.metric("📁 Past Runs", len(RunManager.list_runs(runs_dir)))
    col2.metric("🤖 Built-in Algorithms", len(BUILTIN_ALGORITHMS))
    col3.metric("🎯 Max Frames", f"{game.max_frames:,}")


if __name__ == "__main__":
    main()
