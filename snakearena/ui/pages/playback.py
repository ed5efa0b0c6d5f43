"""
Playback page for the Snake Arena UI.

Allows users to:
  - Pick the editor's algorithm or a built-in one
  - Step through a single game or auto-play it at a chosen speed
  - Reset with a new seed
"""

import time
from copy import deepcopy

import streamlit as st

from snakearena.core.config import get_default_config
from snakearena.core.errors import CompilationError
from snakearena.sandbox.builtin import BUILTIN_ALGORITHMS
from snakearena.sandbox.compiler import compile_algorithm
from snakearena.simulation.playback import PlaybackController
from snakearena.ui.components.grid_view import render_game_3d


EDITOR_CHOICE = "(editor source)"


def _init_session_state() -> None:
    defaults = {
        "pb_controller": None,
        "pb_label": None,
        "pb_final_score": None,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def _on_game_end(score: int) -> None:
    st.session_state.pb_final_score = score


def _new_controller(choice: str, seed: int, config):
    if choice == EDITOR_CHOICE:
        source = st.session_state.get("editor_source")
        if not source:
            st.warning("The editor is empty. Write an algorithm on the Editor page first.")
            return None
    else:
        source = BUILTIN_ALGORITHMS[choice]

    try:
        decision_fn = compile_algorithm(
            source,
            grid_size=config.game.grid_size,
            max_path_nodes=config.pathfinding.max_nodes,
        )
    except CompilationError as e:
        st.error(str(e))
        return None

    # Streamlit drives the steps itself; state changes are read from step()
    return PlaybackController(
        decision_fn,
        on_state_change=lambda snapshot: None,
        on_game_end=_on_game_end,
        seed=seed,
        config=config,
    )


def render_playback() -> None:
    """Render the single game playback page."""
    _init_session_state()
    st.title("🎮 Playback")

    config = deepcopy(st.session_state.get("config", get_default_config()))

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        choice = st.selectbox(
            "Algorithm", options=[EDITOR_CHOICE] + sorted(BUILTIN_ALGORITHMS), key="pb_choice",
        )
    with col2:
        seed = st.number_input("Seed", min_value=0, max_value=999999999, value=1, step=1, key="pb_seed")
    with col3:
        ticks_per_step = st.select_slider(
            "Speed (ticks per step)", options=[1, 2, 5, 10, 25, 50, 100], value=1, key="pb_speed",
        )
    with col4:
        auto_steps = st.number_input(
            "Auto-play steps", min_value=1, max_value=5000, value=200, step=50, key="pb_auto",
        )

    btn1, btn2, btn3 = st.columns(3)
    load_btn = btn1.button("🔄 New Game", key="pb_new")
    step_btn = btn2.button("⏭️ Step", key="pb_step")
    play_btn = btn3.button("▶️ Auto-play", key="pb_play")

    label = f"{choice}:{seed}"
    if load_btn or st.session_state.pb_controller is None or st.session_state.pb_label != label:
        st.session_state.pb_controller = _new_controller(choice, int(seed), config)
        st.session_state.pb_label = label
        st.session_state.pb_final_score = None

    controller = st.session_state.pb_controller
    if controller is None:
        return
    controller.set_speed(ticks_per_step=int(ticks_per_step))

    status = st.empty()
    view = st.empty()

    if step_btn:
        controller.step()
    elif play_btn:
        interval = controller.interval_ms / 1000.0
        for _ in range(int(auto_steps)):
            snapshot = controller.step()
            _draw(status, view, snapshot, config)
            if snapshot.is_over:
                break
            time.sleep(interval)

    _draw(status, view, controller.get_state(), config)

    if st.session_state.pb_final_score is not None:
        st.info(f"Game over with score {st.session_state.pb_final_score}.")


def _draw(status, view, snapshot, config) -> None:
    cols = status.columns(4)
    cols[0].metric("Frame", snapshot.frame)
    cols[1].metric("Score", snapshot.score)
    cols[2].metric("Length", snapshot.length)
    cols[3].metric("State", snapshot.reason_detail if snapshot.is_over else "running")
    view.plotly_chart(
        render_game_3d(snapshot, grid_size=config.game.grid_size),
        use_container_width=True,
    )
