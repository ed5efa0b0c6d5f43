"""
Results Viewer page for the Snake Arena UI.

Allows users to:
  - Browse past benchmark runs from the runs/ directory
  - View per-game scores and how games ended
  - Replay recorded games frame by frame
  - Compare runs side-by-side
"""

import json
from pathlib import Path

import pandas as pd
import streamlit as st

from snakearena.core.config import ArenaConfig, get_default_config
from snakearena.logging.run_manager import RunManager
from snakearena.logging.snapshot import ReplayRecorder
from snakearena.ui.components.charts import (
    compare_runs,
    reason_breakdown,
    score_distribution,
    scores_by_game,
)
from snakearena.ui.components.grid_view import render_game_3d


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _discover_runs(base_dir: str) -> list[dict]:
    """Describe every run directory under base_dir, newest first."""
    runs = []
    for name in reversed(RunManager.list_runs(base_dir)):
        path = Path(base_dir) / name
        run_info = {
            "name": name,
            "path": path,
            "has_games": (path / "games.csv").exists(),
            "has_submission": (path / "submission.json").exists(),
            "has_replays": (path / "replays").exists(),
        }
        try:
            run_info["summary"] = RunManager.load_summary(path) or {}
        except (OSError, json.JSONDecodeError) as e:
            st.warning(f"Could not read summary of {name}: {e}")
            run_info["summary"] = {}
        runs.append(run_info)
    return runs


def _load_games_csv(path: Path) -> pd.DataFrame:
    if not path.exists():
        return pd.DataFrame()
    return pd.read_csv(path)


def _load_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Main render
# ---------------------------------------------------------------------------

def render_results_viewer() -> None:
    """Render the results viewer page."""
    st.title("📊 Results Viewer")

    config = st.session_state.get("config", get_default_config())
    base_dir = st.text_input("Output directory", value=config.output.output_dir, key="rv_basedir")
    runs = _discover_runs(base_dir)

    if not runs:
        st.info("No runs found. Run `python main.py --mode benchmark` first!")
        return

    st.markdown(f"Found **{len(runs)}** runs in `{base_dir}/`")

    tab_browse, tab_replay, tab_compare = st.tabs([
        "📁 Browse Runs",
        "🎞️ Replays",
        "📊 Compare Runs",
    ])

    with tab_browse:
        _render_browse(runs)

    with tab_replay:
        _render_replays(runs)

    with tab_compare:
        _render_compare(runs)


# ---------------------------------------------------------------------------
# Browse tab
# ---------------------------------------------------------------------------

def _render_browse(runs: list[dict]) -> None:
    selected_name = st.selectbox("Select run", options=[r["name"] for r in runs], key="rv_run_sel")
    run = next((r for r in runs if r["name"] == selected_name), None)
    if run is None:
        return

    st.markdown(f"### Run: `{selected_name}`")
    summary = run["summary"]
    if summary:
        cols = st.columns(5)
        cols[0].metric("Average", f"{summary.get('avgScore', 0):.1f}")
        cols[1].metric("Max", summary.get("maxScore", "N/A"))
        cols[2].metric("Min", summary.get("minScore", "N/A"))
        cols[3].metric("Survival", f"{summary.get('survivalRate', 0):.0f}%")
        cols[4].metric("Elapsed", f"{summary.get('elapsedSeconds', 'N/A')}s")

    df = _load_games_csv(run["path"] / "games.csv")
    if not df.empty:
        col1, col2 = st.columns([2, 1])
        with col1:
            st.plotly_chart(scores_by_game(df), use_container_width=True)
        with col2:
            st.plotly_chart(reason_breakdown(summary.get("reasonCounts", {})), use_container_width=True)
        st.plotly_chart(score_distribution(df["score"]), use_container_width=True)
        with st.expander("📄 Per-game results"):
            st.dataframe(df, use_container_width=True)
            st.download_button(
                "Download games.csv",
                data=df.to_csv(index=False),
                file_name=f"{selected_name}_games.csv",
                mime="text/csv",
                key="rv_dl_games",
            )

    if run["has_submission"]:
        with st.expander("🏆 Submission"):
            submission = _load_json(run["path"] / "submission.json")
            st.json({k: v for k, v in submission.items() if k != "code"})

    source_path = run["path"] / "algorithm.py"
    if source_path.exists():
        with st.expander("🐍 Algorithm source"):
            st.code(source_path.read_text(encoding="utf-8"), language="python")

    with st.expander("⚙️ Configuration"):
        st.json(_load_json(run["path"] / "config.json"))


# ---------------------------------------------------------------------------
# Replay tab
# ---------------------------------------------------------------------------

def _render_replays(runs: list[dict]) -> None:
    with_replays = [r for r in runs if r["has_replays"]]
    if not with_replays:
        st.info("No recorded replays. Set `output.save_replays` to true before benchmarking.")
        return

    selected_name = st.selectbox("Run", options=[r["name"] for r in with_replays], key="rv_rep_run")
    run = next(r for r in with_replays if r["name"] == selected_name)

    recorder = ReplayRecorder(run["path"])
    indices = recorder.list_replays()
    if not indices:
        st.info("This run has no saved games.")
        return

    game_index = st.selectbox(
        "Game", options=indices, format_func=lambda i: f"Game {i + 1}", key="rv_rep_game",
    )
    replay = recorder.load(game_index)
    frames = replay.get("frames", [])
    if not frames:
        st.warning("Replay is empty.")
        return

    run_config = ArenaConfig.from_dict(_load_json(run["path"] / "config.json"))
    pos = st.slider("Frame", min_value=0, max_value=len(frames) - 1, value=len(frames) - 1, key="rv_rep_frame")
    st.caption(f"Seed {replay.get('seed')} | every {replay.get('every_n_ticks', 1)} ticks recorded")
    st.plotly_chart(
        render_game_3d(frames[pos], grid_size=run_config.game.grid_size),
        use_container_width=True,
    )


# ---------------------------------------------------------------------------
# Compare tab
# ---------------------------------------------------------------------------

def _render_compare(runs: list[dict]) -> None:
    with_summary = [r for r in runs if r["summary"]]
    if len(with_summary) < 2:
        st.info("Need at least 2 runs with a summary to compare.")
        return

    selected = st.multiselect(
        "Runs",
        options=[r["name"] for r in with_summary],
        default=[r["name"] for r in with_summary[:3]],
        key="rv_cmp_runs",
    )
    if not selected:
        return

    summaries = {r["name"]: r["summary"] for r in with_summary if r["name"] in selected}
    metric = st.selectbox(
        "Metric", options=["avgScore", "maxScore", "minScore", "survivalRate"], key="rv_cmp_metric",
    )
    st.plotly_chart(compare_runs(summaries, metric), use_container_width=True)

    table = pd.DataFrame([
        {
            "run": name,
            "avgScore": s.get("avgScore"),
            "maxScore": s.get("maxScore"),
            "minScore": s.get("minScore"),
            "survivalRate": s.get("survivalRate"),
            "gamesPlayed": s.get("gamesPlayed"),
        }
        for name, s in summaries.items()
    ])
    st.dataframe(table, use_container_width=True)
