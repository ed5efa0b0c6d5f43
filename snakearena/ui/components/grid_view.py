"""
3D Grid View component for the Snake Arena UI.

Renders a game state using Plotly:
  - Snake body as a connected line of cubes, head highlighted
  - Food as a red diamond
  - Supports both Snapshot objects and replay frame dicts
"""

from typing import Optional, Union

import numpy as np
import plotly.graph_objects as go

from snakearena.core.types import Snapshot


def _frame_arrays(state: Union[Snapshot, dict]) -> tuple[np.ndarray, np.ndarray, dict]:
    """Body as an (n, 3) array, food as (3,), plus display metadata."""
    if isinstance(state, Snapshot):
        body = np.array(state.body, dtype=int).reshape(-1, 3)
        food = np.array(state.food, dtype=int)
        meta = {
            "frame": state.frame,
            "score": state.score,
            "is_over": state.is_over,
            "reason": state.reason_detail,
        }
    else:
        body = np.array([[p["x"], p["y"], p["z"]] for p in state.get("body", [])], dtype=int).reshape(-1, 3)
        f = state.get("food", {"x": 0, "y": 0, "z": 0})
        food = np.array([f["x"], f["y"], f["z"]], dtype=int)
        meta = {
            "frame": state.get("frame", "?"),
            "score": state.get("score", 0),
            "is_over": state.get("isOver", False),
            "reason": state.get("reasonDetail"),
        }
    return body, food, meta


def _split_on_wrap(body: np.ndarray) -> list[np.ndarray]:
    """Split the body into runs so lines never cross the grid at a wrap."""
    if len(body) < 2:
        return [body]
    jumps = np.abs(np.diff(body, axis=0)).sum(axis=1) > 1
    cut_points = np.nonzero(jumps)[0] + 1
    return np.split(body, cut_points)


def render_game_3d(
    state: Union[Snapshot, dict],
    grid_size: int = 16,
    title: Optional[str] = None,
    width: int = 700,
    height: int = 650,
) -> go.Figure:
    """
    Render one game state as a 3D scatter.

    Args:
        state: Snapshot or replay frame dict (keys body, food, score, frame).
        grid_size: Cells per axis; the axes span [-grid_size/2, grid_size/2).
        title: Optional chart title.
        width: Plot width in pixels.
        height: Plot height in pixels.

    Returns:
        Plotly figure.
    """
    body, food, meta = _frame_arrays(state)
    half = grid_size // 2

    if title is None:
        title = f"Frame {meta['frame']} | Score {meta['score']} | Length {len(body)}"
        if meta["is_over"]:
            title += f" | Game over: {meta['reason']}"

    fig = go.Figure()

    # --- Body segments (lines broken at wrap-around) ---
    for i, run in enumerate(_split_on_wrap(body)):
        if len(run) == 0:
            continue
        fig.add_trace(go.Scatter3d(
            x=run[:, 0], y=run[:, 1], z=run[:, 2],
            mode="lines+markers",
            line=dict(color="rgba(46, 204, 113, 0.8)", width=6),
            marker=dict(symbol="square", size=5, color="rgba(39, 174, 96, 0.9)"),
            name="Body",
            showlegend=i == 0,
            hovertemplate="Body (%{x}, %{y}, %{z})<extra></extra>",
        ))

    # --- Head ---
    if len(body):
        fig.add_trace(go.Scatter3d(
            x=[body[0, 0]], y=[body[0, 1]], z=[body[0, 2]],
            mode="markers",
            marker=dict(size=8, color="rgba(241, 196, 15, 1.0)",
                        line=dict(width=1, color="rgba(0,0,0,0.5)")),
            name="Head",
            hovertemplate="Head (%{x}, %{y}, %{z})<extra></extra>",
        ))

    # --- Food ---
    fig.add_trace(go.Scatter3d(
        x=[food[0]], y=[food[1]], z=[food[2]],
        mode="markers",
        marker=dict(symbol="diamond", size=7, color="rgba(231, 76, 60, 0.9)"),
        name="Food",
        hovertemplate="Food (%{x}, %{y}, %{z})<extra></extra>",
    ))

    axis = dict(range=[-half - 0.5, half - 0.5], dtick=4)
    fig.update_layout(
        title=title,
        width=width,
        height=height,
        scene=dict(
            xaxis=dict(title="X", **axis),
            yaxis=dict(title="Y", **axis),
            zaxis=dict(title="Z", **axis),
            aspectmode="cube",
        ),
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(l=10, r=10, t=60, b=10),
        uirevision="snake",
    )

    return fig
