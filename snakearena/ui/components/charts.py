"""
Reusable chart components for the Snake Arena UI.

Provides helper functions that return Plotly figures for:
  - Per-game scores with the batch average
  - Score distribution histogram
  - Game-over reason breakdown
  - Run comparison bar charts
"""

from typing import Optional

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def games_dataframe(games: list) -> pd.DataFrame:
    """DataFrame with one row per GameResult (CSV column names)."""
    return pd.DataFrame([g.to_row() for g in games])


# ---------------------------------------------------------------------------
# Score charts
# ---------------------------------------------------------------------------

def scores_by_game(
    df: pd.DataFrame,
    title: str = "Score per Game",
) -> go.Figure:
    """
    Bar chart of scores per game, with the average as a dashed line.

    Args:
        df: Per-game DataFrame (needs 'score'; 'game_index', 'survived' optional).
        title: Chart title.

    Returns:
        Plotly figure.
    """
    x = df["game_index"] + 1 if "game_index" in df.columns else np.arange(1, len(df) + 1)
    survived = df["survived"].astype(str).str.lower() == "true" if "survived" in df.columns else None
    colors = np.where(survived, "#2ecc71", "#3498db") if survived is not None else "#3498db"

    fig = go.Figure(data=[
        go.Bar(
            x=x,
            y=df["score"],
            marker_color=colors,
            name="Score",
            hovertemplate="Game %{x}<br>Score: %{y}<extra></extra>",
        )
    ])

    if len(df):
        avg = float(np.mean(df["score"]))
        fig.add_hline(
            y=avg,
            line_dash="dash",
            line_color="#e74c3c",
            annotation_text=f"avg {avg:.1f}",
            annotation_position="top left",
        )

    fig.update_layout(
        title=title,
        xaxis_title="Game",
        yaxis_title="Score",
        template="plotly_white",
    )
    return fig


def score_distribution(
    scores: list[int] | np.ndarray,
    title: str = "Score Distribution",
    bins: int = 20,
) -> go.Figure:
    """Histogram of game scores."""
    fig = go.Figure(data=[
        go.Histogram(
            x=scores,
            nbinsx=bins,
            marker_color="#f39c12",
            opacity=0.75,
        )
    ])
    fig.update_layout(
        title=title,
        xaxis_title="Score",
        yaxis_title="Games",
        template="plotly_white",
    )
    return fig


# ---------------------------------------------------------------------------
# Outcome charts
# ---------------------------------------------------------------------------

def reason_breakdown(
    reason_counts: dict[str, int],
    title: str = "How Games Ended",
) -> go.Figure:
    """Pie chart of game-over reasons."""
    if not reason_counts:
        fig = go.Figure()
        fig.update_layout(title=title, template="plotly_white")
        return fig

    df = pd.DataFrame(
        {"reason": list(reason_counts.keys()), "games": list(reason_counts.values())}
    )
    fig = px.pie(df, names="reason", values="games", title=title, hole=0.4)
    fig.update_layout(template="plotly_white")
    return fig


def compare_runs(
    summaries: dict[str, dict],
    metric: str = "avgScore",
    title: Optional[str] = None,
) -> go.Figure:
    """
    Bar chart comparing one summary metric across runs.

    Args:
        summaries: Run name → summary.json dict.
        metric: Summary key to compare (e.g. 'avgScore', 'survivalRate').
        title: Chart title.

    Returns:
        Plotly figure.
    """
    names = list(summaries.keys())
    values = [summaries[n].get(metric, 0) for n in names]

    fig = go.Figure(data=[
        go.Bar(x=names, y=values, marker_color="#9b59b6")
    ])
    fig.update_layout(
        title=title or f"{metric} by Run",
        xaxis_title="Run",
        yaxis_title=metric,
        template="plotly_white",
    )
    return fig
