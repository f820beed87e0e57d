"""Figures, tables and text shown alongside a compound process run."""

import math
from typing import Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from compound_process import ProcessParameters, SummaryStatistics, theoretical_moments
from process_config import DISPLAY_QUANTILE, GRID_COLUMNS, HISTOGRAM_BINS, TIME_HORIZONS

PARAMETER_IMPACT = (
    "λ (arrival rate) impact:\n"
    "- Increases both mean and variance\n"
    "- More frequent claims → higher S(t)\n"
    "\n"
    "μ (claim size) impact:\n"
    "- Higher μ = smaller claims\n"
    "- Reduces mean and variance\n"
    "- Effect on variance is squared (1/μ²)"
)

STATS_COLUMNS = [
    "Time",
    "Theoretical_Mean",
    "Simulated_Mean",
    "Theoretical_Variance",
    "Simulated_Variance",
    "P(S(t)=0)",
]


def theory_text(lambda_: float, mu: float, time_horizons: Iterable[float] = TIME_HORIZONS) -> str:
    """E[S(t)] and Var[S(t)] for each horizon, as a plain text block."""
    lines = []
    for t in time_horizons:
        moments = theoretical_moments(t, lambda_, mu)
        lines.append(
            f"t = {t:g}:\n"
            f"  E[S(t)] = {moments.mean:.2f}\n"
            f"  Var[S(t)] = {moments.variance:.2f}\n\n"
        )
    return "".join(lines)


def trim_for_display(sample: Sequence[float], quantile: float = DISPLAY_QUANTILE) -> np.ndarray:
    """
    Drop values above the given quantile so the histogram is not flattened
    by a few extreme totals. Only for plotting; statistics use the full sample.
    """
    values = np.asarray(sample, dtype=float)
    if values.size == 0:
        return values.copy()
    cutoff = np.quantile(values, quantile)
    return values[values <= cutoff]


def build_histogram_grid(
    samples: Dict[float, np.ndarray],
    parameters: ProcessParameters,
    bins: int = HISTOGRAM_BINS,
) -> go.Figure:
    """Density histogram per horizon with the theoretical mean marked."""
    horizons = list(samples)
    n_rows = max(1, math.ceil(len(horizons) / GRID_COLUMNS))
    means = {
        t: theoretical_moments(t, parameters.lambda_, parameters.mu).mean
        for t in horizons
    }
    titles = [f"t = {t:g}<br><sup>Theoretical mean: {means[t]:.2f}</sup>" for t in horizons]

    fig = make_subplots(rows=n_rows, cols=GRID_COLUMNS, subplot_titles=titles)
    for idx, t in enumerate(horizons):
        row, col = idx // GRID_COLUMNS + 1, idx % GRID_COLUMNS + 1
        fig.add_trace(
            go.Histogram(
                x=trim_for_display(samples[t]),
                nbinsx=bins,
                histnorm="probability density",
                marker=dict(color="lightblue", line=dict(color="black", width=1)),
                opacity=0.7,
                name=f"t = {t:g}",
                showlegend=False,
            ),
            row=row,
            col=col,
        )
        fig.add_vline(x=means[t], line_dash="dash", line_color="red", line_width=2, row=row, col=col)
        fig.update_xaxes(title_text="S(t)", row=row, col=col)
        fig.update_yaxes(title_text="Density", row=row, col=col)

    fig.update_layout(
        title=f"Compound Process S(t) Distribution<br>λ = {parameters.lambda_:g}, μ = {parameters.mu:g}",
        height=400 * n_rows,
        template="plotly_white",
    )
    return fig


def build_stats_table(summaries: List[SummaryStatistics]) -> pd.DataFrame:
    """Distribution statistics, one row per horizon."""
    df = pd.DataFrame([s.as_row() for s in summaries], columns=STATS_COLUMNS)
    return df.round({
        "Theoretical_Mean": 2,
        "Simulated_Mean": 2,
        "Theoretical_Variance": 2,
        "Simulated_Variance": 2,
        "P(S(t)=0)": 4,
    })
