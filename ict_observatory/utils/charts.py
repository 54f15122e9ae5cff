"""
Plotly figures for policy maturity dashboards.

Figures are returned as ``go.Figure`` objects; the API serialises them with
``figure_to_payload`` so a browser client can hand them straight to Plotly.js.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import numpy as np
import plotly.graph_objects as go

from ..domain.framework import STAGE_COLORS, THEMES_BY_CODE, Stage
from ..domain.models import PolicyAssessment, TrendPoint
from ..domain.scoring import (
    ADVANCED_THRESHOLD,
    EMERGING_THRESHOLD,
    ESTABLISHED_THRESHOLD,
    score_to_stage,
)


def hex_to_rgb(h: str) -> tuple[int, int, int]:
    h = h.lstrip("#")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    r, g, b = rgb
    return f"#{r:02X}{g:02X}{b:02X}"


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# stage anchors as colour stops
SCORE_STOPS: list[tuple[float, str]] = [
    (25.0, STAGE_COLORS[Stage.LATENT]),
    (50.0, STAGE_COLORS[Stage.EMERGING]),
    (75.0, STAGE_COLORS[Stage.ESTABLISHED]),
    (100.0, STAGE_COLORS[Stage.ADVANCED]),
]

# y-ranges shaded behind the trend lines
STAGE_BANDS: list[tuple[Stage, float, float]] = [
    (Stage.LATENT, 0.0, EMERGING_THRESHOLD),
    (Stage.EMERGING, EMERGING_THRESHOLD, ESTABLISHED_THRESHOLD),
    (Stage.ESTABLISHED, ESTABLISHED_THRESHOLD, ADVANCED_THRESHOLD),
    (Stage.ADVANCED, ADVANCED_THRESHOLD, 100.0),
]


def stage_color(score: float) -> str:
    return STAGE_COLORS[score_to_stage(score)]


def gradient_color(value: float, stops: list[tuple[float, str]] = SCORE_STOPS) -> str:
    """Piecewise-linear interpolation across hex color stops."""
    v = float(value)
    if v <= stops[0][0]:
        return stops[0][1]
    if v >= stops[-1][0]:
        return stops[-1][1]
    for i in range(len(stops) - 1):
        v0, c0 = stops[i]
        v1, c1 = stops[i + 1]
        if v0 <= v <= v1:
            t = 0.0 if v1 == v0 else (v - v0) / (v1 - v0)
            r0, g0, b0 = hex_to_rgb(c0)
            r1, g1, b1 = hex_to_rgb(c1)
            return rgb_to_hex(
                (int(round(lerp(r0, r1, t))), int(round(lerp(g0, g1, t))), int(round(lerp(b0, b1, t))))
            )
    return stops[-1][1]


def _theme_label(code: str) -> str:
    definition = THEMES_BY_CODE.get(code)
    return definition.name if definition else code


def make_trend_figure(
    points: Sequence[TrendPoint],
    include_themes: bool = True,
    title: str = "Policy maturity over time",
) -> go.Figure:
    """
    Line chart of the overall score, and optionally each theme score, per assessment date.

    Points are plotted in the order given; pass the output of
    ``calculate_policy_trends`` to get a chronological x-axis.
    """
    fig = go.Figure()

    for stage, low, high in STAGE_BANDS:
        fig.add_hrect(
            y0=low,
            y1=high,
            fillcolor=STAGE_COLORS[stage],
            opacity=0.08,
            line_width=0,
            annotation_text=stage.value,
            annotation_position="right",
        )

    dates = [p.date.isoformat() for p in points]

    if include_themes:
        theme_codes: list[str] = []
        for p in points:
            for code in p.theme_scores:
                if code not in theme_codes:
                    theme_codes.append(code)
        for code in theme_codes:
            fig.add_trace(
                go.Scatter(
                    x=dates,
                    y=[p.theme_scores.get(code) for p in points],
                    mode="lines+markers",
                    name=_theme_label(code),
                    line=dict(width=1, dash="dot"),
                    opacity=0.6,
                    connectgaps=False,
                )
            )

    fig.add_trace(
        go.Scatter(
            x=dates,
            y=[p.overall_score for p in points],
            mode="lines+markers",
            name="Overall",
            line=dict(width=3, color="#111827"),
            marker=dict(size=10, color=[stage_color(p.overall_score) for p in points]),
            customdata=[p.stage.value for p in points],
            hovertemplate="%{x}<br>Overall: %{y}<br>Stage: %{customdata}<extra></extra>",
        )
    )

    fig.update_layout(
        title=title,
        xaxis_title="Assessment date",
        yaxis=dict(title="Score", range=[0, 100]),
        legend=dict(orientation="h", y=-0.2),
        margin=dict(l=40, r=80, t=60, b=40),
    )
    return fig


def make_theme_radar(assessment: PolicyAssessment) -> go.Figure:
    """Radar of theme scores for one assessment, closed back to the first theme."""
    labels = [theme.name for theme in assessment.themes]
    scores = np.array([theme.overall_score for theme in assessment.themes], dtype=float)

    fig = go.Figure()
    if len(labels) == 0:
        return fig

    theta = labels + labels[:1]
    r = np.append(scores, scores[:1])
    fig.add_trace(
        go.Scatterpolar(
            theta=theta,
            r=r,
            mode="lines+markers",
            fill="toself",
            name="Theme score",
            line=dict(color=gradient_color(float(np.mean(scores)))),
            marker=dict(size=8, color=[gradient_color(v) for v in r]),
            hovertemplate="%{theta}<br>%{r}<extra></extra>",
        )
    )
    fig.update_layout(
        polar=dict(radialaxis=dict(range=[0, 100], tickvals=[25, 50, 75, 100])),
        showlegend=False,
        title=f"Overall {assessment.overall_score} ({assessment.overall_stage.value})",
    )
    return fig


def figure_to_payload(fig: go.Figure) -> dict[str, Any]:
    """JSON-safe dict (numpy arrays converted) suitable for a JSON response body."""
    return json.loads(fig.to_json())
