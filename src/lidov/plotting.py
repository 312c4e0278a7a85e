'''Quick-look plots of a recorded time series
plot_kozai function definition'''

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots


def planet_obliquity_deg(df: pd.DataFrame) -> np.ndarray:
    """Planet obliquity [deg] from the s1x, s1y, s1z columns (NaN for zero spin)."""
    s = df[['s1x', 's1y', 's1z']].to_numpy(dtype=float)
    mag = np.linalg.norm(s, axis=1)
    with np.errstate(invalid='ignore', divide='ignore'):
        cos_obl = np.clip(s[:, 2] / mag, -1.0, 1.0)
    obl = np.degrees(np.arccos(cos_obl))
    obl[mag == 0] = np.nan
    return obl


def plot_kozai(df: pd.DataFrame, title: str = "Lidov-Kozai evolution") -> go.Figure:
    """
    Plot inner eccentricity, inclination, semi-major axis and planet
    obliquity against time.

    Parameters
    ----------
    df : pd.DataFrame
        Output of lidov.recorder.load_time_series
    title : str, optional

    Returns
    -------
    go.Figure
        Four stacked panels sharing the time axis [yr]
    """
    t = df['t'].to_numpy()
    panels = [
        ("e1", df['e1'].to_numpy()),
        ("i1 [deg]", np.degrees(df['i1'].to_numpy())),
        ("a1 [AU]", df['a1'].to_numpy()),
        ("obliquity [deg]", planet_obliquity_deg(df)),
    ]

    fig = make_subplots(rows=len(panels), cols=1, shared_xaxes=True,
                        vertical_spacing=0.03)
    for row, (label, values) in enumerate(panels, start=1):
        fig.add_trace(go.Scatter(x=t, y=values, mode='lines', name=label),
                      row=row, col=1)
        fig.update_yaxes(title_text=label, row=row, col=1)

    fig.update_xaxes(title_text="t [yr]", row=len(panels), col=1)
    fig.update_layout(title=title, showlegend=False, height=250 * len(panels))
    return fig
