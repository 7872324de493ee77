from __future__ import annotations

"""
Matplotlib helpers: observed points, a fitted curve and its confidence band.
"""

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def plot_fit_with_band(
    ax: plt.Axes | None,
    x_obs,
    y_obs,
    grid,
    band: pd.DataFrame,
    title: str = "",
    xlabel: str = "age",
    ylabel: str = "wage",
    rug: bool = False,
    color: str = "darkblue",
    level: float = 0.95,
) -> plt.Axes:
    """
    Scatter (or rug, for 0/1 responses) of the data, the `fit` column of
    `band` against `grid`, and the `lower`/`upper` columns shaded. `level`
    only labels the band; pass the level the band was computed at.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))
    grid = np.asarray(grid, dtype=float)
    x_obs = np.asarray(x_obs, dtype=float)
    y_obs = np.asarray(y_obs, dtype=float)

    if rug:
        # 0/1 outcomes drawn as ticks at the bottom/top of the probability axis
        top = float(band["upper"].max())
        ax.plot(x_obs[y_obs == 0], np.zeros((y_obs == 0).sum()), "|", color="grey", alpha=0.3)
        ax.plot(x_obs[y_obs == 1], np.full((y_obs == 1).sum(), top), "|", color="grey", alpha=0.3)
    else:
        ax.scatter(x_obs, y_obs, s=6, color="grey", alpha=0.3)

    ax.fill_between(
        grid, band["lower"], band["upper"], color=color, alpha=0.2, label=f"{level:.0%} band"
    )
    ax.plot(grid, band["fit"], color=color, lw=2, label="fit")
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    if title:
        ax.set_title(title)
    ax.legend(loc="upper right")
    ax.grid(True, alpha=0.3)
    return ax
