"""
FILE: tools/plotting.py
------------------------
Matplotlib figures embedded in the report: per-site density facets for
numeric items and admission/discharge coverage bars.
Figures are written as PNG files; the caller owns the paths.
"""

import math
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from loguru import logger
from scipy import stats

from ccdq.schemas.summaries import CoverageRow


DENSITY_FILL = "lightsteelblue"
COVERAGE_BAR = "gray"
FACET_COLUMNS = 3
DPI = 150


def density_figure(
    values: pd.Series,
    groups: pd.Series,
    title: str,
    path: Path,
) -> Path:
    """Kernel density of `values` faceted by `groups`, one panel per site."""
    sites = sorted(groups.dropna().astype(str).unique().tolist())
    n_panels = max(len(sites), 1)
    ncols = min(FACET_COLUMNS, n_panels)
    nrows = math.ceil(n_panels / ncols)

    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3 * nrows), squeeze=False)
    for ax, site in zip(axes.flat, sites):
        clean = values[groups.astype(str) == site].dropna().to_numpy(dtype=float)
        ax.set_title(site, fontsize=10)
        if len(clean) < 2 or np.unique(clean).size < 2:
            ax.text(0.5, 0.5, "insufficient data", ha="center", va="center", transform=ax.transAxes)
            continue
        kde = stats.gaussian_kde(clean)
        xs = np.linspace(clean.min(), clean.max(), 200)
        ax.fill_between(xs, kde(xs), color=DENSITY_FILL)
        ax.plot(xs, kde(xs), color="black", linewidth=0.6)
    for ax in list(axes.flat)[len(sites):]:
        ax.axis("off")

    fig.suptitle(title)
    fig.tight_layout()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=DPI, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.debug(f"Density figure written to {path}")
    return path


def coverage_figure(rows: list[CoverageRow], title: str, path: Path) -> Path:
    """Horizontal bar from earliest admission to latest discharge per row."""
    fig, ax = plt.subplots(figsize=(10, max(2, 0.6 * len(rows) + 1)))
    for i, row in enumerate(rows):
        if row.min_admission is None or row.max_discharge is None:
            continue
        start = mdates.date2num(row.min_admission)
        end = mdates.date2num(row.max_discharge)
        ax.hlines(y=i, xmin=start, xmax=end, color=COVERAGE_BAR, linewidth=14)
        ax.text(start + (end - start) / 2, i, row.label, ha="center", va="center", fontsize=9)

    ax.xaxis_date()
    ax.xaxis.set_major_locator(mdates.MonthLocator(interval=3))
    ax.set_yticks([])
    ax.set_ylim(-1, max(len(rows), 1))
    ax.set_title(title)
    fig.autofmt_xdate()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=DPI, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.debug(f"Coverage figure written to {path}")
    return path
