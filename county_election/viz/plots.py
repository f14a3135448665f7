from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from county_election.config.constants import LABEL_2012, LABEL_2016, LOG_POP_COL, PCT_REP_COL
from county_election.utils.validate import require_columns

PARTY_NAMES = {0: "Democratic", 1: "Republican"}
PARTY_COLORS = {"Democratic": "#2166ac", "Republican": "#b2182b"}


def _save(fig, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def majority_counts(df: pd.DataFrame, label_cols: tuple[str, ...] = (LABEL_2012, LABEL_2016)) -> pd.DataFrame:
    """Long table: election, party, counties."""
    require_columns(df, list(label_cols), name="election")
    rows = []
    for col in label_cols:
        counts = df[col].astype(int).value_counts()
        year = col.rsplit("_", 1)[-1]
        for level, party in PARTY_NAMES.items():
            rows.append({"election": year, "party": party, "counties": int(counts.get(level, 0))})
    return pd.DataFrame(rows)


def plot_majority_counts(df: pd.DataFrame, out_path: Path) -> Path:
    """Bar chart: counties carried by each party, 2012 vs 2016."""
    counts = majority_counts(df)

    fig, ax = plt.subplots(figsize=(7, 5))
    sns.barplot(data=counts, x="election", y="counties", hue="party", palette=PARTY_COLORS, ax=ax)
    for container in ax.containers:
        ax.bar_label(container, fmt="%d", fontsize=8)
    ax.set_xlabel("Election")
    ax.set_ylabel("Counties with majority")
    ax.set_title("County majorities by party")
    return _save(fig, out_path)


def plot_scatter_with_fit(
    df: pd.DataFrame,
    out_path: Path,
    x: str = LOG_POP_COL,
    y: str = PCT_REP_COL,
) -> Path:
    """Scatter of y against x with the least-squares line."""
    require_columns(df, [x, y], name="election")
    data = df[[x, y]].astype(float).dropna()

    fig, ax = plt.subplots(figsize=(8, 6))
    sns.regplot(
        data=data, x=x, y=y, ax=ax, ci=None,
        scatter_kws={"s": 6, "alpha": 0.4},
        line_kws={"color": "black"},
    )
    slope, intercept = np.polyfit(data[x], data[y], 1)
    ax.set_title(f"{y} vs {x} (slope={slope:.3f}, intercept={intercept:.2f})")
    return _save(fig, out_path)


def plot_tuning_curve(table: pd.DataFrame, out_path: Path) -> Path:
    """Mean CV score against penalty (log scale), one line per mixture."""
    require_columns(table, ["penalty", "mixture", "mean", "metric"], name="tuning table")
    data = table[(table["status"] != "failed") & (table["penalty"] > 0)].sort_values("penalty")
    metric = str(table["metric"].iloc[0])

    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=data, x="penalty", y="mean", hue="mixture", palette="viridis", ax=ax)
    ax.set_xscale("log")
    ax.set_xlabel("penalty")
    ax.set_ylabel(f"mean CV {metric}")
    ax.set_title(f"Cross-validated {metric} by penalty")
    return _save(fig, out_path)
