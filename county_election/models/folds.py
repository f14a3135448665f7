from __future__ import annotations

import numpy as np
import pandas as pd

from sklearn.model_selection import KFold, train_test_split

from county_election.config.constants import N_FOLDS, RND


def make_folds(n_rows: int, n_folds: int = N_FOLDS, seed: int = RND) -> list[tuple[np.ndarray, np.ndarray]]:
    """
    Random k-fold partition of row positions 0..n_rows-1.
    No stratification or grouping; a fixed seed gives the same folds every run.
    """
    if n_folds < 2:
        raise ValueError(f"n_folds must be >= 2, got {n_folds}")
    if n_rows < n_folds:
        raise ValueError(f"Cannot split {n_rows} rows into {n_folds} folds")

    kf = KFold(n_splits=n_folds, shuffle=True, random_state=seed)
    return [(tr, te) for tr, te in kf.split(np.arange(n_rows))]


def fold_assignment(n_rows: int, n_folds: int = N_FOLDS, seed: int = RND) -> np.ndarray:
    """Fold id (1..k) of every row, i.e. the fold in which it is held out."""
    out = np.zeros(n_rows, dtype=int)
    for fold, (_, te) in enumerate(make_folds(n_rows, n_folds, seed), start=1):
        out[te] = fold
    return out


def holdout_split(
    df: pd.DataFrame,
    test_size: float,
    seed: int = RND,
    stratify_col: str | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    strat = df[stratify_col] if stratify_col is not None else None
    train, test = train_test_split(df, test_size=test_size, random_state=seed, stratify=strat)
    return train.reset_index(drop=True), test.reset_index(drop=True)
