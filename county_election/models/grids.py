from __future__ import annotations

from itertools import product

import numpy as np
import pandas as pd

from county_election.config.constants import (
    MIXTURE_START,
    MIXTURE_STEP,
    MIXTURE_STOP,
    N_PENALTIES,
    PENALTY_START,
    PENALTY_STOP,
)


def penalty_grid(start: float = PENALTY_START, stop: float = PENALTY_STOP, n: int = N_PENALTIES) -> np.ndarray:
    """n log-spaced penalties from 10**start to 10**stop (order kept as given)."""
    if n < 1:
        raise ValueError(f"Penalty grid needs at least one value, got n={n}")
    return np.logspace(start, stop, n)


def mixture_grid(start: float = MIXTURE_START, stop: float = MIXTURE_STOP, step: float = MIXTURE_STEP) -> np.ndarray:
    """Mixtures from start to stop inclusive; 0 = pure L2, 1 = pure L1."""
    if not (0.0 <= start <= stop <= 1.0):
        raise ValueError(f"Mixture range must satisfy 0 <= start <= stop <= 1, got ({start}, {stop})")
    if step <= 0:
        raise ValueError(f"Mixture step must be positive, got {step}")
    n = int(np.floor((stop - start) / step + 1e-9)) + 1
    return np.round(start + step * np.arange(n), 10)


def build_grid(penalties, mixtures) -> pd.DataFrame:
    """
    Cartesian product of mixtures x penalties, mixture-major.
    grid_id records grid order and is used to break ranking ties.
    """
    penalties = [float(p) for p in penalties]
    mixtures = [float(m) for m in mixtures]
    if not penalties or not mixtures:
        raise ValueError("Grid axes must be non-empty")
    if any(p < 0 for p in penalties):
        raise ValueError("Penalties must be >= 0")
    if any(m < 0 or m > 1 for m in mixtures):
        raise ValueError("Mixtures must lie in [0, 1]")

    rows = [(m, p) for m, p in product(mixtures, penalties)]
    grid = pd.DataFrame(rows, columns=["mixture", "penalty"])
    grid.insert(0, "grid_id", np.arange(len(grid)))
    return grid[["grid_id", "penalty", "mixture"]]


def lasso_grid(penalties=None) -> pd.DataFrame:
    return build_grid(penalty_grid() if penalties is None else penalties, [1.0])


def elastic_net_grid(penalties=None, mixtures=None) -> pd.DataFrame:
    return build_grid(
        penalty_grid() if penalties is None else penalties,
        mixture_grid() if mixtures is None else mixtures,
    )


def logistic_grid() -> pd.DataFrame:
    # single unpenalized cell
    return build_grid([0.0], [0.0])
