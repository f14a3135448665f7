from __future__ import annotations

import logging
from typing import Any, Literal

import numpy as np
import pandas as pd

from joblib import Parallel, delayed
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline

from county_election.config.constants import THRESHOLD
from county_election.config.schema import FeatureSchema
from county_election.features.preprocess import build_preprocessor
from county_election.features.transforms import prepare_frame
from county_election.models.metrics import MAXIMIZE, score
from county_election.models.penalized import make_estimator
from county_election.utils.errors import FitConvergenceError

logger = logging.getLogger(__name__)

Family = Literal["linear", "logistic"]

DEFAULT_METRIC = {"linear": "rmse", "logistic": "accuracy"}
FAMILY_METRICS = {
    "linear": {"rmse", "rsq"},
    "logistic": {"accuracy", "roc_auc", "sensitivity", "specificity"},
}

TABLE_COLUMNS = ["grid_id", "penalty", "mixture", "metric", "mean", "std_err", "n", "n_failed", "status", "rank"]


# -----------------------------
# Helpers
# -----------------------------
def _check_family(family: str) -> None:
    if family not in DEFAULT_METRIC:
        raise ValueError(f"Unknown model family '{family}'. Expected linear/logistic.")


def model_xy(df: pd.DataFrame, schema: FeatureSchema, family: Family) -> tuple[pd.DataFrame, np.ndarray]:
    """Feature frame and label array for a model family."""
    _check_family(family)
    frame = prepare_frame(df, schema)
    X = frame[schema.features]
    if family == "logistic":
        y = frame[schema.label].astype(int).to_numpy()
    else:
        y = frame[schema.label].astype(float).to_numpy()
    return X, y


def build_pipeline(schema: FeatureSchema, family: Family, penalty: float, mixture: float, **kwargs) -> Pipeline:
    return Pipeline([
        ("pre", build_preprocessor(schema)),
        ("model", make_estimator(family, penalty=penalty, mixture=mixture, **kwargs)),
    ])


def fit_fold_preprocessors(
    X: pd.DataFrame,
    schema: FeatureSchema,
    folds: list[tuple[np.ndarray, np.ndarray]],
) -> list[ColumnTransformer]:
    """One preprocessor per fold, fitted on that fold's training rows only."""
    return [build_preprocessor(schema).fit(X.iloc[tr]) for tr, _ in folds]


def _evaluate_path(
    X_tr: np.ndarray,
    y_tr: np.ndarray,
    X_te: np.ndarray,
    y_te: np.ndarray,
    family: Family,
    cells: list[tuple[int, float, float]],
    metric: str,
    fold: int,
    threshold: float,
) -> list[dict[str, Any]]:
    """
    Score every (grid_id, penalty, mixture) cell of one fold.
    Penalties are visited strongest first so each fit starts from the
    previous solution.
    """
    kwargs = {"threshold": threshold} if family == "logistic" else {}
    est = make_estimator(family, penalty=cells[0][1], mixture=cells[0][2], warm_start=True, **kwargs)

    out = []
    for grid_id, penalty, mixture in sorted(cells, key=lambda c: (-c[1], c[0])):
        est.set_params(penalty=penalty, mixture=mixture)
        try:
            est.fit(X_tr, y_tr)
        except FitConvergenceError as exc:
            logger.debug("fold %d grid_id %d failed: %s", fold, grid_id, exc)
            out.append({"grid_id": grid_id, "fold": fold, "score": np.nan, "failed": True})
            continue

        pred = est.predict(X_te)
        prob = est.predict_proba(X_te)[:, 1] if family == "logistic" else None
        out.append({
            "grid_id": grid_id,
            "fold": fold,
            "score": score(metric, y_te, pred, prob),
            "failed": False,
        })
    return out


def summarize_scores(per_fold: pd.DataFrame, grid: pd.DataFrame, metric: str) -> pd.DataFrame:
    """
    Collapse per-fold scores into one ranked row per grid cell.
    Best mean first; failed cells last; ties keep grid order.
    """
    agg = (
        per_fold.groupby("grid_id")
        .agg(mean=("score", "mean"), sd=("score", "std"), n=("score", "count"), n_failed=("failed", "sum"))
        .reset_index()
    )
    table = grid.merge(agg, on="grid_id", how="left")
    table["n"] = table["n"].fillna(0).astype(int)
    table["n_failed"] = table["n_failed"].fillna(0).astype(int)
    table["std_err"] = np.where(
        table["n"] > 1,
        table["sd"] / np.sqrt(table["n"].clip(lower=1)),
        np.where(table["n"] == 1, 0.0, np.nan),
    )
    table["status"] = np.where(table["n"] == 0, "failed", np.where(table["n_failed"] > 0, "partial", "ok"))
    table["metric"] = metric

    ascending = metric not in MAXIMIZE
    table = table.sort_values(
        ["mean", "grid_id"],
        ascending=[ascending, True],
        na_position="last",
        kind="mergesort",
    ).reset_index(drop=True)
    table["rank"] = np.arange(1, len(table) + 1)
    return table[TABLE_COLUMNS]


# -----------------------------
# Grid search
# -----------------------------
def tune_grid(
    df: pd.DataFrame,
    schema: FeatureSchema,
    family: Family,
    grid: pd.DataFrame,
    folds: list[tuple[np.ndarray, np.ndarray]],
    metric: str | None = None,
    n_jobs: int = 1,
    threshold: float = THRESHOLD,
) -> pd.DataFrame:
    """
    k-fold cross-validated search over a (penalty, mixture) grid.

    Returns the ranked table (one row per grid cell) with mean score and
    standard error across folds. Cells that fail to fit in a fold are
    recorded as missing for that fold instead of aborting the search.
    """
    _check_family(family)
    metric = metric or DEFAULT_METRIC[family]
    if metric not in FAMILY_METRICS[family]:
        raise ValueError(f"Metric '{metric}' not available for {family}. Expected one of {sorted(FAMILY_METRICS[family])}.")
    if grid["grid_id"].duplicated().any():
        raise ValueError("grid_id values must be unique")

    X, y = model_xy(df, schema, family)
    pres = fit_fold_preprocessors(X, schema, folds)

    tasks = []
    for fold, ((tr, te), pre) in enumerate(zip(folds, pres), start=1):
        X_tr = pre.transform(X.iloc[tr])
        X_te = pre.transform(X.iloc[te])
        for _, cells in grid.groupby("mixture", sort=False):
            rows = list(cells[["grid_id", "penalty", "mixture"]].itertuples(index=False, name=None))
            tasks.append(delayed(_evaluate_path)(
                X_tr, y[tr], X_te, y[te], family, rows, metric, fold, threshold,
            ))

    chunks = Parallel(n_jobs=n_jobs)(tasks)
    per_fold = pd.DataFrame([r for chunk in chunks for r in chunk])

    table = summarize_scores(per_fold, grid, metric)
    n_failed = int((table["status"] == "failed").sum())
    logger.info(
        "%s search: %d cells x %d folds, %d cells failed, best %s=%.4f",
        family, len(grid), len(folds), n_failed, metric, table["mean"].iloc[0],
    )
    return table


def show_best(table: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    return table[table["status"] != "failed"].head(n).reset_index(drop=True)


def select_best(table: pd.DataFrame) -> dict[str, float]:
    ok = table[table["status"] != "failed"]
    if ok.empty:
        raise FitConvergenceError("Every grid cell failed; no hyperparameters to select.")
    best = ok.iloc[0]
    return {"penalty": float(best["penalty"]), "mixture": float(best["mixture"])}


def fit_best(
    df: pd.DataFrame,
    schema: FeatureSchema,
    family: Family,
    params: dict[str, float],
    threshold: float = THRESHOLD,
) -> Pipeline:
    """Refit the chosen hyperparameters on every row of `df`."""
    X, y = model_xy(df, schema, family)
    kwargs = {"threshold": threshold} if family == "logistic" else {}
    pipe = build_pipeline(schema, family, params["penalty"], params["mixture"], **kwargs)
    return pipe.fit(X, y)
