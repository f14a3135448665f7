from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Literal

import numpy as np
import pandas as pd

from county_election.config.constants import (
    MIXTURE_START,
    MIXTURE_STEP,
    MIXTURE_STOP,
    N_FOLDS,
    N_PENALTIES,
    PENALTY_START,
    PENALTY_STOP,
    RND,
    THRESHOLD,
)
from county_election.config.schema import (
    BASELINE_LOGISTIC_SCHEMA,
    CLASSIFICATION_SCHEMA,
    REGRESSION_SCHEMA,
    FeatureSchema,
)
from county_election.models.folds import holdout_split, make_folds
from county_election.models.grids import build_grid, logistic_grid, mixture_grid, penalty_grid
from county_election.models.metrics import classification_metrics, regression_metrics
from county_election.models.tuning import fit_best, model_xy, select_best, tune_grid

logger = logging.getLogger(__name__)


# -----------------------------
# Config
# -----------------------------
@dataclass(frozen=True)
class StudyConfig:
    seed: int = RND
    n_folds: int = N_FOLDS
    penalty_start: float = PENALTY_START
    penalty_stop: float = PENALTY_STOP
    n_penalties: int = N_PENALTIES
    mixture_start: float = MIXTURE_START
    mixture_stop: float = MIXTURE_STOP
    mixture_step: float = MIXTURE_STEP
    evaluate_on: Literal["holdout", "training"] = "holdout"
    test_size: float = 0.25
    threshold: float = THRESHOLD
    auc_input: Literal["probability", "rounded"] = "probability"
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if self.n_folds < 2:
            raise ValueError(f"n_folds must be >= 2, got {self.n_folds}")
        if self.n_penalties < 1:
            raise ValueError(f"n_penalties must be >= 1, got {self.n_penalties}")
        if self.evaluate_on not in ("holdout", "training"):
            raise ValueError(f"evaluate_on must be holdout/training, got '{self.evaluate_on}'")
        if self.auc_input not in ("probability", "rounded"):
            raise ValueError(f"auc_input must be probability/rounded, got '{self.auc_input}'")
        if not (0.0 < self.test_size < 1.0):
            raise ValueError(f"test_size must lie in (0, 1), got {self.test_size}")
        if not (0.0 < self.threshold < 1.0):
            raise ValueError(f"threshold must lie in (0, 1), got {self.threshold}")
        # validates range and step
        mixture_grid(self.mixture_start, self.mixture_stop, self.mixture_step)

    def penalties(self) -> np.ndarray:
        return penalty_grid(self.penalty_start, self.penalty_stop, self.n_penalties)

    def mixtures(self) -> np.ndarray:
        return mixture_grid(self.mixture_start, self.mixture_stop, self.mixture_step)


def load_study_config(path: Path) -> StudyConfig:
    """
    Reads a JSON object of StudyConfig fields; missing keys keep their defaults.
    """
    obj = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"{path} must hold a JSON object")

    known = {f.name for f in fields(StudyConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"{path} has unknown config keys: {unknown}")
    return StudyConfig(**obj)


# -----------------------------
# Evaluation split
# -----------------------------
def split_for_evaluation(
    df: pd.DataFrame,
    cfg: StudyConfig,
    stratify_col: str | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    (fit rows, evaluation rows). With evaluate_on="training" both are the
    full frame, which reproduces scoring a model on its own training data.
    """
    if cfg.evaluate_on == "training":
        logger.warning("Scoring on training rows; metrics will be optimistic")
        full = df.reset_index(drop=True)
        return full, full
    return holdout_split(df, test_size=cfg.test_size, seed=cfg.seed, stratify_col=stratify_col)


# -----------------------------
# Studies
# -----------------------------
def _tune_and_finalize(
    name: str,
    fit_df: pd.DataFrame,
    schema: FeatureSchema,
    family: str,
    grid: pd.DataFrame,
    cfg: StudyConfig,
) -> dict[str, Any]:
    folds = make_folds(len(fit_df), cfg.n_folds, cfg.seed)
    table = tune_grid(
        fit_df, schema, family, grid, folds,
        n_jobs=cfg.n_jobs, threshold=cfg.threshold,
    )
    best = select_best(table)
    model = fit_best(fit_df, schema, family, best, threshold=cfg.threshold)
    logger.info("%s best params: %s", name, best)
    return {"table": table, "best_params": best, "model": model}


def _regression_section(res: dict[str, Any], eval_df: pd.DataFrame, schema: FeatureSchema) -> dict[str, Any]:
    X, y = model_xy(eval_df, schema, "linear")
    pred = res["model"].predict(X)
    return {
        "table": res["table"],
        "best_params": res["best_params"],
        "metrics": regression_metrics(y, pred),
        "n_nonzero": int(res["model"].named_steps["model"].n_nonzero_),
    }


def _classification_section(
    res: dict[str, Any],
    eval_df: pd.DataFrame,
    schema: FeatureSchema,
    cfg: StudyConfig,
) -> dict[str, Any]:
    X, y = model_xy(eval_df, schema, "logistic")
    prob = res["model"].predict_proba(X)[:, 1]
    return {
        "table": res["table"],
        "best_params": res["best_params"],
        "metrics": classification_metrics(y, prob, threshold=cfg.threshold, auc_input=cfg.auc_input),
        "n_nonzero": int(res["model"].named_steps["model"].n_nonzero_),
    }


def run_regression_study(
    df: pd.DataFrame,
    cfg: StudyConfig = StudyConfig(),
    schema: FeatureSchema = REGRESSION_SCHEMA,
) -> dict[str, Any]:
    """
    Lasso (mixture = 1) and elastic net (penalty x mixture) tuned by RMSE.

    Returns a dict with:
      - config / evaluate_on / n_fit / n_eval
      - lasso, elastic_net: table (ranked), best_params, metrics (rmse, rsq), n_nonzero
      - models: fitted pipelines keyed by model name
    """
    fit_df, eval_df = split_for_evaluation(df, cfg)

    candidates = {
        "lasso": build_grid(cfg.penalties(), [1.0]),
        "elastic_net": build_grid(cfg.penalties(), cfg.mixtures()),
    }

    out: dict[str, Any] = {
        "config": asdict(cfg),
        "evaluate_on": cfg.evaluate_on,
        "n_fit": len(fit_df),
        "n_eval": len(eval_df),
        "models": {},
    }
    for name, grid in candidates.items():
        res = _tune_and_finalize(name, fit_df, schema, "linear", grid, cfg)
        out[name] = _regression_section(res, eval_df, schema)
        out["models"][name] = res["model"]
    return out


def run_classification_study(
    df: pd.DataFrame,
    cfg: StudyConfig = StudyConfig(),
    schema: FeatureSchema = CLASSIFICATION_SCHEMA,
    baseline_schema: FeatureSchema = BASELINE_LOGISTIC_SCHEMA,
) -> dict[str, Any]:
    """
    Unpenalized logistic (on `baseline_schema`), logistic Lasso and logistic
    elastic net (on `schema`) tuned by accuracy, each scored with
    accuracy / sensitivity / specificity / ROC AUC.
    """
    if baseline_schema.label != schema.label:
        raise ValueError(f"Schemas disagree on the label: {baseline_schema.label} vs {schema.label}")
    fit_df, eval_df = split_for_evaluation(df, cfg, stratify_col=schema.label)

    candidates = {
        "logistic": (logistic_grid(), baseline_schema),
        "logistic_lasso": (build_grid(cfg.penalties(), [1.0]), schema),
        "logistic_elastic_net": (build_grid(cfg.penalties(), cfg.mixtures()), schema),
    }

    out: dict[str, Any] = {
        "config": asdict(cfg),
        "evaluate_on": cfg.evaluate_on,
        "n_fit": len(fit_df),
        "n_eval": len(eval_df),
        "models": {},
    }
    for name, (grid, model_schema) in candidates.items():
        res = _tune_and_finalize(name, fit_df, model_schema, "logistic", grid, cfg)
        out[name] = _classification_section(res, eval_df, model_schema, cfg)
        out["models"][name] = res["model"]
    return out


def _json_safe(val: Any) -> Any:
    # NaN metrics (e.g. sensitivity with no positives) become null
    if isinstance(val, dict):
        return {k: _json_safe(v) for k, v in val.items()}
    if isinstance(val, (list, tuple)):
        return [_json_safe(v) for v in val]
    if isinstance(val, float) and math.isnan(val):
        return None
    return val


def study_to_json(study: dict[str, Any], top_n: int = 10) -> dict[str, Any]:
    """JSON-safe summary: tables cut to top_n records, fitted models dropped, NaN as null."""
    out: dict[str, Any] = {}
    for key, val in study.items():
        if key == "models":
            continue
        if isinstance(val, dict) and "table" in val:
            sec = {k: v for k, v in val.items() if k != "table"}
            sec["top"] = json.loads(val["table"].head(top_n).to_json(orient="records"))
            out[key] = _json_safe(sec)
        else:
            out[key] = _json_safe(val)
    return out
