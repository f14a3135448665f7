from __future__ import annotations

import logging
from typing import Literal

import numpy as np

from sklearn.metrics import accuracy_score, confusion_matrix, mean_squared_error, r2_score, roc_auc_score

from county_election.config.constants import POSITIVE_LEVEL, THRESHOLD

logger = logging.getLogger(__name__)

AucInput = Literal["probability", "rounded"]

# larger-is-better metrics; everything else is ranked ascending
MAXIMIZE = {"accuracy", "roc_auc", "rsq", "sensitivity", "specificity"}
REGRESSION_METRICS = ("rmse", "rsq")
CLASSIFICATION_METRICS = ("accuracy", "roc_auc")


def _binary_counts(y_true, y_pred, positive=POSITIVE_LEVEL) -> tuple[int, int, int, int]:
    y_true = np.asarray(y_true) == positive
    y_pred = np.asarray(y_pred) == positive
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[False, True]).ravel()
    return int(tn), int(fp), int(fn), int(tp)


def _ratio(num: int, den: int) -> float:
    return float(num) / den if den else float("nan")


def accuracy(y_true, y_pred) -> float:
    return float(accuracy_score(np.asarray(y_true), np.asarray(y_pred)))


def sensitivity(y_true, y_pred, positive=POSITIVE_LEVEL) -> float:
    """True positive rate; NaN when no positives are present."""
    _, _, fn, tp = _binary_counts(y_true, y_pred, positive)
    return _ratio(tp, tp + fn)


def specificity(y_true, y_pred, positive=POSITIVE_LEVEL) -> float:
    """True negative rate; NaN when no negatives are present."""
    tn, fp, _, _ = _binary_counts(y_true, y_pred, positive)
    return _ratio(tn, tn + fp)


def roc_auc(y_true, y_score, positive=POSITIVE_LEVEL) -> float:
    y = np.asarray(y_true) == positive
    if len(np.unique(y)) < 2:
        return float("nan")
    return float(roc_auc_score(y, np.asarray(y_score, dtype=float)))


def rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mean_squared_error(np.asarray(y_true, dtype=float), np.asarray(y_pred, dtype=float))))


def rsq(y_true, y_pred) -> float:
    y_true = np.asarray(y_true, dtype=float)
    if len(y_true) < 2:
        return float("nan")
    return float(r2_score(y_true, np.asarray(y_pred, dtype=float)))


def score(metric: str, y_true, y_pred=None, y_prob=None) -> float:
    """Single metric by name; classification metrics other than roc_auc use y_pred."""
    if metric == "rmse":
        return rmse(y_true, y_pred)
    if metric == "rsq":
        return rsq(y_true, y_pred)
    if metric == "accuracy":
        return accuracy(y_true, y_pred)
    if metric == "sensitivity":
        return sensitivity(y_true, y_pred)
    if metric == "specificity":
        return specificity(y_true, y_pred)
    if metric == "roc_auc":
        return roc_auc(y_true, y_prob)
    raise ValueError(f"Unknown metric '{metric}'.")


def classification_metrics(
    y_true,
    y_prob,
    threshold: float = THRESHOLD,
    auc_input: AucInput = "probability",
    positive=POSITIVE_LEVEL,
) -> dict[str, float]:
    """
    Accuracy, sensitivity, specificity and ROC AUC for positive-class
    probabilities `y_prob`.

    auc_input="rounded" scores the AUC on thresholded 0/1 predictions
    instead of probabilities. That collapses the curve to a single point
    and is kept only to reproduce older reports.
    """
    if auc_input not in ("probability", "rounded"):
        raise ValueError(f"Unknown auc_input '{auc_input}'. Expected probability/rounded.")

    y_true = np.asarray(y_true)
    y_prob = np.asarray(y_prob, dtype=float)
    negative = next((lvl for lvl in np.unique(y_true) if lvl != positive), 0)
    y_pred = np.where(y_prob >= threshold, positive, negative)

    if auc_input == "rounded":
        logger.warning("ROC AUC computed from rounded predictions; the value is not a ranking measure")
        auc_scores = (y_prob >= threshold).astype(float)
    else:
        auc_scores = y_prob

    return {
        "accuracy": accuracy(y_true, y_pred),
        "sensitivity": sensitivity(y_true, y_pred, positive),
        "specificity": specificity(y_true, y_pred, positive),
        "roc_auc": roc_auc(y_true, auc_scores, positive),
    }


def regression_metrics(y_true, y_pred) -> dict[str, float]:
    return {"rmse": rmse(y_true, y_pred), "rsq": rsq(y_true, y_pred)}
