from __future__ import annotations

import math

import numpy as np
import pytest

from county_election.models.metrics import (
    accuracy,
    classification_metrics,
    regression_metrics,
    rmse,
    roc_auc,
    rsq,
    score,
    sensitivity,
    specificity,
)


def test_confusion_based_rates():
    y_true = [1, 1, 1, 1, 0, 0, 0, 0, 0, 0]
    y_pred = [1, 1, 1, 0, 0, 0, 0, 0, 1, 1]

    assert accuracy(y_true, y_pred) == pytest.approx(0.7)
    assert sensitivity(y_true, y_pred) == pytest.approx(0.75)
    assert specificity(y_true, y_pred) == pytest.approx(4 / 6)


def test_rates_are_nan_without_a_class():
    assert math.isnan(sensitivity([0, 0, 0], [0, 1, 0]))
    assert math.isnan(specificity([1, 1], [1, 0]))


def test_roc_auc_perfect_and_single_class():
    assert roc_auc([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9]) == pytest.approx(1.0)
    assert roc_auc([1, 0, 1, 0], [0.1, 0.2, 0.8, 0.9]) == pytest.approx(0.25)
    assert roc_auc([1, 0, 1, 0], [0.5, 0.5, 0.5, 0.5]) == pytest.approx(0.5)
    assert math.isnan(roc_auc([1, 1, 1], [0.2, 0.5, 0.9]))


def test_rmse_and_rsq_known_values():
    y = np.array([1.0, 2.0, 3.0, 4.0])
    assert rmse(y, y + 2.0) == pytest.approx(2.0)
    assert rsq(y, y) == pytest.approx(1.0)
    assert rsq(y, np.full(4, y.mean())) == pytest.approx(0.0)
    assert math.isnan(rsq([1.0], [1.0]))


def test_score_dispatch():
    assert score("rmse", [0.0, 0.0], [3.0, 4.0]) == pytest.approx(np.sqrt(12.5))
    assert score("roc_auc", [0, 1], y_prob=[0.3, 0.6]) == pytest.approx(1.0)
    with pytest.raises(ValueError, match="Unknown metric"):
        score("mae", [1.0], [1.0])


def test_classification_metrics_bounds():
    rng = np.random.default_rng(3)
    y = rng.integers(0, 2, 200)
    prob = np.clip(0.3 * y + rng.uniform(0, 0.7, 200), 0, 1)

    m = classification_metrics(y, prob)
    assert set(m) == {"accuracy", "sensitivity", "specificity", "roc_auc"}
    for v in m.values():
        assert 0.0 <= v <= 1.0


def test_threshold_changes_labels():
    y = np.array([0, 0, 1, 1])
    prob = np.array([0.1, 0.4, 0.45, 0.9])

    assert classification_metrics(y, prob, threshold=0.5)["sensitivity"] == pytest.approx(0.5)
    assert classification_metrics(y, prob, threshold=0.42)["accuracy"] == pytest.approx(1.0)


def test_rounded_auc_differs_from_probability_auc(caplog):
    y = np.array([0, 0, 0, 1, 1, 1])
    prob = np.array([0.1, 0.6, 0.3, 0.55, 0.9, 0.4])

    by_prob = classification_metrics(y, prob)["roc_auc"]
    with caplog.at_level("WARNING"):
        by_label = classification_metrics(y, prob, auc_input="rounded")["roc_auc"]

    # rounded predictions: tpr 2/3, fpr 1/3 -> single-point curve
    assert by_label == pytest.approx(0.5 * (1 + 2 / 3 - 1 / 3))
    assert by_prob == pytest.approx(7 / 9)
    assert "rounded" in caplog.text


def test_bad_auc_input():
    with pytest.raises(ValueError, match="auc_input"):
        classification_metrics([0, 1], [0.2, 0.8], auc_input="labels")


def test_regression_metrics_keys():
    m = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 4.0])
    assert set(m) == {"rmse", "rsq"}
    assert m["rmse"] == pytest.approx(np.sqrt(1 / 3))
