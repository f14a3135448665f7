from __future__ import annotations

import json
import math
from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from county_election.models.study import (
    StudyConfig,
    load_study_config,
    run_classification_study,
    run_regression_study,
    split_for_evaluation,
    study_to_json,
)


@pytest.fixture
def small_cfg() -> StudyConfig:
    return StudyConfig(n_folds=3, penalty_start=0.0, penalty_stop=-2.0, n_penalties=3, mixture_step=0.5)


@pytest.fixture
def regression_study(election_df, small_cfg):
    return run_regression_study(election_df, small_cfg)


def test_regression_study_sections(regression_study):
    study = regression_study
    assert study["evaluate_on"] == "holdout"
    assert (study["n_fit"], study["n_eval"]) == (90, 30)
    assert set(study["models"]) == {"lasso", "elastic_net"}

    assert len(study["lasso"]["table"]) == 3
    assert (study["lasso"]["table"]["mixture"] == 1.0).all()
    assert len(study["elastic_net"]["table"]) == 9

    for name in ("lasso", "elastic_net"):
        sec = study[name]
        assert sec["best_params"]["penalty"] in (1.0, 0.1, 0.01)
        assert sec["metrics"]["rmse"] >= 0
        assert math.isfinite(sec["metrics"]["rsq"])
        assert sec["n_nonzero"] >= 0


def test_training_evaluation_scores_fit_rows(election_df, small_cfg, caplog):
    cfg = replace(small_cfg, evaluate_on="training")
    with caplog.at_level("WARNING"):
        study = run_regression_study(election_df, cfg)
    assert study["n_fit"] == study["n_eval"] == len(election_df)
    assert "training rows" in caplog.text


def test_holdout_split_is_stratified(election_df, small_cfg):
    fit_df, eval_df = split_for_evaluation(election_df, small_cfg, stratify_col="i_republican_2016")
    assert len(fit_df) + len(eval_df) == len(election_df)
    fit_rate = fit_df["i_republican_2016"].astype(int).mean()
    eval_rate = eval_df["i_republican_2016"].astype(int).mean()
    assert abs(fit_rate - eval_rate) < 0.05


def test_classification_study_sections(election_df, small_cfg):
    study = run_classification_study(election_df, small_cfg)

    assert set(study["models"]) == {"logistic", "logistic_lasso", "logistic_elastic_net"}
    assert len(study["logistic"]["table"]) == 1
    assert study["logistic"]["best_params"] == {"penalty": 0.0, "mixture": 0.0}
    assert len(study["logistic_lasso"]["table"]) == 3
    assert len(study["logistic_elastic_net"]["table"]) == 9

    for name in study["models"]:
        metrics = study[name]["metrics"]
        assert set(metrics) == {"accuracy", "sensitivity", "specificity", "roc_auc"}
        for v in metrics.values():
            assert math.isnan(v) or 0.0 <= v <= 1.0


def test_classification_study_rejects_mismatched_labels(election_df, small_cfg):
    from county_election.config.schema import REGRESSION_SCHEMA

    with pytest.raises(ValueError, match="disagree on the label"):
        run_classification_study(election_df, small_cfg, baseline_schema=REGRESSION_SCHEMA)


def test_study_to_json_is_serializable(regression_study):
    summary = study_to_json(regression_study, top_n=2)

    assert "models" not in summary
    assert len(summary["elastic_net"]["top"]) == 2
    assert summary["elastic_net"]["top"][0]["rank"] == 1
    assert "table" not in summary["lasso"]
    json.dumps(summary)


def test_load_study_config(tmp_path):
    path = tmp_path / "study.json"
    path.write_text(json.dumps({"seed": 7, "n_folds": 4, "evaluate_on": "training"}), encoding="utf-8")

    cfg = load_study_config(path)
    assert cfg.seed == 7 and cfg.n_folds == 4
    assert cfg.evaluate_on == "training"
    assert cfg.n_penalties == StudyConfig().n_penalties


def test_load_study_config_rejects_bad_input(tmp_path):
    path = tmp_path / "study.json"
    path.write_text(json.dumps({"seed": 7, "folds": 4}), encoding="utf-8")
    with pytest.raises(ValueError, match="unknown config keys"):
        load_study_config(path)

    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        load_study_config(path)


@pytest.mark.parametrize("kwargs", [
    {"n_folds": 1},
    {"n_penalties": 0},
    {"evaluate_on": "test"},
    {"auc_input": "labels"},
    {"test_size": 1.0},
    {"threshold": 0.0},
    {"mixture_step": 0.0},
])
def test_study_config_validation(kwargs):
    with pytest.raises(ValueError):
        StudyConfig(**kwargs)


def test_default_grid_sizes():
    cfg = StudyConfig()
    assert len(cfg.penalties()) == 1000
    assert len(cfg.mixtures()) == 21


def test_study_to_json_writes_nan_as_null():
    study = {
        "evaluate_on": "holdout",
        "models": {"logistic": object()},
        "logistic": {
            "table": pd.DataFrame({"grid_id": [0], "mean": [np.nan], "rank": [1]}),
            "best_params": {"penalty": 0.0, "mixture": 0.0},
            "metrics": {"accuracy": 0.8, "sensitivity": float("nan"), "roc_auc": np.float64("nan")},
            "n_nonzero": 3,
        },
    }
    summary = study_to_json(study)

    metrics = summary["logistic"]["metrics"]
    assert metrics["accuracy"] == 0.8
    assert metrics["sensitivity"] is None and metrics["roc_auc"] is None
    assert summary["logistic"]["top"][0]["mean"] is None
    json.dumps(summary, allow_nan=False)
