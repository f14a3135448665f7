from __future__ import annotations

import pytest

from county_election.config.schema import CLASSIFICATION_SCHEMA, REGRESSION_SCHEMA
from county_election.models.predict import predict_frame
from county_election.models.tuning import fit_best
from county_election.utils.errors import PredictionError


@pytest.fixture
def lasso_model(election_df):
    return fit_best(election_df.iloc[:80], REGRESSION_SCHEMA, "linear", {"penalty": 0.1, "mixture": 1.0})


def test_predicts_unseen_counties(election_df, lasso_model):
    new = election_df.iloc[80:].copy()
    new["county"] = "Nowhere County"
    new["state"] = "Alaska"

    out = predict_frame(lasso_model, new, REGRESSION_SCHEMA)
    assert len(out) == len(new)
    assert out["pred"].notna().all()
    assert "prob_1" not in out.columns
    # input left alone
    assert "pred" not in new.columns


def test_label_not_needed_for_prediction(election_df, lasso_model):
    new = election_df.iloc[80:].drop(columns=["pct_republican_2012"])
    out = predict_frame(lasso_model, new, REGRESSION_SCHEMA)
    assert out["pred"].notna().all()


def test_missing_feature_column(election_df, lasso_model):
    with pytest.raises(PredictionError, match="missing columns"):
        predict_frame(lasso_model, election_df.drop(columns=["population"]), REGRESSION_SCHEMA)


def test_classifier_adds_probabilities(election_df):
    model = fit_best(election_df, CLASSIFICATION_SCHEMA, "logistic", {"penalty": 0.01, "mixture": 0.0})
    out = predict_frame(model, election_df, CLASSIFICATION_SCHEMA)

    assert set(out["pred"].unique()) <= {0, 1}
    assert out["prob_1"].between(0, 1).all()
    assert ((out["prob_1"] >= 0.5).astype(int) == out["pred"]).all()
