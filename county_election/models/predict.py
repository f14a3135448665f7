from __future__ import annotations

from typing import Any

import pandas as pd

from county_election.config.schema import FeatureSchema
from county_election.features.transforms import feature_frame
from county_election.utils.errors import PredictionError
from county_election.utils.validate import require_columns


def predict_frame(model: Any, df: pd.DataFrame, schema: FeatureSchema) -> pd.DataFrame:
    """
    Returns a copy of `df` with:
      - pred: predicted value (regression) or class (classification)
      - prob_1: positive-class probability, for classifiers only

    Unseen county/state levels are absorbed by the placeholder level learned
    at fit time; missing feature columns are a PredictionError.
    """
    require_columns(df, schema.features, name="prediction data", exc=PredictionError)
    X = feature_frame(df, schema)

    out = df.copy()
    try:
        out["pred"] = model.predict(X)
        if hasattr(model, "predict_proba"):
            out["prob_1"] = model.predict_proba(X)[:, 1]
    except ValueError as exc:
        raise PredictionError(f"Model could not score prediction data: {exc}") from exc
    return out
