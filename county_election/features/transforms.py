from __future__ import annotations
import numpy as np
import pandas as pd

from county_election.config.constants import (
    LABEL_LEVELS,
    LOG_POP_COL,
    PCT_REP_COL,
    POPULATION_COL,
    REP_VOTES_COL,
    TOTAL_VOTES_COL,
)
from county_election.config.schema import FeatureSchema
from county_election.utils.errors import DataLoadError

def add_derived_features(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()

    # Republican share of the 2012 vote, in percent
    total = df[TOTAL_VOTES_COL].astype(float)
    rep = df[REP_VOTES_COL].astype(float)
    df[PCT_REP_COL] = np.where(total > 0, rep / total.where(total > 0, 1.0) * 100.0, 0.0)

    df[LOG_POP_COL] = np.log1p(df[POPULATION_COL].astype(float).clip(lower=0))

    return df


def encode_labels(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    """
    Turn 0/1 majority indicators into two-level categoricals.
    Anything that is not 0 or 1 is rejected.
    """
    df = df.copy()
    for c in cols:
        values = pd.to_numeric(df[c], errors="coerce")
        if values.isna().any():
            raise DataLoadError(f"{c} has missing or non-numeric values")
        bad = values[~values.isin(LABEL_LEVELS)]
        if len(bad):
            raise DataLoadError(f"{c} must be 0/1, found values: {sorted(bad.unique().tolist())[:10]}")
        df[c] = pd.Categorical(values.astype(int), categories=LABEL_LEVELS)
    return df


def _cast_categoricals(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    # one-hot levels compare as strings ("1" from a label column, "Ohio", ...)
    for c in cols:
        df[c] = df[c].astype(str)
    return df


def prepare_frame(df: pd.DataFrame, schema: FeatureSchema) -> pd.DataFrame:
    """
    Keep only the columns the schema models (id, features, label), with
    categorical features cast to strings.
    """
    schema.validate_frame(df, name="model_frame")
    return _cast_categoricals(df[schema.required_columns].copy(), schema.categorical_features)


def feature_frame(df: pd.DataFrame, schema: FeatureSchema) -> pd.DataFrame:
    """Feature columns only, in schema order; used when there is no label to carry."""
    return _cast_categoricals(df[schema.features].copy(), schema.categorical_features)
