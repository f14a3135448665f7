from __future__ import annotations

import numpy as np
import pandas as pd

from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from county_election.config.constants import UNSEEN_LEVEL
from county_election.config.schema import FeatureSchema


class UnseenLevelEncoder(BaseEstimator, TransformerMixin):
    """
    One-hot encoder with an explicit placeholder level.

    fit() records the levels of each column and appends `unseen_level`;
    transform() maps any level not seen during fit onto the placeholder
    before encoding, so held-out folds with new counties or states are
    scored instead of rejected.
    """

    def __init__(self, unseen_level: str = UNSEEN_LEVEL):
        self.unseen_level = unseen_level

    def _as_frame(self, X) -> pd.DataFrame:
        if isinstance(X, pd.DataFrame):
            return X.astype(str)
        return pd.DataFrame(np.asarray(X, dtype=object)).astype(str)

    def fit(self, X, y=None):
        frame = self._as_frame(X)
        self.feature_names_in_ = np.asarray(frame.columns, dtype=object)
        self.levels_ = [
            sorted(set(frame[c].unique()) - {self.unseen_level}) + [self.unseen_level]
            for c in frame.columns
        ]
        self.encoder_ = OneHotEncoder(categories=self.levels_, handle_unknown="error", sparse_output=False)
        self.encoder_.fit(frame.values)
        return self

    def map_unseen(self, X) -> pd.DataFrame:
        frame = self._as_frame(X).copy()
        for i, c in enumerate(frame.columns):
            known = set(self.levels_[i])
            frame[c] = frame[c].where(frame[c].isin(known), self.unseen_level)
        return frame

    def transform(self, X):
        return self.encoder_.transform(self.map_unseen(X).values)

    def get_feature_names_out(self, input_features=None):
        names = input_features if input_features is not None else self.feature_names_in_
        return self.encoder_.get_feature_names_out(names)


def build_preprocessor(schema: FeatureSchema) -> ColumnTransformer:
    transformers = []
    if schema.numeric_features:
        num_pipe = Pipeline([("scaler", StandardScaler())])
        transformers.append(("num", num_pipe, schema.numeric_features))
    if schema.categorical_features:
        cat_pipe = Pipeline([("onehot", UnseenLevelEncoder())])
        transformers.append(("cat", cat_pipe, schema.categorical_features))

    return ColumnTransformer(transformers=transformers, remainder="drop")
