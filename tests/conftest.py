from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from county_election.config.schema import ColumnSpec, FeatureSchema
from county_election.data.load import clean_election


def make_raw_election(n: int = 120, seed: int = 0) -> pd.DataFrame:
    """County rows shaped like election.csv, with overlapping 2016 outcomes."""
    rng = np.random.default_rng(seed)
    population = rng.integers(1_000, 500_000, n)
    total = (population * rng.uniform(0.3, 0.5, n)).astype(int)
    share = np.clip(
        0.85 - 0.05 * np.log(population / 1_000) + rng.normal(0, 0.06, n),
        0.05, 0.95,
    )
    rep = (total * share).astype(int)
    return pd.DataFrame({
        "state": rng.choice(["Ohio", "Texas", "Iowa", "Utah"], n),
        "county": [f"County {i}" for i in range(n)],
        "fips": 1001 + np.arange(n),
        "population": population,
        "total_votes_2012": total,
        "republican_votes_2012": rep,
        "i_republican_2012": (rep > total / 2).astype(int),
        "i_republican_2016": ((share + rng.normal(0.02, 0.1, n)) > 0.5).astype(int),
    })


@pytest.fixture
def raw_election() -> pd.DataFrame:
    return make_raw_election()


@pytest.fixture
def election_df(raw_election) -> pd.DataFrame:
    return clean_election(raw_election)


@pytest.fixture
def toy_schema() -> FeatureSchema:
    return FeatureSchema(columns=(
        ColumnSpec("x1", "feature", "numeric"),
        ColumnSpec("x2", "feature", "numeric"),
        ColumnSpec("group", "feature", "categorical"),
        ColumnSpec("label", "label", "categorical"),
    ))


@pytest.fixture
def toy_binary() -> pd.DataFrame:
    """
    100 rows, label = 1 iff x1 > 0. x1 is centred at 0.5 so the
    positive class is the majority.
    """
    rng = np.random.default_rng(7)
    x1 = rng.normal(0.5, 1.0, 100)
    x2 = rng.normal(0.0, 1.0, 100)
    return pd.DataFrame({
        "x1": x1,
        "x2": x2,
        "group": rng.choice(["a", "b", "c"], 100),
        "label": pd.Categorical((x1 > 0).astype(int), categories=[0, 1]),
    })
