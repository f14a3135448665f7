from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import pandas as pd

from county_election.config.constants import (
    COUNTY_COL,
    FIPS_COL,
    LABEL_2012,
    LABEL_2016,
    LOG_POP_COL,
    PCT_REP_COL,
    POPULATION_COL,
    REP_VOTES_COL,
    STATE_COL,
    TOTAL_VOTES_COL,
)
from county_election.utils.errors import DataLoadError
from county_election.utils.validate import require_columns

Role = Literal["feature", "label", "id", "excluded"]
Kind = Literal["numeric", "categorical"]

ROLES = ("feature", "label", "id", "excluded")
KINDS = ("numeric", "categorical")


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    role: Role = "feature"
    kind: Kind = "numeric"


@dataclass(frozen=True)
class FeatureSchema:
    """
    Ordered column roles consumed by the preparation stage.

    Exactly one column is the label; every other column is a feature,
    an identifier, or excluded from modelling. Feature order is kept as
    declared so the design matrix is stable across runs.
    """

    columns: tuple[ColumnSpec, ...]

    def __post_init__(self) -> None:
        names = [c.name for c in self.columns]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Schema has duplicate columns: {dupes}")

        for c in self.columns:
            if c.role not in ROLES:
                raise ValueError(f"Column '{c.name}' has unknown role '{c.role}'. Expected one of {ROLES}.")
            if c.kind not in KINDS:
                raise ValueError(f"Column '{c.name}' has unknown kind '{c.kind}'. Expected one of {KINDS}.")

        labels = [c.name for c in self.columns if c.role == "label"]
        if len(labels) != 1:
            raise ValueError(f"Schema needs exactly one label column, got {labels}")
        if not any(c.role == "feature" for c in self.columns):
            raise ValueError("Schema needs at least one feature column.")

    @property
    def label(self) -> str:
        return next(c.name for c in self.columns if c.role == "label")

    @property
    def label_kind(self) -> Kind:
        return next(c.kind for c in self.columns if c.role == "label")

    @property
    def features(self) -> list[str]:
        return [c.name for c in self.columns if c.role == "feature"]

    @property
    def numeric_features(self) -> list[str]:
        return [c.name for c in self.columns if c.role == "feature" and c.kind == "numeric"]

    @property
    def categorical_features(self) -> list[str]:
        return [c.name for c in self.columns if c.role == "feature" and c.kind == "categorical"]

    @property
    def id_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.role == "id"]

    @property
    def excluded(self) -> list[str]:
        return [c.name for c in self.columns if c.role == "excluded"]

    @property
    def required_columns(self) -> list[str]:
        """Columns a frame must carry to be modelled (excluded ones are optional)."""
        return [c.name for c in self.columns if c.role != "excluded"]

    def validate_frame(self, df: pd.DataFrame, name: str = "df") -> None:
        require_columns(df, self.required_columns, name=name, exc=DataLoadError)


REGRESSION_SCHEMA = FeatureSchema(columns=(
    ColumnSpec(FIPS_COL, "id", "categorical"),
    ColumnSpec(STATE_COL, "feature", "categorical"),
    ColumnSpec(COUNTY_COL, "feature", "categorical"),
    ColumnSpec(POPULATION_COL, "feature", "numeric"),
    ColumnSpec(LOG_POP_COL, "feature", "numeric"),
    ColumnSpec(TOTAL_VOTES_COL, "feature", "numeric"),
    ColumnSpec(REP_VOTES_COL, "excluded", "numeric"),
    ColumnSpec(LABEL_2012, "excluded", "categorical"),
    ColumnSpec(LABEL_2016, "excluded", "categorical"),
    ColumnSpec(PCT_REP_COL, "label", "numeric"),
))

CLASSIFICATION_SCHEMA = FeatureSchema(columns=(
    ColumnSpec(FIPS_COL, "id", "categorical"),
    ColumnSpec(STATE_COL, "feature", "categorical"),
    ColumnSpec(COUNTY_COL, "feature", "categorical"),
    ColumnSpec(POPULATION_COL, "feature", "numeric"),
    ColumnSpec(LOG_POP_COL, "feature", "numeric"),
    ColumnSpec(TOTAL_VOTES_COL, "feature", "numeric"),
    ColumnSpec(REP_VOTES_COL, "feature", "numeric"),
    ColumnSpec(PCT_REP_COL, "feature", "numeric"),
    ColumnSpec(LABEL_2012, "feature", "categorical"),
    ColumnSpec(LABEL_2016, "label", "categorical"),
))

# Unpenalized logistic: one dummy per county would separate the data perfectly,
# so the baseline model only sees the numeric columns and the 2012 outcome.
BASELINE_LOGISTIC_SCHEMA = FeatureSchema(columns=tuple(
    ColumnSpec(c.name, "excluded", c.kind) if c.name in (STATE_COL, COUNTY_COL) else c
    for c in CLASSIFICATION_SCHEMA.columns
))
