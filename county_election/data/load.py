from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import pandas as pd

from county_election.config.constants import (
    FIPS_COL,
    LABEL_COLS,
    NUMERIC_RAW,
    RAW_COLUMNS,
)
from county_election.features.transforms import add_derived_features, encode_labels
from county_election.utils.errors import DataLoadError
from county_election.utils.validate import require_columns, require_no_nulls

logger = logging.getLogger(__name__)

MissingPolicy = Literal["drop", "raise"]


def safe_read_csv(path: Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"File not found: {path}")
    try:
        return pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Could not parse {path}: {exc}") from exc


def normalize_fips(s: pd.Series) -> pd.Series:
    """FIPS codes as 5-char strings (CSV readers drop the leading zero)."""
    num = pd.to_numeric(s, errors="coerce")
    out = s.astype(str).str.strip()
    return out.where(num.isna(), num.round().astype("Int64").astype(str).str.zfill(5))


def clean_election(df_raw: pd.DataFrame, missing: MissingPolicy = "drop") -> pd.DataFrame:
    """
    Validate raw county rows and return a modelling-ready copy:
      1) required columns present
      2) numeric columns coerced (unparseable cells count as missing)
      3) rows with a missing required field dropped, or rejected when missing="raise"
      4) derived share / log-population columns added
      5) majority indicators encoded as two-level categoricals
    """
    if missing not in ("drop", "raise"):
        raise ValueError(f"Unknown missing policy '{missing}'. Expected drop/raise.")

    require_columns(df_raw, RAW_COLUMNS, name="election")

    df = df_raw.copy()
    for c in NUMERIC_RAW + LABEL_COLS:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    for c in ("state", "county"):
        df[c] = df[c].where(df[c].isna(), df[c].astype(str).str.strip())
        df[c] = df[c].replace("", pd.NA)

    if missing == "raise":
        require_no_nulls(df, RAW_COLUMNS, name="election")
    else:
        n_before = len(df)
        df = df.dropna(subset=RAW_COLUMNS)
        dropped = n_before - len(df)
        if dropped:
            logger.info("Dropped %d of %d rows with missing required fields", dropped, n_before)

    if df.empty:
        raise DataLoadError("election has no complete rows")

    df[FIPS_COL] = normalize_fips(df[FIPS_COL])
    df = add_derived_features(df)
    df = encode_labels(df, LABEL_COLS)
    return df.reset_index(drop=True)


def load_election(path: Path, missing: MissingPolicy = "drop") -> pd.DataFrame:
    df = clean_election(safe_read_csv(path), missing=missing)
    logger.info("Loaded %d county rows from %s", len(df), path)
    return df
