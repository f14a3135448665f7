from __future__ import annotations

RND = 42

# --- Raw election.csv columns ---
STATE_COL = "state"
COUNTY_COL = "county"
FIPS_COL = "fips"
POPULATION_COL = "population"
TOTAL_VOTES_COL = "total_votes_2012"
REP_VOTES_COL = "republican_votes_2012"
LABEL_2012 = "i_republican_2012"
LABEL_2016 = "i_republican_2016"

RAW_COLUMNS = [
    STATE_COL,
    COUNTY_COL,
    FIPS_COL,
    POPULATION_COL,
    TOTAL_VOTES_COL,
    REP_VOTES_COL,
    LABEL_2012,
    LABEL_2016,
]

NUMERIC_RAW = [POPULATION_COL, TOTAL_VOTES_COL, REP_VOTES_COL]
LABEL_COLS = [LABEL_2012, LABEL_2016]

# --- Derived columns ---
PCT_REP_COL = "pct_republican_2012"
LOG_POP_COL = "log_population"

# Two-level encoding of the majority indicators; 1 = Republican majority.
LABEL_LEVELS = [0, 1]
POSITIVE_LEVEL = 1

# Level that absorbs categories never seen while fitting.
UNSEEN_LEVEL = "__unseen__"

# --- Cross-validation / grids ---
N_FOLDS = 5
PENALTY_START = 5.0    # log10, strongest penalty
PENALTY_STOP = -2.0    # log10, weakest penalty
N_PENALTIES = 1000
MIXTURE_START = 0.0
MIXTURE_STOP = 1.0
MIXTURE_STEP = 0.05
THRESHOLD = 0.5
