from __future__ import annotations

import logging

from county_election.config.paths import PATHS
from county_election.data.load import load_election
from county_election.viz.plots import plot_majority_counts, plot_scatter_with_fit

DATA_PATH = PATHS.data / "election.csv"
FIG_DIR = PATHS.figures


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")

    df = load_election(DATA_PATH)

    bar = plot_majority_counts(df, FIG_DIR / "majority_counts.png")
    scatter = plot_scatter_with_fit(df, FIG_DIR / "log_population_vs_pct_republican.png")

    print("[OK] Plots written.")
    print("Saved:", bar)
    print("Saved:", scatter)


if __name__ == "__main__":
    main()
