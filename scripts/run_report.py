from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, replace
from pathlib import Path

from county_election.config.paths import PATHS
from county_election.config.schema import CLASSIFICATION_SCHEMA, REGRESSION_SCHEMA
from county_election.data.load import load_election
from county_election.models.artifacts import save_models
from county_election.models.study import (
    StudyConfig,
    load_study_config,
    run_classification_study,
    run_regression_study,
    study_to_json,
)
from county_election.models.tuning import show_best
from county_election.viz.plots import plot_majority_counts, plot_scatter_with_fit, plot_tuning_curve

DATA_PATH = PATHS.data / "election.csv"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Penalized regression and classification study on county election data",
    )
    parser.add_argument("--data", type=Path, default=DATA_PATH, help="Path to election.csv")
    parser.add_argument("--config", type=Path, default=None, help="JSON file of StudyConfig fields")
    parser.add_argument("--out-dir", type=Path, default=PATHS.outputs)
    parser.add_argument("--missing", choices=["drop", "raise"], default="drop",
                        help="Rows with missing required fields: drop them or fail")

    # Overrides on top of --config (or the defaults)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--folds", type=int, default=None)
    parser.add_argument("--n-penalties", type=int, default=None)
    parser.add_argument("--mixture-step", type=float, default=None)
    parser.add_argument("--evaluate-on", choices=["holdout", "training"], default=None)
    parser.add_argument("--auc-input", choices=["probability", "rounded"], default=None)
    parser.add_argument("--n-jobs", type=int, default=None)

    parser.add_argument("--skip-regression", action="store_true")
    parser.add_argument("--skip-classification", action="store_true")
    parser.add_argument("--save-models", action="store_true", help="Write joblib artifacts + manifest")
    parser.add_argument("--artifacts-dir", type=Path, default=None,
                        help="Where --save-models writes (default: <out-dir>/artifacts)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> StudyConfig:
    cfg = load_study_config(args.config) if args.config else StudyConfig()
    overrides = {
        "seed": args.seed,
        "n_folds": args.folds,
        "n_penalties": args.n_penalties,
        "mixture_step": args.mixture_step,
        "evaluate_on": args.evaluate_on,
        "auc_input": args.auc_input,
        "n_jobs": args.n_jobs,
    }
    return replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def report_study(name: str, study: dict, sections: list[str], out_dir: Path) -> None:
    fig_dir = out_dir / "figures"
    for sec in sections:
        table = study[sec]["table"]
        table.to_csv(out_dir / f"{sec}_tuning.csv", index=False, encoding="utf-8")
        if len(table) > 1:
            plot_tuning_curve(table, fig_dir / f"{sec}_tuning.png")

        print(f"\n== {name}: {sec} ==")
        print(show_best(table).to_string(index=False))
        print("Best params:", study[sec]["best_params"])
        print(f"Metrics on {study['evaluate_on']} rows:")
        for k, v in study[sec]["metrics"].items():
            print(f"  - {k}: {v:.4f}")


def save_study_models(study: dict, prefix: str, label: str, artifacts_dir: Path) -> dict:
    best_params = {k: study[k]["best_params"] for k in study["models"]}
    manifest = save_models(study["models"], artifacts_dir, prefix=prefix, best_params=best_params, label=label)
    print("Model paths:")
    for k, v in manifest["model_paths"].items():
        print(f"  - {k}: {v}")
    return manifest


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")
    args = parse_args(argv)
    cfg = build_config(args)

    out_dir = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    artifacts_dir = args.artifacts_dir or out_dir / "artifacts"

    df = load_election(args.data, missing=args.missing)

    # Descriptive plots
    plot_majority_counts(df, out_dir / "figures" / "majority_counts.png")
    plot_scatter_with_fit(df, out_dir / "figures" / "log_population_vs_pct_republican.png")

    summary = {"config": asdict(cfg), "n_rows": len(df)}

    if not args.skip_regression:
        reg = run_regression_study(df, cfg)
        report_study("regression", reg, ["lasso", "elastic_net"], out_dir)
        summary["regression"] = study_to_json(reg)
        if args.save_models:
            save_study_models(reg, "county_regression", REGRESSION_SCHEMA.label, artifacts_dir)

    if not args.skip_classification:
        clf = run_classification_study(df, cfg)
        report_study("classification", clf, ["logistic", "logistic_lasso", "logistic_elastic_net"], out_dir)
        summary["classification"] = study_to_json(clf)
        if args.save_models:
            save_study_models(clf, "county_classification", CLASSIFICATION_SCHEMA.label, artifacts_dir)

    metrics_path = out_dir / "study_metrics.json"
    metrics_path.write_text(json.dumps(summary, indent=2, allow_nan=False), encoding="utf-8")

    print("\n[OK] Study complete.")
    print("Saved:", metrics_path)


if __name__ == "__main__":
    main()
