from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def build_artifact_name(prefix: str, model_name: str) -> str:
    return f"{prefix}_full_{model_name}"


def save_models(
    models: dict[str, Any],
    artifacts_dir: Path,
    prefix: str = "county",
    best_params: dict[str, Any] | None = None,
    label: str | None = None,
) -> dict[str, Any]:
    """
    Saves each fitted pipeline and a manifest:
      - <artifacts_dir>/<prefix>_full_<model>.joblib
      - <artifacts_dir>/<prefix>_manifest.json  (what was saved + best params)
    """
    import joblib

    artifacts_dir = Path(artifacts_dir)
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    model_paths: dict[str, str] = {}
    for name, model in models.items():
        path = artifacts_dir / f"{build_artifact_name(prefix, name)}.joblib"
        joblib.dump(model, path)
        model_paths[name] = str(path)

    manifest = {
        "artifact_prefix": prefix,
        "label": label,
        "models": list(models.keys()),
        "model_paths": model_paths,
        "best_params": best_params or {},
    }
    manifest_path = artifacts_dir / f"{prefix}_manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return manifest


def load_manifest(artifacts_dir: Path, prefix: str = "county") -> dict[str, Any]:
    path = Path(artifacts_dir) / f"{prefix}_manifest.json"
    if not path.exists():
        raise FileNotFoundError(f"Missing manifest: {path}. Run the report with --save-models first.")
    return json.loads(path.read_text(encoding="utf-8"))


def load_models_from_manifest(artifacts_dir: Path, prefix: str = "county") -> dict[str, Any]:
    import joblib

    manifest = load_manifest(artifacts_dir, prefix)
    model_paths = manifest.get("model_paths", {})
    if not isinstance(model_paths, dict) or not model_paths:
        raise ValueError("Manifest has no model_paths. Re-save the models.")

    return {name: joblib.load(path) for name, path in model_paths.items()}
