from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

@dataclass(frozen=True)
class ProjectPaths:
    """Data lives under <root>/data; report outputs and figures under data/outputs."""
    root: Path

    @property
    def data(self) -> Path:
        return self.root / "data"

    @property
    def outputs(self) -> Path:
        return self.data / "outputs"

    @property
    def figures(self) -> Path:
        return self.outputs / "figures"


def get_project_root() -> Path:
    # county_election/config/ is two levels below the repo root
    return Path(__file__).resolve().parents[2]


PATHS = ProjectPaths(root=get_project_root())
