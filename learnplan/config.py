"""
Locations and tunables of a learning plan directory.

A plan directory holds ``data/config.json`` (task definitions),
``data/progress.json`` (progress) and an optional ``scripts/`` folder. The
directory is the ``--root`` command line option, else the ``LEARNPLAN_ROOT``
environment variable, else the current working directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


ROOT_ENV_VAR = "LEARNPLAN_ROOT"

DATA_DIR_NAME = "data"
SCRIPTS_DIR_NAME = "scripts"
CONFIG_FILE_NAME = "config.json"
PROGRESS_FILE_NAME = "progress.json"

# In-progress tasks older than this are reported as stuck by diagnostics
STUCK_TASK_DAYS = 7
# Assumed length of a remaining task for completion projections
DEFAULT_TASK_MINUTES = 120
# A milestone is announced on the first completion and every N completions
MILESTONE_INTERVAL = 5
NEXT_TASK_COUNT = 3
HIGH_AVERAGE_HOURS = 3
DEEP_CHAIN_DEPTH = 5


@dataclass(frozen=True)
class PlanPaths:
    """Resolved file locations of one plan directory."""

    root: Path

    @property
    def data_dir(self) -> Path:
        return self.root / DATA_DIR_NAME

    @property
    def scripts_dir(self) -> Path:
        return self.root / SCRIPTS_DIR_NAME

    @property
    def config_file(self) -> Path:
        return self.data_dir / CONFIG_FILE_NAME

    @property
    def progress_file(self) -> Path:
        return self.data_dir / PROGRESS_FILE_NAME


def resolve_paths(root: Optional[Union[str, Path]] = None) -> PlanPaths:
    if root is None:
        root = os.environ.get(ROOT_ENV_VAR) or Path.cwd()
    return PlanPaths(root=Path(root).expanduser().resolve())
