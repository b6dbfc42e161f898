"""
Serialization utilities for result snapshots.

A snapshot is a joblib bundle {"results": ResultsContainer, "versions": {...}}.
Loading warns when the library versions differ from the ones that wrote it.
"""

import json
import logging
import warnings
from pathlib import Path
from typing import Any

import joblib
import numpy as np
import pandas as pd
import sklearn

from genesel_ml import __version__

logger = logging.getLogger(__name__)


def current_versions() -> dict[str, str]:
    return {
        "genesel_ml": __version__,
        "sklearn": sklearn.__version__,
        "pandas": pd.__version__,
        "numpy": np.__version__,
    }


def save_joblib(obj: Any, path: str | Path, compress: int = 3):
    """Save object using joblib."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(obj, path, compress=compress)


def load_joblib(path: str | Path, check_versions: bool = True) -> Any:
    """
    Load object using joblib with optional version checking.

    Args:
        path: Path to joblib file
        check_versions: If True and the object is a bundle with version metadata,
            warn if library versions differ from the current environment

    Returns:
        Loaded object

    Warns:
        UserWarning if versions mismatch and check_versions=True
    """
    obj = joblib.load(path)

    if check_versions and isinstance(obj, dict) and "versions" in obj:
        current = current_versions()
        mismatches = []
        for lib, saved_ver in obj["versions"].items():
            current_ver = current.get(lib)
            if current_ver and saved_ver != current_ver:
                mismatches.append(f"{lib}: saved={saved_ver}, current={current_ver}")

        if mismatches:
            warnings.warn(
                f"Snapshot version mismatch in {Path(path).name}:\n"
                + "\n".join(f"  - {m}" for m in mismatches),
                UserWarning,
                stacklevel=2,
            )

    return obj


def save_results(results: Any, path: str | Path) -> Path:
    """Write a ResultsContainer snapshot with version metadata."""
    path = Path(path)
    save_joblib({"results": results, "versions": current_versions()}, path)
    logger.info(f"Saved results snapshot: {path}")
    return path


def load_results(path: str | Path, check_versions: bool = True) -> Any:
    """Load a snapshot written by save_results.

    Raises:
        FileNotFoundError: If the snapshot does not exist
        ValueError: If the file is not a results snapshot
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results snapshot not found: {path}")

    bundle = load_joblib(path, check_versions=check_versions)
    if not isinstance(bundle, dict) or "results" not in bundle:
        raise ValueError(f"Not a results snapshot: {path}")
    return bundle["results"]


def save_json(obj: Any, path: str | Path, indent: int = 2):
    """Save object as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(obj, f, indent=indent, default=str)


def load_json(path: str | Path) -> Any:
    """Load JSON file."""
    with open(path) as f:
        return json.load(f)
