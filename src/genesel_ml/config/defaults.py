"""
Default configuration values.

Single source of truth for default parameter values used by the schema and
the loader.
"""

from typing import Any

# Valid overlap coefficients
VALID_COEFFICIENTS = ["jaccard", "overlap"]

# Valid importance kinds
VALID_IMPORTANCE_KINDS = ["model_native", "permutation"]

DEFAULT_AGGREGATION_CONFIG: dict[str, Any] = {
    "scoring": "accuracy",
    "normalize_native": True,
    "n_perm_repeats": 10,
    "random_state": 0,
    "top_n": None,  # None = use every observed feature for overlap
    "overlap_coefficient": "jaccard",
    "overlap_kind": "model_native",
    "n_jobs": 1,
}

DEFAULT_OUTPUT_CONFIG: dict[str, Any] = {
    "outdir": "results",
    "save_snapshot": True,
    "save_tables": True,
    "snapshot_name": "results.joblib",
}
