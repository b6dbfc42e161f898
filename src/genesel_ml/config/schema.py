"""
Configuration schema for GeneSel-ML.

Pydantic models for the aggregation and output parameters. Defaults match
config/defaults.py.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AggregationConfig(BaseModel):
    """Configuration for score, importance and overlap aggregation."""

    scoring: str = "accuracy"
    normalize_native: bool = True
    n_perm_repeats: int = Field(default=10, ge=1)
    random_state: int = 0
    top_n: int | None = Field(default=None, ge=1)
    overlap_coefficient: Literal["jaccard", "overlap"] = "jaccard"
    overlap_kind: Literal["model_native", "permutation"] = "model_native"
    n_jobs: int = 1

    @field_validator("n_jobs")
    @classmethod
    def validate_n_jobs(cls, value: int) -> int:
        """joblib accepts positive counts or -1 (all cores)."""
        if value == 0 or value < -1:
            raise ValueError(f"n_jobs must be >= 1 or -1, got {value}")
        return value


class OutputConfig(BaseModel):
    """Configuration for result snapshots and table export."""

    outdir: Path = Field(default=Path("results"))
    save_snapshot: bool = True
    save_tables: bool = True
    snapshot_name: str = "results.joblib"


class RunConfig(BaseModel):
    """Top-level configuration for one aggregation run."""

    model_config = ConfigDict(extra="forbid")

    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
