"""Configuration management for GeneSel-ML."""

from genesel_ml.config.defaults import (
    DEFAULT_AGGREGATION_CONFIG,
    DEFAULT_OUTPUT_CONFIG,
    VALID_COEFFICIENTS,
    VALID_IMPORTANCE_KINDS,
)
from genesel_ml.config.loader import (
    apply_overrides,
    load_run_config,
    load_yaml,
    log_config_summary,
    save_config,
)
from genesel_ml.config.schema import AggregationConfig, OutputConfig, RunConfig

__all__ = [
    "DEFAULT_AGGREGATION_CONFIG",
    "DEFAULT_OUTPUT_CONFIG",
    "VALID_COEFFICIENTS",
    "VALID_IMPORTANCE_KINDS",
    "apply_overrides",
    "load_run_config",
    "load_yaml",
    "log_config_summary",
    "save_config",
    "AggregationConfig",
    "OutputConfig",
    "RunConfig",
]
