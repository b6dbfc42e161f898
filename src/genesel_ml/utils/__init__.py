"""Utility functions for GeneSel-ML."""

from genesel_ml.utils.frozen import FrozenMap, freeze_mapping
from genesel_ml.utils.logging import log_section, setup_logger, verbose_to_level
from genesel_ml.utils.serialization import (
    load_joblib,
    load_json,
    load_results,
    save_joblib,
    save_json,
    save_results,
)

__all__ = [
    "FrozenMap",
    "freeze_mapping",
    "setup_logger",
    "verbose_to_level",
    "log_section",
    "save_joblib",
    "load_joblib",
    "save_results",
    "load_results",
    "save_json",
    "load_json",
]
