"""Results container, test metrics and table export."""

from genesel_ml.evaluation.reports import export_results_tables
from genesel_ml.evaluation.results import (
    FoldScore,
    ResultsContainer,
    SplitTestMetrics,
    TabularTestMetrics,
    build_results_container,
    flatten_test_metrics,
    fold_results_by_method,
    parse_test_metrics,
)

__all__ = [
    "FoldScore",
    "ResultsContainer",
    "SplitTestMetrics",
    "TabularTestMetrics",
    "build_results_container",
    "export_results_tables",
    "flatten_test_metrics",
    "fold_results_by_method",
    "parse_test_metrics",
]
