"""
GeneSel-ML: aggregation and comparison of gene feature-selection results

Reduces per-fold cross-validation scores and feature importances from several
feature-selection methods, compares the selected gene lists, and bundles the
results into an immutable, snapshot-able container.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from genesel_ml import (  # noqa: E402
    config,
    evaluation,
    features,
    models,
    utils,
)
from genesel_ml.errors import (  # noqa: E402
    DimensionMismatchError,
    EmptyCollectionError,
    EmptyInputError,
    GeneSelError,
    MethodNotFoundError,
)

__all__ = [
    "__version__",
    "config",
    "evaluation",
    "features",
    "models",
    "utils",
    "DimensionMismatchError",
    "EmptyCollectionError",
    "EmptyInputError",
    "GeneSelError",
    "MethodNotFoundError",
]
