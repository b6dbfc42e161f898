"""Handle to the external training collaborator."""

from genesel_ml.models.session import (
    FoldResult,
    TrainingBackend,
    collect_fold_results,
    training_session,
)

__all__ = [
    "FoldResult",
    "TrainingBackend",
    "collect_fold_results",
    "training_session",
]
