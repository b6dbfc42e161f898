"""Cross-validation score aggregation across feature-selection methods.

Reduces per-fold CV scores into one summary record per method and ranks the
methods against each other.

Design:
- Pure functions over already-materialized fold scores (no I/O)
- Mean and sample standard deviation (ddof=1) over folds
- Rank 1 = best: mean_score DESC, then std_score ASC, then method ASC
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from genesel_ml.errors import EmptyInputError

logger = logging.getLogger(__name__)

BEST_METHOD_CRITERION = "mean_score_desc_std_asc_method_asc"


@dataclass(frozen=True)
class MethodScoreRecord:
    """Summary of one method's fold scores for one evaluation."""

    method: str
    mean_score: float
    std_score: float
    n_folds: int


@dataclass(frozen=True)
class BestMethodSelection:
    """The top-ranked method and the rule used to select it."""

    method: str
    scoring: str
    mean_score: float
    std_score: float
    criterion: str = BEST_METHOD_CRITERION


def _rank_key(record: MethodScoreRecord) -> tuple[float, float, str]:
    return (-record.mean_score, record.std_score, record.method)


def summarize_fold_scores(method: str, fold_scores: Sequence[float]) -> MethodScoreRecord:
    """Reduce one method's fold scores to a MethodScoreRecord.

    Args:
        method: Method identifier
        fold_scores: One scalar score per CV fold

    Returns:
        MethodScoreRecord with mean and sample std over folds

    Raises:
        EmptyInputError: If no fold scores were supplied
        ValueError: If any fold score is not finite
    """
    values = np.asarray(list(fold_scores), dtype=float)
    if values.size == 0:
        raise EmptyInputError(f"Method '{method}' has no fold scores")
    if not np.all(np.isfinite(values)):
        raise ValueError(f"Method '{method}' has non-finite fold scores: {values.tolist()}")

    if values.size == 1:
        logger.debug(f"Method '{method}' has a single fold; std_score set to 0.0")
        std = 0.0
    else:
        std = float(np.std(values, ddof=1))

    return MethodScoreRecord(
        method=method,
        mean_score=float(np.mean(values)),
        std_score=std,
        n_folds=int(values.size),
    )


def rank_score_records(records: Sequence[MethodScoreRecord]) -> tuple[MethodScoreRecord, ...]:
    """Order records by rank (best first).

    Example:
        >>> recs = [
        ...     MethodScoreRecord("Lasso", 0.9153, 0.01, 5),
        ...     MethodScoreRecord("boruta", 0.9210, 0.02, 5),
        ... ]
        >>> [r.method for r in rank_score_records(recs)]
        ['boruta', 'Lasso']
    """
    return tuple(sorted(records, key=_rank_key))


def aggregate_scores(
    fold_scores: Mapping[str, Sequence[float]],
) -> tuple[MethodScoreRecord, ...]:
    """Aggregate per-fold CV scores for every method.

    Args:
        fold_scores: Dict mapping method -> per-fold scores (same scoring
            function for every fold)

    Returns:
        Tuple of MethodScoreRecord ordered by rank (rank 1 first)

    Raises:
        EmptyInputError: If no methods are given or a method has zero folds
    """
    if not fold_scores:
        raise EmptyInputError("No methods to aggregate scores for")

    records = [summarize_fold_scores(method, scores) for method, scores in fold_scores.items()]
    ranked = rank_score_records(records)

    logger.info(f"Aggregated CV scores for {len(ranked)} method(s)")
    for rank, rec in enumerate(ranked, start=1):
        logger.debug(
            f"  {rank}. {rec.method}: {rec.mean_score:.4f} +/- {rec.std_score:.4f} "
            f"(n_folds={rec.n_folds})"
        )
    return ranked


def select_best_method(
    records: Sequence[MethodScoreRecord],
    scoring: str = "accuracy",
) -> BestMethodSelection:
    """Pick the rank-1 method.

    Raises:
        EmptyInputError: If records is empty
    """
    if not records:
        raise EmptyInputError("Cannot select a best method from zero score records")

    best = rank_score_records(records)[0]
    return BestMethodSelection(
        method=best.method,
        scoring=scoring,
        mean_score=best.mean_score,
        std_score=best.std_score,
    )


def scores_to_frame(records: Sequence[MethodScoreRecord]) -> pd.DataFrame:
    """Tabulate score records with a rank column.

    Returns:
        DataFrame with columns [rank, method, mean_score, std_score, n_folds]
    """
    columns = ["rank", "method", "mean_score", "std_score", "n_folds"]
    if not records:
        return pd.DataFrame(columns=columns)

    rows = [
        {
            "rank": rank,
            "method": rec.method,
            "mean_score": rec.mean_score,
            "std_score": rec.std_score,
            "n_folds": rec.n_folds,
        }
        for rank, rec in enumerate(rank_score_records(records), start=1)
    ]
    return pd.DataFrame(rows, columns=columns)
