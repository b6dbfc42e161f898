"""Feature importance aggregation across CV folds.

Two importance kinds are aggregated independently:

- model_native: read from the fitted model (split-reduction sums, absolute
  linear coefficients, ...). Raw scales differ between algorithms, so each
  fold's vector is normalized to sum to 1 before averaging.
- permutation: baseline score minus score after shuffling a feature, averaged
  over repeated shuffles. Already in score units, so it is not normalized.

A feature missing from a fold's mapping was not evaluated in that fold. It is
left out of that fold's mean, std and rank instead of counting as zero.

Per-fold ranks are stored as nested maps (method -> fold -> feature -> rank).
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance

from genesel_ml.errors import EmptyInputError, MethodNotFoundError
from genesel_ml.utils.frozen import FrozenMap, freeze_mapping

logger = logging.getLogger(__name__)

ImportanceKind = Literal["model_native", "permutation"]
IMPORTANCE_KINDS: tuple[str, ...] = ("model_native", "permutation")

FoldImportances = Sequence[Mapping[str, float] | None] | Mapping[int, Mapping[str, float] | None]


@dataclass(frozen=True)
class ImportanceRecord:
    """Aggregated importance of one feature for one method and kind.

    Attributes:
        feature: Feature identifier
        mean_importance: Mean over the folds where the feature appeared
        std_importance: Sample std over those folds, None if only one fold
        per_fold_rank: Fold index -> rank within that fold (observed folds only)
        n_folds: Number of folds that contributed
    """

    feature: str
    mean_importance: float
    std_importance: float | None
    per_fold_rank: FrozenMap = field(default_factory=FrozenMap)
    n_folds: int = 0

    def __post_init__(self):
        object.__setattr__(self, "per_fold_rank", freeze_mapping(self.per_fold_rank))


@dataclass(frozen=True)
class ImportanceTable:
    """Aggregated importance records of one kind, keyed by method (read-only)."""

    kind: str
    records: FrozenMap = field(default_factory=FrozenMap)

    def __post_init__(self):
        frozen = {method: tuple(recs) for method, recs in self.records.items()}
        object.__setattr__(self, "records", FrozenMap(frozen))

    @property
    def methods(self) -> list[str]:
        return sorted(self.records)

    def records_for(self, method: str) -> tuple[ImportanceRecord, ...]:
        """Records for one method, ordered by mean importance (desc)."""
        if method not in self.records:
            raise MethodNotFoundError(method, kind=self.kind, available=list(self.records))
        return self.records[method]

    def top_features(self, method: str, n: int) -> list[str]:
        """Return the n features with highest mean importance.

        Ties are broken by feature identifier (ascending).

        Raises:
            MethodNotFoundError: If the method has no records of this kind
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        return [rec.feature for rec in self.records_for(method)[:n]]

    def selected_features(self, method: str) -> list[str]:
        """All features observed in at least one fold, best first."""
        return [rec.feature for rec in self.records_for(method)]

    def fold_ranks(self, method: str) -> dict[int, dict[str, int]]:
        """Nested fold -> feature -> rank map for one method."""
        ranks: dict[int, dict[str, int]] = {}
        for rec in self.records_for(method):
            for fold, rank in rec.per_fold_rank.items():
                ranks.setdefault(fold, {})[rec.feature] = rank
        return {
            fold: dict(sorted(feats.items(), key=lambda kv: kv[1]))
            for fold, feats in sorted(ranks.items())
        }

    def to_frame(self) -> pd.DataFrame:
        """Long-format table, one row per method/feature."""
        columns = [
            "method",
            "feature",
            "mean_importance",
            "std_importance",
            "n_folds",
            "rank",
            "per_fold_rank",
        ]
        rows = []
        for method in self.methods:
            for rank, rec in enumerate(self.records[method], start=1):
                rows.append(
                    {
                        "method": method,
                        "feature": rec.feature,
                        "mean_importance": rec.mean_importance,
                        "std_importance": (
                            np.nan if rec.std_importance is None else rec.std_importance
                        ),
                        "n_folds": rec.n_folds,
                        "rank": rank,
                        "per_fold_rank": ";".join(
                            f"{fold}:{r}" for fold, r in sorted(rec.per_fold_rank.items())
                        ),
                    }
                )
        return pd.DataFrame(rows, columns=columns)


def normalize_fold_importance(fold_importance: Mapping[str, float]) -> dict[str, float]:
    """Scale a fold's importance magnitudes to sum to 1.

    Signed values (e.g. linear coefficients) contribute by magnitude. A fold
    whose magnitudes sum to zero is returned as zeros.

    Example:
        >>> normalize_fold_importance({"TP53": 3.0, "EGFR": -1.0})
        {'TP53': 0.75, 'EGFR': 0.25}
    """
    if not fold_importance:
        return {}
    features = list(fold_importance)
    values = np.abs(np.asarray([fold_importance[f] for f in features], dtype=float))
    total = values.sum()
    if total <= 0:
        logger.warning("Fold importance vector sums to zero; cannot normalize")
        return {f: 0.0 for f in features}
    return {f: float(v / total) for f, v in zip(features, values, strict=True)}


def rank_fold_features(fold_importance: Mapping[str, float]) -> dict[str, int]:
    """Rank features within one fold (1 = most important, ties by identifier).

    Example:
        >>> rank_fold_features({"B": 0.5, "A": 0.5, "C": 0.9})
        {'C': 1, 'A': 2, 'B': 3}
    """
    ordered = sorted(fold_importance, key=lambda f: (-fold_importance[f], f))
    return {feature: rank for rank, feature in enumerate(ordered, start=1)}


def aggregate_method_importance(
    method: str,
    fold_importances: FoldImportances,
    normalize: bool,
) -> tuple[ImportanceRecord, ...]:
    """Aggregate one method's per-fold importances.

    Args:
        method: Method identifier (used in errors and logs)
        fold_importances: One feature -> importance mapping per fold, either a
            sequence (fold index = position) or a dict keyed by fold index.
            None marks a fold that produced no importances.
        normalize: Normalize each fold vector to sum to 1 first

    Returns:
        Records ordered by (mean_importance DESC, feature ASC)

    Raises:
        EmptyInputError: If there are no folds or no fold observed any feature
        ValueError: If an importance value is not finite
    """
    if len(fold_importances) == 0:
        raise EmptyInputError(f"Method '{method}' has no folds")

    values: dict[str, list[float]] = {}
    ranks: dict[str, dict[int, int]] = {}

    if isinstance(fold_importances, Mapping):
        folds = sorted(fold_importances.items())
    else:
        folds = list(enumerate(fold_importances))

    for fold, raw in folds:
        if not raw:
            logger.debug(f"  {method} fold {fold}: no features observed")
            continue

        bad = [f for f, v in raw.items() if not np.isfinite(v)]
        if bad:
            raise ValueError(
                f"Method '{method}' fold {fold} has non-finite importance for: "
                f"{', '.join(sorted(bad))}"
            )

        if normalize:
            fold_values = normalize_fold_importance(raw)
        else:
            fold_values = {f: float(v) for f, v in raw.items()}
        for feature, rank in rank_fold_features(fold_values).items():
            values.setdefault(feature, []).append(fold_values[feature])
            ranks.setdefault(feature, {})[fold] = rank

    if not values:
        raise EmptyInputError(f"Method '{method}' has no observed features in any fold")

    records = []
    for feature, vals in values.items():
        arr = np.asarray(vals, dtype=float)
        records.append(
            ImportanceRecord(
                feature=feature,
                mean_importance=float(arr.mean()),
                std_importance=float(arr.std(ddof=1)) if arr.size >= 2 else None,
                per_fold_rank=ranks[feature],
                n_folds=int(arr.size),
            )
        )

    records.sort(key=lambda r: (-r.mean_importance, r.feature))
    return tuple(records)


def aggregate_importances(
    fold_importances: Mapping[str, FoldImportances],
    kind: ImportanceKind = "model_native",
    normalize: bool | None = None,
) -> ImportanceTable:
    """Aggregate per-fold importances of one kind for every method.

    Args:
        fold_importances: Dict mapping method -> per-fold importance mappings
        kind: "model_native" or "permutation"
        normalize: Override per-fold normalization (default: True for
            model_native, False for permutation)

    Returns:
        ImportanceTable keyed by method (sorted by method identifier)

    Raises:
        ValueError: If kind is unknown
        EmptyInputError: If any method has no usable folds
    """
    if kind not in IMPORTANCE_KINDS:
        raise ValueError(f"Unknown importance kind: {kind}. Expected one of {IMPORTANCE_KINDS}")
    if normalize is None:
        normalize = kind == "model_native"

    records = {
        method: aggregate_method_importance(method, fold_importances[method], normalize)
        for method in sorted(fold_importances)
    }
    logger.info(
        f"Aggregated {kind} importance for {len(records)} method(s) "
        f"(normalized={'yes' if normalize else 'no'})"
    )
    return ImportanceTable(kind=kind, records=records)


def permutation_importance_from_scores(
    baseline_score: float,
    shuffled_scores: Mapping[str, Sequence[float]],
) -> dict[str, float]:
    """Permutation importance from precomputed scores.

    importance = baseline_score - mean(score after shuffling the feature)

    Args:
        baseline_score: Score on unshuffled data
        shuffled_scores: Dict mapping feature -> scores over repeated shuffles

    Raises:
        EmptyInputError: If a feature has no shuffle scores

    Example:
        >>> imp = permutation_importance_from_scores(0.9, {"TP53": [0.7, 0.8]})
        >>> round(imp["TP53"], 2)
        0.15
    """
    importance = {}
    for feature, scores in shuffled_scores.items():
        if len(scores) == 0:
            raise EmptyInputError(f"Feature '{feature}' has no shuffle scores")
        importance[feature] = float(baseline_score - np.mean(scores))
    return importance


def compute_permutation_importance(
    estimator: Any,
    X: pd.DataFrame,
    y: np.ndarray,
    scoring: str | None = None,
    n_repeats: int = 5,
    random_state: int = 0,
    n_jobs: int | None = None,
    features: Sequence[str] | None = None,
) -> dict[str, float]:
    """Permutation importance of a fitted estimator on one fold's data.

    Delegates the shuffling to sklearn.inspection.permutation_importance and
    maps importances_mean back to column names. Features whose importance is
    not finite are dropped with a warning (absent for this fold).

    Args:
        estimator: Fitted estimator or pipeline
        X: Held-out fold features
        y: Held-out fold labels
        scoring: sklearn scorer name (None = estimator.score)
        n_repeats: Shuffles per feature
        random_state: Seed for the shuffles
        n_jobs: Parallel jobs for sklearn
        features: Restrict the output to these columns (e.g. retained features)

    Returns:
        Dict mapping feature -> mean importance over shuffles
    """
    result = permutation_importance(
        estimator,
        X,
        y,
        scoring=scoring,
        n_repeats=n_repeats,
        random_state=random_state,
        n_jobs=n_jobs,
    )
    importance = {
        str(col): float(imp) for col, imp in zip(X.columns, result.importances_mean, strict=True)
    }
    non_finite = sorted(f for f, v in importance.items() if not np.isfinite(v))
    if non_finite:
        logger.warning(
            f"Dropping {len(non_finite)} feature(s) with non-finite permutation "
            f"importance: {', '.join(non_finite)}"
        )
        importance = {f: v for f, v in importance.items() if f not in non_finite}
    if features is not None:
        keep = set(features)
        importance = {f: v for f, v in importance.items() if f in keep}
    return importance
