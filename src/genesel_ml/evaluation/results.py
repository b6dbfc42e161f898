"""
Results container for one feature-selection pipeline run.

Bundles the ranked CV scores, the two importance tables, the raw fold scores,
the best-method selection, optional test-set metrics and the derived gene
lists. The container is frozen: downstream analysis builds a new container
(dataclasses.replace) instead of editing one in place.

Test metrics are a two-case variant:
    TabularTestMetrics  one table of test metrics
    SplitTestMetrics    one table per evaluation split
A run whose test evaluation has not been done carries test_metrics=None.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import pandas as pd

from genesel_ml.errors import EmptyInputError, MethodNotFoundError
from genesel_ml.features.gene_lists import GeneList
from genesel_ml.features.importance import (
    IMPORTANCE_KINDS,
    ImportanceTable,
    aggregate_importances,
)
from genesel_ml.features.overlap import OverlapMatrix, compute_overlap_matrix
from genesel_ml.features.scores import (
    BestMethodSelection,
    MethodScoreRecord,
    aggregate_scores,
    scores_to_frame,
    select_best_method,
)
from genesel_ml.models.session import FoldResult
from genesel_ml.utils.frozen import FrozenMap, freeze_mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldScore:
    """One raw CV fold score."""

    method: str
    fold: int
    score: float


@dataclass(frozen=True, eq=False)
class TabularTestMetrics:
    """Test metrics as a single table (one row per method)."""

    table: pd.DataFrame
    kind: Literal["tabular"] = "tabular"


@dataclass(frozen=True, eq=False)
class SplitTestMetrics:
    """Test metrics as one table per evaluation split."""

    splits: tuple[pd.DataFrame, ...]
    kind: Literal["per_split"] = "per_split"


TestMetrics = TabularTestMetrics | SplitTestMetrics


def parse_test_metrics(payload: Any) -> TestMetrics | None:
    """Build the test-metrics variant from a JSON-like payload.

    Args:
        payload: None, a list of row dicts (tabular), or a list of lists of
            row dicts (per split)

    Returns:
        TabularTestMetrics, SplitTestMetrics, or None when payload is None

    Raises:
        ValueError: If the payload shape matches neither case
    """
    if payload is None:
        return None
    if not isinstance(payload, list):
        raise ValueError(f"Test metrics must be a list, got {type(payload).__name__}")
    if payload and all(isinstance(item, list) for item in payload):
        return SplitTestMetrics(splits=tuple(pd.DataFrame(rows) for rows in payload))
    if all(isinstance(item, dict) for item in payload):
        return TabularTestMetrics(table=pd.DataFrame(payload))
    raise ValueError("Test metrics must be a list of rows or a list of per-split row lists")


def flatten_test_metrics(metrics: TestMetrics) -> pd.DataFrame:
    """Flatten either test-metrics case into one table.

    Per-split tables gain a 0-based `split` column.
    """
    match metrics:
        case TabularTestMetrics(table=table):
            return table.copy()
        case SplitTestMetrics(splits=splits):
            if not splits:
                return pd.DataFrame(columns=["split"])
            frames = [df.assign(split=i) for i, df in enumerate(splits)]
            return pd.concat(frames, ignore_index=True)
        case _:
            raise TypeError(f"Unsupported test metrics type: {type(metrics).__name__}")


@dataclass(frozen=True)
class ResultsContainer:
    """Immutable bundle of one pipeline run's aggregated results.

    Attributes:
        best_method: Rank-1 method and the criterion used
        cv_results: Raw fold scores, ordered by (method, fold)
        native_importance: Aggregated model-native importance
        permutation_importance: Aggregated permutation importance (None if the
            collaborator did not compute it)
        scores: MethodScoreRecords ordered by rank
        test_metrics: Test-set metrics, None if not computed
        gene_lists: Optional method -> GeneList map derived from the importance
            tables (read-only)
    """

    best_method: BestMethodSelection
    cv_results: tuple[FoldScore, ...]
    native_importance: ImportanceTable
    permutation_importance: ImportanceTable | None
    scores: tuple[MethodScoreRecord, ...]
    test_metrics: TestMetrics | None = None
    gene_lists: FrozenMap = field(default_factory=FrozenMap)

    def __post_init__(self):
        object.__setattr__(self, "gene_lists", freeze_mapping(self.gene_lists))

    @property
    def methods(self) -> list[str]:
        return sorted(rec.method for rec in self.scores)

    @property
    def has_test_metrics(self) -> bool:
        return self.test_metrics is not None

    def scores_frame(self) -> pd.DataFrame:
        return scores_to_frame(self.scores)

    def cv_results_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"method": fs.method, "fold": fs.fold, "score": fs.score} for fs in self.cv_results],
            columns=["method", "fold", "score"],
        )

    def score_for(self, method: str) -> MethodScoreRecord:
        for rec in self.scores:
            if rec.method == method:
                return rec
        raise MethodNotFoundError(method, available=self.methods)

    def importance_table(self, kind: str) -> ImportanceTable:
        """Importance table of one kind.

        Raises:
            ValueError: If kind is unknown
            MethodNotFoundError: If permutation importance was not computed
        """
        if kind not in IMPORTANCE_KINDS:
            raise ValueError(f"Unknown importance kind: {kind}. Expected one of {IMPORTANCE_KINDS}")
        if kind == "model_native":
            return self.native_importance
        if self.permutation_importance is None:
            raise MethodNotFoundError("*", kind=kind)
        return self.permutation_importance

    def top_features(self, method: str, kind: str, n: int) -> list[str]:
        """Top-n features of one method by mean importance of one kind."""
        return self.importance_table(kind).top_features(method, n)

    def selected_features(
        self, kind: str = "model_native", top_n: int | None = None
    ) -> dict[str, list[str]]:
        """Per-method feature selection implied by an importance table.

        Args:
            kind: Importance kind
            top_n: Keep only the top-n features per method (None = all observed)
        """
        table = self.importance_table(kind)
        if top_n is None:
            return {m: table.selected_features(m) for m in table.methods}
        return {m: table.top_features(m, top_n) for m in table.methods}

    def overlap(
        self,
        kind: str = "model_native",
        coefficient: str = "jaccard",
        top_n: int | None = None,
    ) -> OverlapMatrix:
        """Overlap matrix among the per-method selections of one kind."""
        return compute_overlap_matrix(self.selected_features(kind, top_n), coefficient=coefficient)


def fold_results_by_method(fold_results: Sequence[FoldResult]) -> dict[str, list[FoldResult]]:
    """Group fold results by method, each list sorted by fold index.

    Raises:
        ValueError: If a method reports the same fold twice
    """
    grouped: dict[str, list[FoldResult]] = {}
    seen: set[tuple[str, int]] = set()
    for fr in fold_results:
        if (fr.method, fr.fold) in seen:
            raise ValueError(f"Duplicate fold {fr.fold} for method '{fr.method}'")
        seen.add((fr.method, fr.fold))
        grouped.setdefault(fr.method, []).append(fr)
    return {m: sorted(grouped[m], key=lambda fr: fr.fold) for m in sorted(grouped)}


def build_results_container(
    fold_results: Sequence[FoldResult],
    scoring: str = "accuracy",
    test_metrics: TestMetrics | None = None,
    normalize_native: bool = True,
    gene_lists: Mapping[str, GeneList] | None = None,
) -> ResultsContainer:
    """Reduce raw fold results into a ResultsContainer.

    Args:
        fold_results: FoldResults from the training collaborator, any order
        scoring: Name of the scoring function the fold scores were computed with
        test_metrics: Optional test-set metrics
        normalize_native: Normalize model-native importance per fold
        gene_lists: Optional GeneLists to attach

    Raises:
        EmptyInputError: If there are no fold results
    """
    if not fold_results:
        raise EmptyInputError("No fold results to aggregate")

    by_method = fold_results_by_method(fold_results)
    logger.info(
        f"Building results from {len(fold_results)} fold result(s) "
        f"across {len(by_method)} method(s)"
    )

    scores = aggregate_scores({m: [fr.score for fr in frs] for m, frs in by_method.items()})
    native = aggregate_importances(
        {
            m: {fr.fold: fr.selected_native_importance() for fr in frs}
            for m, frs in by_method.items()
        },
        kind="model_native",
        normalize=normalize_native,
    )

    permutation = None
    has_perm = {
        m: any(fr.permutation_importance is not None for fr in frs)
        for m, frs in by_method.items()
    }
    if any(has_perm.values()):
        missing = sorted(m for m, ok in has_perm.items() if not ok)
        if missing:
            logger.warning(f"No permutation importance for: {', '.join(missing)}")
        permutation = aggregate_importances(
            {
                m: {fr.fold: fr.selected_permutation_importance() for fr in frs}
                for m, frs in by_method.items()
                if has_perm[m]
            },
            kind="permutation",
        )

    cv_results = tuple(
        FoldScore(method=m, fold=fr.fold, score=float(fr.score))
        for m, frs in by_method.items()
        for fr in frs
    )

    best = select_best_method(scores, scoring=scoring)
    logger.info(f"Best method: {best.method} ({scoring}={best.mean_score:.4f})")

    return ResultsContainer(
        best_method=best,
        cv_results=cv_results,
        native_importance=native,
        permutation_importance=permutation,
        scores=scores,
        test_metrics=test_metrics,
        gene_lists=FrozenMap(gene_lists),
    )
