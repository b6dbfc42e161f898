"""
Handle to the external training collaborator.

The training runtime (grid search, CV fold execution, importance extraction)
lives outside this package. It is reached only through an explicit
TrainingBackend acquired with `training_session()` and released when the
block exits; there is no process-wide runtime state.

Design:
- FoldResult is the only data crossing the boundary
- Backends may run folds in any order or in parallel; collect_fold_results
  re-keys by method and sorts by fold so completion order never leaks out
"""

import contextlib
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from genesel_ml.config.schema import AggregationConfig
from genesel_ml.features.importance import compute_permutation_importance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldResult:
    """Output of one method on one outer CV fold.

    Attributes:
        method: Feature-selection method identifier
        fold: Outer fold index
        score: CV score of the fold (same scoring function for all folds)
        native_importance: Feature -> model-native importance
        permutation_importance: Feature -> permutation importance, or None
        retained_features: Features the fold's selector kept (None = all keys
            of the importance mappings)
    """

    method: str
    fold: int
    score: float
    native_importance: dict[str, float] = field(default_factory=dict)
    permutation_importance: dict[str, float] | None = None
    retained_features: tuple[str, ...] | None = None

    def _restrict(self, importance: Mapping[str, float]) -> dict[str, float]:
        if self.retained_features is None:
            return dict(importance)
        keep = set(self.retained_features)
        return {f: v for f, v in importance.items() if f in keep}

    def selected_native_importance(self) -> dict[str, float]:
        """Model-native importance limited to retained features."""
        return self._restrict(self.native_importance)

    def selected_permutation_importance(self) -> dict[str, float] | None:
        """Permutation importance limited to retained features."""
        if self.permutation_importance is None:
            return None
        return self._restrict(self.permutation_importance)

    @classmethod
    def from_dict(cls, data: Mapping) -> "FoldResult":
        """Build a FoldResult from one entry of the fold-results JSON.

        Raises:
            ValueError: If a required field is missing or null, or a value has
                the wrong type
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Fold result entry must be an object, got {type(data).__name__}")
        missing = [key for key in ("method", "fold", "score") if data.get(key) is None]
        if missing:
            raise ValueError(f"Fold result entry missing required field(s) {missing}: {data!r}")

        retained = data.get("retained_features")
        native = data.get("native_importance") or {}
        perm = data.get("permutation_importance")
        try:
            return cls(
                method=str(data["method"]),
                fold=int(data["fold"]),
                score=float(data["score"]),
                native_importance={str(k): float(v) for k, v in native.items()},
                permutation_importance=(
                    None if perm is None else {str(k): float(v) for k, v in perm.items()}
                ),
                retained_features=None if retained is None else tuple(str(f) for f in retained),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ValueError(
                f"Invalid fold result entry (method={data['method']!r}, "
                f"fold={data['fold']!r}): {e}"
            ) from e


class TrainingBackend:
    """Interface of the external training collaborator.

    Subclasses must override run_method(); open() and close() are optional
    hooks for acquiring and releasing the runtime. Subclasses wrap a concrete runtime (a scikit-learn process, a remote
    worker, an R session bridging to Python, ...).
    """

    name = "backend"

    def __init__(self, config: AggregationConfig | None = None):
        self.config = config or AggregationConfig()

    def open(self) -> None:
        """Acquire the runtime."""

    def close(self) -> None:
        """Release the runtime."""

    def run_method(self, method: str) -> Sequence[FoldResult]:
        """Run grid search + CV for one method and return its fold results."""
        raise NotImplementedError

    def permutation_importance(
        self,
        estimator: Any,
        X: pd.DataFrame,
        y: np.ndarray,
        features: Sequence[str] | None = None,
    ) -> dict[str, float]:
        """Permutation importance of a fitted fold model, using the configured
        scorer, shuffle count and seed."""
        return compute_permutation_importance(
            estimator,
            X,
            y,
            scoring=self.config.scoring,
            n_repeats=self.config.n_perm_repeats,
            random_state=self.config.random_state,
            features=features,
        )


@contextlib.contextmanager
def training_session(backend: TrainingBackend) -> Iterator[TrainingBackend]:
    """Open a backend for the duration of a block.

    Example:
        >>> with training_session(backend) as session:
        ...     results = collect_fold_results(session, ["Lasso", "RandomForest"])
    """
    logger.info(f"Opening training backend: {backend.name}")
    backend.open()
    try:
        yield backend
    finally:
        backend.close()
        logger.info(f"Closed training backend: {backend.name}")


def _run_one(session: TrainingBackend, method: str) -> tuple[str, list[FoldResult]]:
    results = list(session.run_method(method))
    return method, results


def collect_fold_results(
    session: TrainingBackend,
    methods: Sequence[str],
    n_jobs: int | None = None,
) -> list[FoldResult]:
    """Run every method on an open session and gather the fold results.

    Args:
        session: Backend returned by training_session()
        methods: Method identifiers to run
        n_jobs: Methods run concurrently (joblib threads); None uses the
            backend config

    Returns:
        FoldResults ordered by (method, fold), independent of completion order

    Raises:
        ValueError: If methods is empty, or the backend returns results for a
            different method than requested
    """
    if not methods:
        raise ValueError("No methods to run")
    if n_jobs is None:
        n_jobs = session.config.n_jobs

    if n_jobs == 1:
        outputs = [_run_one(session, m) for m in methods]
    else:
        outputs = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_run_one)(session, m) for m in methods
        )

    collected: list[FoldResult] = []
    for method, results in sorted(outputs, key=lambda item: item[0]):
        wrong = {fr.method for fr in results if fr.method != method}
        if wrong:
            raise ValueError(
                f"Backend returned results for {sorted(wrong)} when running '{method}'"
            )
        logger.info(f"  {method}: {len(results)} fold(s)")
        collected.extend(sorted(results, key=lambda fr: fr.fold))
    return collected
