"""
Shared pytest fixtures for GeneSel-ML tests.
"""

import json
import logging

import pytest
from genesel_ml.models.session import FoldResult, TrainingBackend

# Per-method fold scores: means are boruta=0.9210, Lasso=0.9153,
# RandomForest=0.9128, Univariate=0.9046
FOLD_SCORES = {
    "boruta": [0.9200, 0.9220, 0.9210],
    "Lasso": [0.9103, 0.9203, 0.9153],
    "RandomForest": [0.9128, 0.9028, 0.9228],
    "Univariate": [0.9046, 0.9046, 0.9046],
}

NATIVE_IMPORTANCE = {
    "boruta": [
        {"TP53": 30.0, "EGFR": 20.0, "BRCA1": 10.0},
        {"TP53": 25.0, "EGFR": 25.0, "MYC": 10.0},
        {"TP53": 40.0, "BRCA1": 20.0},
    ],
    "Lasso": [
        {"TP53": 0.8, "EGFR": -0.4, "KRAS": 0.0},
        {"TP53": 0.6, "KRAS": 0.2},
        {"EGFR": 0.5, "KRAS": 0.5},
    ],
    "RandomForest": [
        {"TP53": 0.3, "MYC": 0.1},
        {"TP53": 0.2, "MYC": 0.2},
        {"TP53": 0.5, "MYC": 0.1, "EGFR": 0.4},
    ],
    "Univariate": [
        {"BRCA1": 12.0, "MYC": 4.0},
        {"BRCA1": 10.0, "MYC": 6.0},
        {"BRCA1": 8.0, "MYC": 8.0},
    ],
}

PERMUTATION_IMPORTANCE = {
    "boruta": [
        {"TP53": 0.05, "EGFR": 0.02, "BRCA1": 0.01},
        {"TP53": 0.04, "EGFR": 0.03, "MYC": 0.00},
        {"TP53": 0.06, "BRCA1": 0.02},
    ],
    "Lasso": [
        {"TP53": 0.03, "EGFR": 0.01, "KRAS": -0.01},
        {"TP53": 0.02, "KRAS": 0.01},
        {"EGFR": 0.02, "KRAS": 0.02},
    ],
}


def make_fold_results(with_permutation: bool = True) -> list[FoldResult]:
    """Fold results for four methods x three folds."""
    results = []
    for method, scores in FOLD_SCORES.items():
        for fold, score in enumerate(scores):
            perm = None
            if with_permutation and method in PERMUTATION_IMPORTANCE:
                perm = PERMUTATION_IMPORTANCE[method][fold]
            results.append(
                FoldResult(
                    method=method,
                    fold=fold,
                    score=score,
                    native_importance=NATIVE_IMPORTANCE[method][fold],
                    permutation_importance=perm,
                )
            )
    return results


class FakeBackend(TrainingBackend):
    """In-memory training backend serving precomputed fold results."""

    name = "fake"

    def __init__(self, fold_results, config=None):
        super().__init__(config)
        self._by_method = {}
        for fr in fold_results:
            self._by_method.setdefault(fr.method, []).append(fr)
        self.opened = False
        self.closed = False
        self.calls = []

    def open(self):
        self.opened = True

    def close(self):
        self.closed = True

    def run_method(self, method):
        if not self.opened or self.closed:
            raise RuntimeError("backend is not open")
        self.calls.append(method)
        # Reverse order to check that callers sort by fold
        return list(reversed(self._by_method[method]))


@pytest.fixture
def fold_results():
    return make_fold_results()


@pytest.fixture
def fold_results_no_permutation():
    return make_fold_results(with_permutation=False)


@pytest.fixture
def fake_backend(fold_results):
    return FakeBackend(fold_results)


@pytest.fixture
def fold_results_json(tmp_path):
    """Fold-results JSON file as written by a training backend."""
    folds = []
    for fr in make_fold_results():
        entry = {
            "method": fr.method,
            "fold": fr.fold,
            "score": fr.score,
            "native_importance": fr.native_importance,
        }
        if fr.permutation_importance is not None:
            entry["permutation_importance"] = fr.permutation_importance
        folds.append(entry)

    path = tmp_path / "fold_results.json"
    path.write_text(json.dumps({"scoring": "accuracy", "folds": folds}))
    return path


@pytest.fixture
def translation_csv(tmp_path):
    """Identifier translation table (symbol, Ensembl, Entrez)."""
    path = tmp_path / "translation.csv"
    path.write_text(
        "symbol,stable,numeric\n"
        "TP53,ENSG00000141510,7157\n"
        "EGFR,ENSG00000146648,1956\n"
        "BRCA1,ENSG00000012048,672\n"
        "MYC,ENSG00000136997,4609\n"
        "KRAS,ENSG00000133703,3845\n"
    )
    return path


@pytest.fixture
def backend_factory():
    """Build a FakeBackend from arbitrary fold results."""
    return FakeBackend


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logger() side effects so caplog sees library warnings."""
    yield
    pkg_logger = logging.getLogger("genesel_ml")
    for handler in pkg_logger.handlers:
        handler.close()
    pkg_logger.handlers.clear()
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
