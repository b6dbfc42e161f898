"""Tests for utils/serialization.py - results snapshots."""

import dataclasses
import warnings

import joblib
import pytest
from genesel_ml.evaluation.results import build_results_container, parse_test_metrics
from genesel_ml.features.gene_lists import GeneList
from genesel_ml.utils.serialization import (
    current_versions,
    load_json,
    load_results,
    save_json,
    save_results,
)


@pytest.fixture
def results(fold_results):
    return build_results_container(
        fold_results, test_metrics=parse_test_metrics([{"method": "boruta", "auroc": 0.9}])
    )


class TestSnapshotRoundTrip:
    """A reloaded snapshot matches the original field by field."""

    def test_scores_and_best_method(self, results, tmp_path):
        path = save_results(results, tmp_path / "results.joblib")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            loaded = load_results(path)

        assert loaded.best_method == results.best_method
        assert loaded.scores == results.scores
        assert loaded.cv_results == results.cv_results

    def test_importance_records(self, results, tmp_path):
        path = save_results(results, tmp_path / "results.joblib")
        loaded = load_results(path)

        assert loaded.native_importance == results.native_importance
        assert loaded.permutation_importance == results.permutation_importance
        for method in results.native_importance.methods:
            assert loaded.native_importance.fold_ranks(method) == (
                results.native_importance.fold_ranks(method)
            )

    def test_gene_lists_stay_read_only(self, results, tmp_path):
        results = dataclasses.replace(
            results, gene_lists={"boruta": GeneList(["TP53"], ["ENSG00000141510"], ["7157"])}
        )
        loaded = load_results(save_results(results, tmp_path / "results.joblib"))

        assert loaded.gene_lists == results.gene_lists
        with pytest.raises(TypeError):
            loaded.gene_lists["Lasso"] = None
        with pytest.raises(TypeError):
            loaded.native_importance.records["boruta"] = ()

    def test_test_metrics(self, results, tmp_path):
        loaded = load_results(save_results(results, tmp_path / "results.joblib"))
        assert loaded.test_metrics.kind == "tabular"
        assert loaded.test_metrics.table.equals(results.test_metrics.table)

    def test_version_mismatch_warns(self, results, tmp_path):
        path = tmp_path / "old.joblib"
        versions = dict(current_versions(), sklearn="0.0.1")
        joblib.dump({"results": results, "versions": versions}, path)

        with pytest.warns(UserWarning, match="version mismatch"):
            load_results(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_results(tmp_path / "missing.joblib")

    def test_not_a_snapshot(self, tmp_path):
        path = tmp_path / "other.joblib"
        joblib.dump([1, 2, 3], path)
        with pytest.raises(ValueError, match="Not a results snapshot"):
            load_results(path)


class TestJson:
    """Tests for save_json / load_json."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "a" / "b.json"
        save_json({"method": "boruta", "score": 0.92}, path)
        assert load_json(path) == {"method": "boruta", "score": 0.92}

    def test_non_json_values_stringified(self, tmp_path):
        path = tmp_path / "c.json"
        save_json({"path": tmp_path}, path)
        assert load_json(path) == {"path": str(tmp_path)}
