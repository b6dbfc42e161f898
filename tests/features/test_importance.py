"""Tests for features/importance.py - importance aggregation across folds.

Test coverage:
- normalize_fold_importance: sum-to-one, signed values, zero vectors
- rank_fold_features: ordering and tie-breaking
- aggregate_method_importance: mean/std, absent features, fold ranks
- aggregate_importances: kinds, normalization defaults
- ImportanceTable: top_features, fold_ranks, to_frame
- permutation helpers
"""

import logging

import numpy as np
import pandas as pd
import pytest
from genesel_ml.errors import EmptyInputError, MethodNotFoundError
from genesel_ml.features.importance import (
    ImportanceTable,
    aggregate_importances,
    aggregate_method_importance,
    compute_permutation_importance,
    normalize_fold_importance,
    permutation_importance_from_scores,
    rank_fold_features,
)
from sklearn.linear_model import LogisticRegression
from sklearn.utils import Bunch


class TestNormalizeFoldImportance:
    """Tests for normalize_fold_importance."""

    def test_sums_to_one(self):
        norm = normalize_fold_importance({"TP53": 30.0, "EGFR": 20.0, "BRCA1": 10.0})
        assert sum(norm.values()) == pytest.approx(1.0)
        assert norm["TP53"] == pytest.approx(0.5)

    def test_signed_coefficients_use_magnitude(self):
        norm = normalize_fold_importance({"TP53": 3.0, "EGFR": -1.0})
        assert norm == pytest.approx({"TP53": 0.75, "EGFR": 0.25})

    def test_zero_vector_stays_zero(self):
        norm = normalize_fold_importance({"TP53": 0.0, "EGFR": 0.0})
        assert norm == {"TP53": 0.0, "EGFR": 0.0}

    def test_empty(self):
        assert normalize_fold_importance({}) == {}


class TestRankFoldFeatures:
    """Tests for rank_fold_features."""

    def test_descending_rank(self):
        ranks = rank_fold_features({"A": 0.1, "B": 0.7, "C": 0.2})
        assert ranks == {"B": 1, "C": 2, "A": 3}

    def test_ties_broken_by_identifier(self):
        ranks = rank_fold_features({"B": 0.5, "A": 0.5, "C": 0.9})
        assert ranks == {"C": 1, "A": 2, "B": 3}


class TestAggregateMethodImportance:
    """Tests for aggregate_method_importance."""

    def test_mean_over_observed_folds_only(self):
        folds = [
            {"A": 2.0, "B": 1.0},
            {"A": 4.0},
        ]
        records = aggregate_method_importance("m", folds, normalize=False)
        by_feature = {r.feature: r for r in records}

        assert by_feature["A"].mean_importance == pytest.approx(3.0)
        assert by_feature["A"].n_folds == 2
        # B observed once: mean is its single value, not (1 + 0) / 2
        assert by_feature["B"].mean_importance == pytest.approx(1.0)
        assert by_feature["B"].n_folds == 1

    def test_std_absent_for_single_fold(self):
        folds = [{"A": 2.0, "B": 1.0}, {"A": 4.0}]
        by_feature = {r.feature: r for r in aggregate_method_importance("m", folds, False)}

        assert by_feature["A"].std_importance == pytest.approx(np.std([2.0, 4.0], ddof=1))
        assert by_feature["B"].std_importance is None

    def test_absent_feature_excluded_from_fold_rank(self):
        folds = [{"A": 2.0, "B": 1.0}, {"A": 4.0}]
        by_feature = {r.feature: r for r in aggregate_method_importance("m", folds, False)}

        assert by_feature["A"].per_fold_rank == {0: 1, 1: 1}
        assert by_feature["B"].per_fold_rank == {0: 2}
        assert 1 not in by_feature["B"].per_fold_rank

    def test_normalized_fold_values(self):
        folds = [{"A": 30.0, "B": 10.0}, {"A": 1.0, "B": 1.0}]
        by_feature = {r.feature: r for r in aggregate_method_importance("m", folds, True)}

        assert by_feature["A"].mean_importance == pytest.approx((0.75 + 0.5) / 2)
        assert by_feature["B"].mean_importance == pytest.approx((0.25 + 0.5) / 2)

    def test_records_sorted_by_mean_then_feature(self):
        folds = [{"C": 1.0, "B": 2.0, "A": 2.0}]
        records = aggregate_method_importance("m", folds, normalize=False)
        assert [r.feature for r in records] == ["A", "B", "C"]

    def test_dict_of_folds_keeps_fold_ids(self):
        folds = {3: {"A": 1.0}, 7: {"A": 2.0, "B": 3.0}}
        by_feature = {r.feature: r for r in aggregate_method_importance("m", folds, False)}

        assert by_feature["A"].per_fold_rank == {3: 1, 7: 2}
        assert by_feature["B"].per_fold_rank == {7: 1}

    def test_empty_and_none_folds_are_skipped(self):
        folds = [{}, None, {"A": 1.0}]
        records = aggregate_method_importance("m", folds, normalize=False)
        assert len(records) == 1
        assert records[0].per_fold_rank == {2: 1}

    def test_no_folds_raises(self):
        with pytest.raises(EmptyInputError):
            aggregate_method_importance("m", [], normalize=True)

    def test_no_observed_features_raises(self):
        with pytest.raises(EmptyInputError, match="no observed features"):
            aggregate_method_importance("m", [{}, None], normalize=True)

    def test_non_finite_raises(self):
        with pytest.raises(ValueError, match="non-finite"):
            aggregate_method_importance("m", [{"A": float("inf")}], normalize=False)


class TestAggregateImportances:
    """Tests for aggregate_importances."""

    def test_native_normalized_by_default(self, fold_results):
        raw = {}
        for fr in fold_results:
            raw.setdefault(fr.method, []).append(fr.native_importance)

        table = aggregate_importances(raw, kind="model_native")

        assert table.kind == "model_native"
        # Every fold's normalized importances sum to 1
        for method in table.methods:
            records = table.records_for(method)
            for fold, feature_ranks in table.fold_ranks(method).items():
                fold_norm = normalize_fold_importance(raw[method][fold])
                assert sum(fold_norm[f] for f in feature_ranks) == pytest.approx(1.0)
            assert all(0.0 <= r.mean_importance <= 1.0 for r in records)

    def test_permutation_not_normalized(self):
        raw = {"Lasso": [{"TP53": 0.03, "EGFR": 0.01}, {"TP53": 0.05}]}
        table = aggregate_importances(raw, kind="permutation")
        by_feature = {r.feature: r for r in table.records_for("Lasso")}

        assert by_feature["TP53"].mean_importance == pytest.approx(0.04)
        assert by_feature["EGFR"].mean_importance == pytest.approx(0.01)

    def test_normalize_override(self):
        raw = {"m": [{"A": 3.0, "B": 1.0}]}
        table = aggregate_importances(raw, kind="model_native", normalize=False)
        assert table.records_for("m")[0].mean_importance == pytest.approx(3.0)

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown importance kind"):
            aggregate_importances({"m": [{"A": 1.0}]}, kind="shap")

    def test_methods_sorted(self):
        raw = {"z": [{"A": 1.0}], "a": [{"A": 1.0}]}
        table = aggregate_importances(raw)
        assert table.methods == ["a", "z"]
        assert list(table.records) == ["a", "z"]

    def test_lasso_zero_coefficient_kept_when_observed(self, fold_results):
        raw = {"Lasso": [fr.native_importance for fr in fold_results if fr.method == "Lasso"]}
        table = aggregate_importances(raw)
        by_feature = {r.feature: r for r in table.records_for("Lasso")}

        # KRAS observed in fold 0 with a zero coefficient: evaluated, not absent
        assert 0 in by_feature["KRAS"].per_fold_rank


class TestImportanceTable:
    """Tests for ImportanceTable accessors."""

    @pytest.fixture
    def table(self):
        raw = {
            "boruta": [{"TP53": 3.0, "EGFR": 2.0, "BRCA1": 2.0, "MYC": 1.0}],
            "Lasso": [{"KRAS": 1.0}],
        }
        return aggregate_importances(raw, kind="model_native")

    def test_top_features(self, table):
        assert table.top_features("boruta", 3) == ["TP53", "BRCA1", "EGFR"]

    def test_top_features_more_than_available(self, table):
        assert table.top_features("Lasso", 10) == ["KRAS"]

    def test_top_features_zero(self, table):
        assert table.top_features("boruta", 0) == []

    def test_top_features_negative_raises(self, table):
        with pytest.raises(ValueError):
            table.top_features("boruta", -1)

    def test_unknown_method_raises(self, table):
        with pytest.raises(MethodNotFoundError) as exc_info:
            table.top_features("Univariate", 5)
        assert exc_info.value.kind == "model_native"
        assert "boruta" in exc_info.value.available

    def test_method_not_found_is_lookup_error(self, table):
        with pytest.raises(LookupError):
            table.records_for("missing")

    def test_fold_ranks_nested(self, table):
        ranks = table.fold_ranks("boruta")
        assert ranks == {0: {"TP53": 1, "BRCA1": 2, "EGFR": 3, "MYC": 4}}

    def test_to_frame(self, table):
        df = table.to_frame()
        assert set(df["method"]) == {"boruta", "Lasso"}
        assert df[df["method"] == "boruta"]["rank"].tolist() == [1, 2, 3, 4]
        # Single fold: std absent
        assert df["std_importance"].isna().all()

    def test_empty_table_frame(self):
        df = ImportanceTable(kind="permutation").to_frame()
        assert df.empty
        assert "per_fold_rank" in df.columns


class TestPermutationImportance:
    """Tests for permutation importance helpers."""

    def test_from_scores(self):
        imp = permutation_importance_from_scores(0.9, {"TP53": [0.7, 0.8], "EGFR": [0.9, 0.9]})
        assert imp["TP53"] == pytest.approx(0.15)
        assert imp["EGFR"] == pytest.approx(0.0)

    def test_from_scores_can_be_negative(self):
        imp = permutation_importance_from_scores(0.8, {"KRAS": [0.85]})
        assert imp["KRAS"] == pytest.approx(-0.05)

    def test_from_scores_no_shuffles_raises(self):
        with pytest.raises(EmptyInputError):
            permutation_importance_from_scores(0.9, {"TP53": []})

    def test_compute_with_sklearn(self):
        rng = np.random.default_rng(0)
        n = 200
        X = pd.DataFrame(
            {
                "TP53": rng.normal(size=n),
                "NOISE": rng.normal(size=n),
            }
        )
        y = (X["TP53"] > 0).astype(int).to_numpy()
        model = LogisticRegression().fit(X, y)

        imp = compute_permutation_importance(
            model, X, y, scoring="accuracy", n_repeats=5, random_state=0
        )

        assert set(imp) == {"TP53", "NOISE"}
        assert imp["TP53"] > imp["NOISE"]
        assert imp["TP53"] > 0.2

    def test_compute_restricted_to_features(self):
        rng = np.random.default_rng(1)
        X = pd.DataFrame({"A": rng.normal(size=50), "B": rng.normal(size=50)})
        y = (X["A"] > 0).astype(int).to_numpy()
        model = LogisticRegression().fit(X, y)

        imp = compute_permutation_importance(model, X, y, n_repeats=2, features=["A"])

        assert list(imp) == ["A"]

    def test_compute_drops_non_finite_with_warning(self, monkeypatch, caplog):
        def fake_permutation_importance(estimator, X, y, **kwargs):
            return Bunch(importances_mean=np.array([0.2, np.nan, np.inf]))

        monkeypatch.setattr(
            "genesel_ml.features.importance.permutation_importance",
            fake_permutation_importance,
        )
        X = pd.DataFrame({"TP53": [0.0, 1.0], "EGFR": [1.0, 0.0], "MYC": [0.5, 0.5]})

        with caplog.at_level(logging.WARNING, logger="genesel_ml.features.importance"):
            imp = compute_permutation_importance(object(), X, np.array([0, 1]))

        assert imp == {"TP53": pytest.approx(0.2)}
        assert "EGFR, MYC" in caplog.text
