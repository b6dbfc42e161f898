"""Score, importance and gene-list aggregation across feature-selection methods."""

from .gene_lists import (
    GeneList,
    build_gene_list,
    load_gene_lists,
    save_gene_lists,
)
from .importance import (
    IMPORTANCE_KINDS,
    ImportanceRecord,
    ImportanceTable,
    aggregate_importances,
    aggregate_method_importance,
    compute_permutation_importance,
    normalize_fold_importance,
    permutation_importance_from_scores,
    rank_fold_features,
)
from .overlap import (
    OverlapMatrix,
    compute_overlap_matrix,
    gene_membership_frame,
    jaccard_coefficient,
    overlap_coefficient,
)
from .scores import (
    BestMethodSelection,
    MethodScoreRecord,
    aggregate_scores,
    rank_score_records,
    scores_to_frame,
    select_best_method,
    summarize_fold_scores,
)

__all__ = [
    # Gene lists
    "GeneList",
    "build_gene_list",
    "load_gene_lists",
    "save_gene_lists",
    # Importance
    "IMPORTANCE_KINDS",
    "ImportanceRecord",
    "ImportanceTable",
    "aggregate_importances",
    "aggregate_method_importance",
    "compute_permutation_importance",
    "normalize_fold_importance",
    "permutation_importance_from_scores",
    "rank_fold_features",
    # Overlap
    "OverlapMatrix",
    "compute_overlap_matrix",
    "gene_membership_frame",
    "jaccard_coefficient",
    "overlap_coefficient",
    # Scores
    "BestMethodSelection",
    "MethodScoreRecord",
    "aggregate_scores",
    "rank_score_records",
    "scores_to_frame",
    "select_best_method",
    "summarize_fold_scores",
]
