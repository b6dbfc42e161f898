"""
Table export for a ResultsContainer.

Layout written by export_results_tables():

    {outdir}/
        core/
            method_scores.csv        ranked MethodScoreRecords
            cv_fold_scores.csv       raw per-fold scores
            best_method.json         best-method selection
            test_metrics.csv         only when test metrics were computed
        importance/
            model_native_importance.csv
            permutation_importance.csv   only when computed
        overlap/
            {kind}_{coefficient}_overlap.csv
        gene_lists.json              only when gene lists are attached
"""

import logging
from dataclasses import asdict
from pathlib import Path

from genesel_ml.errors import EmptyCollectionError
from genesel_ml.evaluation.results import ResultsContainer, flatten_test_metrics
from genesel_ml.features.gene_lists import save_gene_lists
from genesel_ml.utils.serialization import save_json

logger = logging.getLogger(__name__)


def export_results_tables(
    results: ResultsContainer,
    outdir: str | Path,
    coefficients: tuple[str, ...] = ("jaccard", "overlap"),
    top_n: int | None = None,
) -> dict[str, Path]:
    """Write the container's tables as CSV/JSON.

    Args:
        results: Container to export
        outdir: Output directory (created if missing)
        coefficients: Overlap coefficients to export
        top_n: Per-method selection size for the overlap matrices (None = all)

    Returns:
        Dict mapping table name -> written path
    """
    outdir = Path(outdir)
    core_dir = outdir / "core"
    imp_dir = outdir / "importance"
    overlap_dir = outdir / "overlap"
    for d in (core_dir, imp_dir, overlap_dir):
        d.mkdir(parents=True, exist_ok=True)

    written: dict[str, Path] = {}

    path = core_dir / "method_scores.csv"
    results.scores_frame().to_csv(path, index=False)
    written["method_scores"] = path

    path = core_dir / "cv_fold_scores.csv"
    results.cv_results_frame().to_csv(path, index=False)
    written["cv_fold_scores"] = path

    path = core_dir / "best_method.json"
    save_json(asdict(results.best_method), path)
    written["best_method"] = path

    if results.test_metrics is not None:
        path = core_dir / "test_metrics.csv"
        flatten_test_metrics(results.test_metrics).to_csv(path, index=False)
        written["test_metrics"] = path

    tables = [("model_native", results.native_importance)]
    if results.permutation_importance is not None:
        tables.append(("permutation", results.permutation_importance))

    for kind, table in tables:
        path = imp_dir / f"{kind}_importance.csv"
        table.to_frame().to_csv(path, index=False)
        written[f"{kind}_importance"] = path

        for coefficient in coefficients:
            try:
                matrix = results.overlap(kind=kind, coefficient=coefficient, top_n=top_n)
            except EmptyCollectionError:
                logger.info(f"Skipping {kind} overlap: fewer than two methods")
                break
            path = overlap_dir / f"{kind}_{coefficient}_overlap.csv"
            matrix.to_frame().to_csv(path)
            written[f"{kind}_{coefficient}_overlap"] = path

    if results.gene_lists:
        path = outdir / "gene_lists.json"
        save_gene_lists(results.gene_lists, path)
        written["gene_lists"] = path

    logger.info(f"Exported {len(written)} table(s) to {outdir}")
    return written
