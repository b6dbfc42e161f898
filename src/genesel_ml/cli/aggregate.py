"""
CLI implementation for the aggregate command.

Reads the fold results produced by the training collaborator, reduces them
into a ResultsContainer, and writes a snapshot plus CSV tables.

INPUT (JSON):
    {
      "scoring": "accuracy",
      "folds": [
        {"method": "Lasso", "fold": 0, "score": 0.91,
         "native_importance": {"TP53": 0.4, ...},
         "permutation_importance": {"TP53": 0.02, ...},
         "retained_features": ["TP53", ...]},
        ...
      ],
      "test_metrics": [...]            # optional: rows, or list of per-split rows
    }

OUTPUT:
    {outdir}/results.joblib   snapshot (reload with load_results)
    {outdir}/core/...          score tables, best method, test metrics
    {outdir}/importance/...    importance tables
    {outdir}/overlap/...       overlap matrices
    {outdir}/run_config.yaml   resolved configuration
"""

from dataclasses import replace
from pathlib import Path

import pandas as pd

from genesel_ml.config.loader import load_run_config, log_config_summary, save_config
from genesel_ml.evaluation.reports import export_results_tables
from genesel_ml.evaluation.results import (
    ResultsContainer,
    build_results_container,
    parse_test_metrics,
)
from genesel_ml.features.gene_lists import build_gene_list
from genesel_ml.models.session import FoldResult
from genesel_ml.utils.logging import log_section, setup_logger, verbose_to_level
from genesel_ml.utils.serialization import load_json, save_results


def load_fold_results(input_file: str | Path) -> tuple[list[FoldResult], dict]:
    """Parse a fold-results JSON file.

    Returns:
        (fold_results, payload) where payload is the raw JSON dict

    Raises:
        ValueError: If the file has no "folds" list or an entry is malformed
    """
    payload = load_json(input_file)
    if not isinstance(payload, dict) or not isinstance(payload.get("folds"), list):
        raise ValueError(f"{input_file} must be a JSON object with a 'folds' list")
    fold_results = []
    for i, entry in enumerate(payload["folds"]):
        try:
            fold_results.append(FoldResult.from_dict(entry))
        except ValueError as e:
            raise ValueError(f"{input_file}: folds[{i}]: {e}") from e
    return fold_results, payload


def run_aggregate(
    input_file: str | Path,
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
    outdir: str | Path | None = None,
    translation_file: str | Path | None = None,
    log_file: str | Path | None = None,
    verbose: int = 0,
) -> ResultsContainer:
    """Aggregate fold results and write outputs.

    Args:
        input_file: Fold-results JSON
        config_file: Optional YAML config
        overrides: CLI overrides ("key=value")
        outdir: Output directory (overrides output.outdir)
        translation_file: Optional CSV with columns [symbol, stable, numeric];
            when given, gene lists are built from each method's selection
        log_file: Optional log file
        verbose: Verbosity level

    Returns:
        The ResultsContainer that was written
    """
    logger = setup_logger(
        "genesel_ml",
        level=verbose_to_level(verbose),
        log_file=Path(log_file) if log_file else None,
    )

    config = load_run_config(config_file, overrides)
    if outdir is not None:
        config = config.model_copy(
            update={"output": config.output.model_copy(update={"outdir": Path(outdir)})}
        )
    agg = config.aggregation
    out = config.output

    log_section(logger, "GeneSel-ML: aggregate")
    log_config_summary(config, logger)

    fold_results, payload = load_fold_results(input_file)
    scoring = payload.get("scoring") or agg.scoring
    test_metrics = parse_test_metrics(payload.get("test_metrics"))
    if test_metrics is None:
        logger.info("No test metrics in input (test evaluation not run)")

    results = build_results_container(
        fold_results,
        scoring=scoring,
        test_metrics=test_metrics,
        normalize_native=agg.normalize_native,
    )

    if translation_file is not None:
        translation = pd.read_csv(translation_file, dtype=str)
        selections = results.selected_features(kind=agg.overlap_kind, top_n=agg.top_n)
        gene_lists = {m: build_gene_list(feats, translation) for m, feats in selections.items()}
        results = replace(results, gene_lists=gene_lists)
        logger.info(f"Built gene lists for {len(gene_lists)} method(s)")

    outdir_path = Path(out.outdir)
    outdir_path.mkdir(parents=True, exist_ok=True)
    save_config(config, outdir_path / "run_config.yaml")

    if out.save_snapshot:
        save_results(results, outdir_path / out.snapshot_name)
    if out.save_tables:
        export_results_tables(
            results,
            outdir_path,
            coefficients=(agg.overlap_coefficient,),
            top_n=agg.top_n,
        )

    logger.info("")
    logger.info("Method ranking:")
    for _, row in results.scores_frame().iterrows():
        logger.info(
            f"  {row['rank']}. {row['method']}: {row['mean_score']:.4f} "
            f"+/- {row['std_score']:.4f}"
        )
    logger.info(f"Best method: {results.best_method.method}")
    logger.info(f"Outputs written to {outdir_path}")

    return results
