"""
CLI implementation for the overlap and summarize commands.

overlap:   gene-lists JSON -> pairwise overlap matrix CSV
summarize: results snapshot -> ranking, best method and top features in the log
"""

from pathlib import Path

from genesel_ml.features.gene_lists import GeneList
from genesel_ml.features.overlap import compute_overlap_matrix, gene_membership_frame
from genesel_ml.utils.logging import log_section, setup_logger, verbose_to_level
from genesel_ml.utils.serialization import load_json, load_results


def load_named_gene_lists(path: str | Path) -> dict[str, GeneList | list[str]]:
    """Load gene lists from JSON.

    Accepts either {name: [symbol, ...]} or {name: {"symbol_ids": [...],
    "stable_ids": [...], "numeric_ids": [...]}} entries (mixed is fine).
    """
    payload = load_json(path)
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must be a JSON object mapping names to gene lists")

    gene_lists: dict[str, GeneList | list[str]] = {}
    for name, entry in payload.items():
        if isinstance(entry, dict):
            gene_lists[name] = GeneList.from_dict(entry)
        elif isinstance(entry, list):
            gene_lists[name] = [str(g) for g in entry]
        else:
            raise ValueError(f"Gene list '{name}' must be a list or an object")
    return gene_lists


def run_overlap(
    gene_lists_file: str | Path,
    output: str | Path,
    coefficient: str = "jaccard",
    namespace: str = "symbol",
    membership_output: str | Path | None = None,
    verbose: int = 0,
) -> Path:
    """Compute an overlap matrix and write it as CSV."""
    logger = setup_logger("genesel_ml", level=verbose_to_level(verbose))

    gene_lists = load_named_gene_lists(gene_lists_file)
    matrix = compute_overlap_matrix(gene_lists, coefficient=coefficient, namespace=namespace)

    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    matrix.to_frame().to_csv(output)
    logger.info(f"Wrote {coefficient} overlap matrix: {output}")

    for a, b, value in matrix.pairs():
        logger.info(f"  {a} vs {b}: {value:.4f}")

    if membership_output is not None:
        membership_output = Path(membership_output)
        membership_output.parent.mkdir(parents=True, exist_ok=True)
        gene_membership_frame(gene_lists, namespace=namespace).to_csv(membership_output)
        logger.info(f"Wrote gene membership table: {membership_output}")

    return output


def run_summarize(
    snapshot: str | Path,
    top_n: int = 10,
    kind: str = "model_native",
    verbose: int = 1,
):
    """Log a summary of a results snapshot."""
    logger = setup_logger("genesel_ml", level=verbose_to_level(verbose))
    results = load_results(snapshot)

    log_section(logger, f"Results snapshot: {Path(snapshot).name}")
    best = results.best_method
    logger.info(
        f"Best method: {best.method} ({best.scoring}={best.mean_score:.4f} "
        f"+/- {best.std_score:.4f})"
    )

    logger.info("Method ranking:")
    for _, row in results.scores_frame().iterrows():
        logger.info(
            f"  {row['rank']}. {row['method']}: {row['mean_score']:.4f} "
            f"+/- {row['std_score']:.4f} (n_folds={row['n_folds']})"
        )

    table = results.importance_table(kind)
    logger.info(f"Top {top_n} features ({kind}):")
    for method in table.methods:
        logger.info(f"  {method}: {', '.join(table.top_features(method, top_n))}")

    if results.has_test_metrics:
        logger.info(f"Test metrics: {results.test_metrics.kind}")
    else:
        logger.info("Test metrics: not computed")

    return results
