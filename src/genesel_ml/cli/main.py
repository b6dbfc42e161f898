"""
Main CLI entry point for GeneSel-ML.

Provides subcommands:
  - genesel aggregate: Reduce fold results into a results snapshot and tables
  - genesel overlap: Pairwise overlap of gene lists
  - genesel summarize: Print a results snapshot summary
  - genesel config validate: Validate a YAML configuration
"""

import click

from genesel_ml import __version__
from genesel_ml.config.defaults import VALID_COEFFICIENTS, VALID_IMPORTANCE_KINDS
from genesel_ml.errors import GeneSelError


@click.group()
@click.version_option(version=__version__, prog_name="genesel")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.pass_context
def cli(ctx, verbose):
    """
    GeneSel-ML: aggregation and comparison of gene feature-selection results.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("aggregate")
@click.option(
    "--input",
    "input_file",
    type=click.Path(exists=True),
    required=True,
    help="Fold-results JSON produced by the training backend",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to YAML configuration file",
)
@click.option(
    "--outdir",
    type=click.Path(),
    default=None,
    help="Output directory (default: output.outdir from config)",
)
@click.option(
    "--translation",
    type=click.Path(exists=True),
    default=None,
    help="CSV with columns symbol,stable,numeric for building gene lists",
)
@click.option(
    "--log-file",
    type=click.Path(),
    default=None,
    help="Also write the log to this file",
)
@click.option(
    "--override",
    multiple=True,
    help="Override config values (format: key=value or nested.key=value)",
)
@click.pass_context
def aggregate(ctx, input_file, config, outdir, translation, log_file, override):
    """Aggregate CV scores and importances across methods."""
    from genesel_ml.cli.aggregate import run_aggregate

    try:
        run_aggregate(
            input_file=input_file,
            config_file=config,
            overrides=list(override),
            outdir=outdir,
            translation_file=translation,
            log_file=log_file,
            verbose=ctx.obj.get("verbose", 0),
        )
    except (GeneSelError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@cli.command("overlap")
@click.argument("gene_lists_file", type=click.Path(exists=True))
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    required=True,
    help="Output CSV for the overlap matrix",
)
@click.option(
    "--coefficient",
    type=click.Choice(VALID_COEFFICIENTS),
    default="jaccard",
    help="Similarity coefficient (default: jaccard)",
)
@click.option(
    "--namespace",
    type=click.Choice(["symbol", "stable", "numeric"]),
    default="symbol",
    help="Identifier namespace for GeneList entries (default: symbol)",
)
@click.option(
    "--membership",
    type=click.Path(),
    default=None,
    help="Also write a gene x method membership table",
)
@click.pass_context
def overlap(ctx, gene_lists_file, output, coefficient, namespace, membership):
    """Compute pairwise overlap between gene lists.

    GENE_LISTS_FILE: JSON object mapping method -> gene list
    """
    from genesel_ml.cli.overlap import run_overlap

    try:
        run_overlap(
            gene_lists_file=gene_lists_file,
            output=output,
            coefficient=coefficient,
            namespace=namespace,
            membership_output=membership,
            verbose=ctx.obj.get("verbose", 0),
        )
    except (GeneSelError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@cli.command("summarize")
@click.argument("snapshot", type=click.Path(exists=True))
@click.option("--top-n", type=int, default=10, help="Features to show per method")
@click.option(
    "--kind",
    type=click.Choice(VALID_IMPORTANCE_KINDS),
    default="model_native",
    help="Importance kind for the top-feature listing",
)
@click.pass_context
def summarize(ctx, snapshot, top_n, kind):
    """Summarize a results snapshot."""
    from genesel_ml.cli.overlap import run_summarize

    try:
        run_summarize(
            snapshot=snapshot,
            top_n=top_n,
            kind=kind,
            verbose=max(1, ctx.obj.get("verbose", 0)),
        )
    except (GeneSelError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@cli.group("config")
def config_group():
    """Configuration tools."""
    pass


@config_group.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--override",
    multiple=True,
    help="Override config values (format: key=value or nested.key=value)",
)
def config_validate(config_file, override):
    """Validate a YAML configuration file."""
    from genesel_ml.config.loader import load_run_config

    try:
        config = load_run_config(config_file, list(override))
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Configuration OK: {config_file}")
    click.echo(config.model_dump_json(indent=2))


def main():
    """Entry point for console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
