"""CLI interface for quire."""


import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from quire.config import QuireConfig, load_config, merge_cli_overrides
from quire.errors import PipelineReport, QuireError
from quire.pipeline import PipelineResult, build_site, run_pipeline
from quire.pipeline.site import load_collections
from quire.publish import SortOrder

app = typer.Typer(
    name="quire",
    help="Build a static site from Markdown posts and drafts.",
)

console = Console()
err_console = Console(stderr=True)

EXIT_STRUCTURAL = 2

RootArg = Annotated[
    Path,
    typer.Argument(
        help="Site root containing the published and draft collections.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
ConfigOpt = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a .quire.toml file."),
]
DraftsOpt = Annotated[
    Optional[bool],
    typer.Option("--drafts/--no-drafts", help="Publish drafts as well."),
]
DedupeOpt = Annotated[
    Optional[bool],
    typer.Option("--dedupe/--no-dedupe", help="Publish only the canonical revision."),
]
ThresholdOpt = Annotated[
    Optional[float],
    typer.Option("--threshold", "-t", help="Body similarity above which titles merge."),
]
WorkersOpt = Annotated[
    Optional[int],
    typer.Option("--workers", "-w", help="Worker threads for parsing and rendering."),
]
VerboseOpt = Annotated[
    bool,
    typer.Option("--verbose", help="Log pipeline progress."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from quire import __version__

        console.print(f"quire {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Quire - static content publishing pipeline."""
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _resolve_config(config_path: Path | None, **overrides: object) -> QuireConfig:
    try:
        return merge_cli_overrides(load_config(config_path), **overrides)
    except QuireError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(EXIT_STRUCTURAL) from exc


def _print_report(report: PipelineReport) -> None:
    if not report.has_errors:
        return
    console.print(f"[yellow]{len(report.errors)} document(s) excluded:[/yellow]")
    for error in report.errors:
        console.print(f"  - {error.source} ({error.stage}): {error.message}", highlight=False)


def _print_clusters(result: PipelineResult) -> None:
    merged = [c for c in result.clusters if c.size > 1]
    if not merged:
        console.print("No revision clusters found.")
        return
    table = Table(title="Revision clusters")
    table.add_column("Canonical")
    table.add_column("Other revisions")
    table.add_column("Similarity", justify="right")
    for cluster in merged:
        table.add_row(
            cluster.canonical_id,
            ", ".join(cluster.non_canonical_ids),
            f"{cluster.max_similarity:.2f}",
        )
    console.print(table)


@app.command()
def build(
    root: RootArg = Path("."),
    config_path: ConfigOpt = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output directory. Defaults to ./_site/"),
    ] = None,
    output_format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="Output format: html or json."),
    ] = None,
    drafts: DraftsOpt = None,
    oldest_first: Annotated[
        bool,
        typer.Option("--oldest-first", help="List oldest documents first."),
    ] = False,
    dedupe: DedupeOpt = None,
    threshold: ThresholdOpt = None,
    workers: WorkersOpt = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Run the pipeline without writing files."),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 1 if any document was excluded."),
    ] = False,
    verbose: VerboseOpt = False,
) -> None:
    """Build the site: parse, deduplicate, render and write every publishable document."""
    _setup_logging(verbose)
    config = _resolve_config(
        config_path,
        output_format=output_format,
        include_drafts=drafts,
        sort_order=SortOrder.OLDEST_FIRST if oldest_first else None,
        dedupe=dedupe,
        threshold=threshold,
        workers=workers,
    )

    try:
        result = build_site(root, config, output_dir=output, dry_run=dry_run)
    except QuireError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(EXIT_STRUCTURAL) from exc

    pipeline = result.pipeline
    console.print(
        f"[green]Published {len(pipeline.published.documents)} document(s)[/green] "
        f"from {len(pipeline.store)} loaded"
    )
    if result.written:
        console.print(f"Wrote {len(result.written)} file(s) to {result.written[-1].parent}")
    _print_report(pipeline.report)

    if strict and pipeline.report.has_errors:
        raise typer.Exit(1)


@app.command()
def check(
    root: RootArg = Path("."),
    config_path: ConfigOpt = None,
    threshold: ThresholdOpt = None,
    workers: WorkersOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Load and deduplicate without writing; list revision clusters and errors."""
    _setup_logging(verbose)
    config = _resolve_config(config_path, threshold=threshold, workers=workers)

    try:
        report = PipelineReport()
        published, drafts = load_collections(root, config, report)
        result = run_pipeline(published, drafts, config, report=report)
    except QuireError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(EXIT_STRUCTURAL) from exc

    console.print(f"Loaded {len(result.store)} document(s)")
    _print_clusters(result)
    _print_report(result.report)
    if result.report.has_errors:
        raise typer.Exit(1)
