import logging
import traceback
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

# Load environment variables BEFORE resolving any export options
load_dotenv()

from .config.settings import ConfigurationError
from .config_loader import describe_options, load_config
from .domain.models import ExportOptions
from .pipeline.export import EdgeExporter, ExportResult, VertexExporter, export_all
from .utils import setup_logging

app = typer.Typer(help="osm2po graph -> pgRouting SQL load scripts")


ConfigOption = Annotated[Optional[str], typer.Option("--config", "-c", help="Path to YAML run configuration")]
WorkDirOption = Annotated[Optional[str], typer.Option("--work-dir", "-d", help="Directory with segments/vertices files (default: O2PGR_WORK_DIR or .)")]
PrefixOption = Annotated[Optional[str], typer.Option("--prefix", "-p", help="Table and file name prefix")]
PipeOutOption = Annotated[Optional[bool], typer.Option("--pipe-out/--file-out", help="Write SQL to stdout instead of script files")]
MultiLineOption = Annotated[Optional[bool], typer.Option("--multilinestring/--linestring", help="Edge geometry type")]
EdgeBatchOption = Annotated[Optional[int], typer.Option("--edge-batch-size", help="Rows per edge INSERT statement (default: 25)")]
VertexBatchOption = Annotated[Optional[int], typer.Option("--vertex-batch-size", help="Rows per vertex INSERT statement (default: 50)")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")]
LogToFileOption = Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")]


def resolve_options(
    config: Optional[str],
    work_dir: Optional[str] = None,
    prefix: Optional[str] = None,
    pipe_out: Optional[bool] = None,
    multilinestring: Optional[bool] = None,
    edge_batch_size: Optional[int] = None,
    vertex_batch_size: Optional[int] = None,
) -> ExportOptions:
    """Merge environment, YAML file and CLI values, exiting on invalid configuration."""
    try:
        return load_config(
            config_path=config,
            overrides={
                "work_dir": work_dir,
                "prefix": prefix,
                "pipe_out": pipe_out,
                "write_multilinestrings": multilinestring,
                "edge_batch_size": edge_batch_size,
                "vertex_batch_size": vertex_batch_size,
            },
        )
    except (FileNotFoundError, ConfigurationError) as e:
        typer.echo(f"ERROR loading configuration: {e}", err=True)
        raise typer.Exit(1)


def _report(results: list[ExportResult], options: ExportOptions) -> None:
    for result in results:
        target = result.output_path or "stdout"
        logging.info(
            f"{result.table}: {result.rows:,} rows in {result.statements:,} statements -> {target}"
        )
        if result.output_path is not None:
            typer.echo(f"Exported to: {result.output_path}", err=options.pipe_out)


def _run(action, verbose: bool) -> list[ExportResult]:
    try:
        return action()
    except Exception as e:
        logging.error(f"Export failed: {e}")
        if verbose:
            logging.error(f"Full traceback: {traceback.format_exc()}")
        raise typer.Exit(1)


@app.command("edges")
def export_edges(
    config: ConfigOption = None,
    work_dir: WorkDirOption = None,
    prefix: PrefixOption = None,
    pipe_out: PipeOutOption = None,
    multilinestring: MultiLineOption = None,
    edge_batch_size: EdgeBatchOption = None,
    verbose: VerboseOption = False,
    log_to_file: LogToFileOption = False,
):
    """
    Export the segmented ways file as the <prefix>_2po_4pgr edge table.

    Examples:
        o2pgr edges -d data/hh -p hh
        o2pgr edges -d data/hh --multilinestring --pipe-out | psql -d routing -q
    """
    setup_logging(verbose, "edges", "export", log_to_file)
    options = resolve_options(config, work_dir, prefix, pipe_out, multilinestring, edge_batch_size)

    def action():
        result = EdgeExporter(options).run()
        return [result] if result is not None else []

    _report(_run(action, verbose), options)


@app.command("vertices")
def export_vertices(
    config: ConfigOption = None,
    work_dir: WorkDirOption = None,
    prefix: PrefixOption = None,
    pipe_out: PipeOutOption = None,
    vertex_batch_size: VertexBatchOption = None,
    verbose: VerboseOption = False,
    log_to_file: LogToFileOption = False,
):
    """
    Export the vertices file as the <prefix>_2po_vertex table.

    Examples:
        o2pgr vertices -d data/hh -p hh
    """
    setup_logging(verbose, "vertices", "export", log_to_file)
    options = resolve_options(config, work_dir, prefix, pipe_out, vertex_batch_size=vertex_batch_size)

    def action():
        result = VertexExporter(options).run()
        return [result] if result is not None else []

    _report(_run(action, verbose), options)


@app.command("all")
def export_both(
    config: ConfigOption = None,
    work_dir: WorkDirOption = None,
    prefix: PrefixOption = None,
    pipe_out: PipeOutOption = None,
    multilinestring: MultiLineOption = None,
    edge_batch_size: EdgeBatchOption = None,
    vertex_batch_size: VertexBatchOption = None,
    verbose: VerboseOption = False,
    log_to_file: LogToFileOption = False,
):
    """
    Export edges, then vertices.

    Examples:
        o2pgr all -d data/hh -p hh
        o2pgr all -c configs/export.yml
    """
    setup_logging(verbose, "all", "export", log_to_file)
    options = resolve_options(
        config, work_dir, prefix, pipe_out, multilinestring, edge_batch_size, vertex_batch_size
    )
    _report(_run(lambda: export_all(options), verbose), options)


@app.command("show-config")
def show_config(
    config: ConfigOption = None,
    work_dir: WorkDirOption = None,
    prefix: PrefixOption = None,
):
    """Display the resolved export options and derived table names."""
    options = resolve_options(config, work_dir, prefix)

    typer.echo("Export Configuration")
    typer.echo("=" * 50)
    for key, value in describe_options(options).items():
        typer.echo(f"   {key}: {value}")


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"o2pgr version: {__version__}")


if __name__ == "__main__":
    app()
