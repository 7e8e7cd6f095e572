"""Terraplane CLI - terraplane command."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from terraplane import __version__
from terraplane.config import TerraplaneConfig, load_config
from terraplane.core.errors import TerraplaneError
from terraplane.core.logging import configure_logging
from terraplane.index import ALL_FILES, Index, Reference, Section, normalize_target
from terraplane.workspace import (
    DiagnosticCollection,
    WatcherConfig,
    WorkspaceWatcher,
    initial_crawl,
)


@click.group()
@click.version_option(version=__version__, prog_name="terraplane")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Terraplane - index Terraform blocks and resolve references between them."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _load(workspace: Path, verbose: bool) -> tuple[TerraplaneConfig, Index, DiagnosticCollection]:
    try:
        config = load_config(workspace)
    except TerraplaneError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    index = Index()
    diagnostics = DiagnosticCollection()
    if config.indexing.enabled:
        initial_crawl(index, workspace, config=config.indexing, diagnostics=diagnostics)
    return config, index, diagnostics


def _section_dict(section: Section, root: Path) -> dict[str, Any]:
    start = section.location.range.start if section.location else None
    label = section.name_location.range.start if section.name_location else None
    return {
        "id": section.id(),
        "section_type": section.section_type,
        "type": section.type,
        "name": section.name,
        "file": _relative(section.uri, root),
        "line": start.line + 1 if start else None,
        "name_line": label.line + 1 if label else None,
        "name_column": label.column + 1 if label else None,
    }


def _reference_dict(reference: Reference, root: Path) -> dict[str, Any]:
    start = reference.location.range.start if reference.location else None
    return {
        "path": reference.raw_path,
        "target": reference.target_id,
        "value_path": reference.value_path(),
        "file": _relative(reference.uri, root),
        "line": start.line + 1 if start else None,
        "column": start.column + 1 if start else None,
    }


def _relative(uri: str | None, root: Path) -> str | None:
    if uri is None:
        return None
    try:
        return Path(uri).relative_to(root).as_posix()
    except ValueError:
        return uri


@cli.command("sections")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--name", help="Substring of the block name")
@click.option("--section-type", help="Block keyword, e.g. resource or variable")
@click.option("--type", "type_", help="Resource/data type, e.g. aws_s3_bucket")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sections_command(
    ctx: click.Context,
    path: Path,
    name: str | None,
    section_type: str | None,
    type_: str | None,
    as_json: bool,
) -> None:
    """List the blocks declared in a workspace.

    PATH is the workspace root (default: current directory).
    """
    root = path.resolve()
    _, index, diagnostics = _load(root, ctx.obj["verbose"])

    query = {"name": name, "section_type": section_type, "type": type_}
    found = index.query(ALL_FILES, {k: v for k, v in query.items() if v is not None})
    rows = [_section_dict(s, root) for s in found]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
    else:
        for row in rows:
            click.echo(f"{row['file']}:{row['line']}\t{row['section_type']}\t{row['id']}")
    _report_diagnostics(diagnostics, index)


@cli.command("refs")
@click.argument("target")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def refs_command(ctx: click.Context, target: str, path: Path, as_json: bool) -> None:
    """Find references to TARGET (e.g. var.region, aws_s3_bucket.bucket).

    PATH is the workspace root (default: current directory).
    """
    root = path.resolve()
    _, index, diagnostics = _load(root, ctx.obj["verbose"])

    references = index.query_references(ALL_FILES, target=target)
    rows = [_reference_dict(r, root) for r in references]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
    else:
        for row in rows:
            click.echo(f"{row['file']}:{row['line']}:{row['column']}\t{row['path']}")
        if not index.query(ALL_FILES, {"id": normalize_target(target)}):
            click.echo(f"warning: no block declares {target}", err=True)
    _report_diagnostics(diagnostics, index)


@cli.command("watch")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def watch_command(ctx: click.Context, path: Path) -> None:
    """Index a workspace and keep re-indexing it as files change.

    PATH is the workspace root (default: current directory).
    """
    root = path.resolve()
    config, index, diagnostics = _load(root, ctx.obj["verbose"])
    _report_diagnostics(diagnostics, index)

    watcher = WorkspaceWatcher(
        index,
        WatcherConfig.from_config(root, config.watch, config.indexing),
        indexing=config.indexing,
        diagnostics=diagnostics,
    )

    async def run() -> None:
        await watcher.start()
        try:
            await asyncio.Event().wait()
        finally:
            await watcher.stop()

    click.echo(f"Watching {root} ({len(index)} documents indexed). Press Ctrl+C to stop.")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Stopped.")


def _report_diagnostics(diagnostics: DiagnosticCollection, index: Index) -> None:
    for uri in index.uris:
        if uri is None:
            continue
        file_index = index.get(uri)
        if file_index is not None and file_index.parse_error is not None:
            click.echo(f"warning: {uri}: {file_index.parse_error}", err=True)
    for uri, entries in diagnostics.items():
        for diagnostic in entries:
            click.echo(f"error: {uri}: {diagnostic.message}", err=True)


if __name__ == "__main__":
    cli()
