"""CLI entry point for gostman-interchange."""

import asyncio
import json
import logging
from pathlib import Path

import click

from gostman_interchange.formats.base import ImportOutcome
from gostman_interchange.formats.detect import detect_format
from gostman_interchange.formats.native import export_to_gostman
from gostman_interchange.interchange import export_collection, import_collection
from gostman_interchange.options import ExportFormat
from gostman_interchange.validator import validate_openapi
from gostman_interchange.variables import merge_variables, parse_variables, resolve_requests

EXPORT_CHOICES = [f.value for f in ExportFormat]


def _load(doc_path: Path) -> ImportOutcome:
    """Import a collection file, failing the command on any import error."""
    outcome = import_collection(doc_path.read_text(encoding="utf-8"))
    if not outcome.success:
        raise click.ClickException(outcome.error or "Import failed")
    return outcome


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Gostman Interchange: convert API collections between Postman, OpenAPI, Markdown and Gostman backups."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def detect(doc_path: Path):
    """Print the detected format of a collection file."""
    click.echo(detect_format(doc_path.read_text(encoding="utf-8")).value)


@main.command(name="import")
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the Gostman backup.")
def import_cmd(doc_path: Path, output: Path):
    """Import a Postman collection or Gostman backup into a Gostman backup file."""
    outcome = _load(doc_path)
    click.echo(f"Imported {outcome.format} collection: {len(outcome.requests)} requests, {len(outcome.folders)} folders.")

    backup = export_to_gostman(outcome.requests, outcome.folders, outcome.variables)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(backup, indent=2, ensure_ascii=False), encoding="utf-8")
    click.echo(f"Backup saved to {output}")


def _parse_vars(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", ctx=ctx, param=param)
        variables[key.strip()] = value
    return variables


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file, or a directory to write gostman-export.<ext> into.")
@click.option("--format", "fmt", required=True, type=click.Choice(EXPORT_CHOICES), help="Export format.")
@click.option("--title", default=None, help="Document title (collection name for Postman).")
@click.option("--version", "api_version", default=None, help="API version (OpenAPI only).")
@click.option("--description", default=None, help="Document description.")
@click.option("--base-url", default=None, help="Base URL (OpenAPI and Markdown).")
@click.option("--vars-file", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON object of environment variables.")
@click.option("--var", "cli_vars", multiple=True, callback=_parse_vars, metavar="KEY=VALUE", help="Set a variable; overrides the collection and --vars-file.")
@click.option("--resolve-vars", is_flag=True, help="Substitute {{name}} placeholders in requests before exporting.")
def export(
    doc_path: Path,
    output: Path,
    fmt: str,
    title: str | None,
    api_version: str | None,
    description: str | None,
    base_url: str | None,
    vars_file: Path | None,
    cli_vars: dict[str, str],
    resolve_vars: bool,
):
    """Export a collection file to another format."""
    outcome = _load(doc_path)

    environment = parse_variables(vars_file.read_text(encoding="utf-8")) if vars_file else {}
    variables = merge_variables(outcome.variables, environment, cli_vars)
    requests = resolve_requests(outcome.requests, variables) if resolve_vars else outcome.requests

    options = {
        "title": title,
        "version": api_version,
        "description": description,
        "base_url": base_url,
    }
    options = {key: value for key, value in options.items() if value is not None}

    result = export_collection(fmt, requests, outcome.folders, variables, options)
    if not result.success:
        raise click.ClickException(result.error or "Export failed")

    if output.is_dir():
        output = output / ExportFormat(fmt).filename
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.content, encoding="utf-8")
    click.echo(f"Exported {len(requests)} requests to {output}")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(spec_path: Path):
    """Validate an OpenAPI document (JSON or YAML)."""
    result = asyncio.run(validate_openapi(spec_path.read_text(encoding="utf-8")))
    if result.valid:
        click.echo(f"{spec_path} is a valid OpenAPI document.")
        return

    for error in result.errors:
        click.echo(f"  - {error}", err=True)
    raise click.ClickException(f"{spec_path} is not a valid OpenAPI document ({len(result.errors)} errors).")
