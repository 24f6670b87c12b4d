"""Typer-based CLI for CodeFeatures language-feature queries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__, config
from .config_manager import (
    get_log_level,
    get_max_signature_depth,
    load_full_config,
    save_logging_config,
    save_parser_config,
)
from .features import FEATURES, collect_annotations, collect_generic_types
from .loader import AstLoadError, iter_asts, load_project
from .signatures import SignatureTooComplexError, classify_wildcard, parse_generic_type

console = Console()

app = typer.Typer(
    help="🔎 CodeFeatures CLI — count Java language features across repository history.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_app = typer.Typer(
    help="⚙️  Configuration — parser limits and logging.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeFeatures CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """CodeFeatures CLI: feature detection over repository ASTs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_log_level(),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(project_path: Path):
    try:
        return load_project(project_path)
    except AstLoadError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _counts_table(title: str, key_header: str, counts: MutableMapping[str, int]) -> Table:
    table = Table(title=title)
    table.add_column(key_header, style="cyan")
    table.add_column("Count", justify="right")
    for key, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
        table.add_row(escape(key), str(count))
    return table


@app.command("list-features")
def list_features():
    """List every available feature detector."""
    for name in sorted(FEATURES):
        typer.echo(name)


@app.command("features")
def features(
    project_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Project JSON document."),
    feature: Optional[List[str]] = typer.Option(
        None, "--feature", "-f", help="Only run this detector (repeatable)."
    ),
):
    """Count language features across every file AST in a project."""
    selected = feature or sorted(FEATURES)
    unknown = [name for name in selected if name not in FEATURES]
    if unknown:
        raise typer.BadParameter(f"Unknown feature(s): {', '.join(unknown)}. See 'cf list-features'.")

    project, resolver = _load(project_path)
    results: Dict[str, int] = dict.fromkeys(selected, 0)
    for _, _, root in iter_asts(project, resolver):
        for name in selected:
            results[name] += FEATURES[name](root)

    table = Table(title=f"Features in {project.name}")
    table.add_column("Feature", style="cyan")
    table.add_column("Count", justify="right")
    for name in selected:
        table.add_row(name, str(results[name]))
    console.print(table)


@app.command("generics")
def generics(
    signatures: Optional[List[str]] = typer.Argument(None, help="Type signatures to parse."),
    project_path: Optional[Path] = typer.Option(
        None, "--project", "-p", exists=True, dir_okay=False, help="Collect from every type in a project."
    ),
):
    """Show the generic type usages found in signatures or a project."""
    if not signatures and project_path is None:
        raise typer.BadParameter("Pass at least one signature or --project.")

    max_depth = get_max_signature_depth()
    counts: Dict[str, int] = {}

    for signature in signatures or []:
        try:
            parse_generic_type(signature.strip(), counts, max_depth)
        except SignatureTooComplexError as exc:
            console.print(f"[red]✗[/red] {escape(str(exc))}")
            raise typer.Exit(code=1)

    if project_path is not None:
        project, resolver = _load(project_path)
        collect_generic_types(project, counts, resolver, max_depth=max_depth)

    if not counts:
        typer.echo("No generic types found.")
        raise typer.Exit(code=0)
    console.print(_counts_table("Generic types", "Type", counts))


@app.command("annotations")
def annotations(
    project_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Project JSON document."),
):
    """Count annotation usages by name across a project."""
    project, resolver = _load(project_path)
    counts = collect_annotations(project, {}, resolver)
    if not counts:
        typer.echo("No annotations found.")
        raise typer.Exit(code=0)
    console.print(_counts_table(f"Annotations in {project.name}", "Annotation", counts))


@app.command("wildcard")
def wildcard(signature: str = typer.Argument(..., help="Type signature to classify.")):
    """Classify the wildcard in a type signature."""
    kind = classify_wildcard(signature)
    typer.echo(kind.value if kind is not None else "none")


# ── config subcommands ───────────────────────────────────────

@config_app.command("show")
def config_show():
    """Show effective configuration."""
    table = Table(title=f"Configuration ({config.CONFIG_FILE})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("parser.max_depth", str(get_max_signature_depth()))
    table.add_row("logging.level", get_log_level())
    table.add_row("config file present", "yes" if load_full_config() else "no")
    console.print(table)


@config_app.command("set-depth")
def config_set_depth(
    max_depth: int = typer.Argument(..., min=1, help="Maximum generic nesting depth."),
):
    """Set the nesting limit for the type-signature parser."""
    if not save_parser_config(max_depth):
        raise typer.Exit(code=1)
    typer.echo(f"parser.max_depth = {max_depth}")


@config_app.command("set-log-level")
def config_set_log_level(level: str = typer.Argument(..., help="DEBUG, INFO, WARNING, ERROR or CRITICAL.")):
    """Set the default CLI log level."""
    try:
        saved = save_logging_config(level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if not saved:
        raise typer.Exit(code=1)
    typer.echo(f"logging.level = {level.upper()}")
