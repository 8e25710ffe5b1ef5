"""
protomock command line interface.

Commands:
- generate: Write mock modules for the specifications in a file
- validate: Check specifications without generating anything
- inspect: Show members, generated identifiers and storage strategies
"""

from __future__ import annotations

import logging
import platform
import re
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from protomock import __version__
from protomock.core import naming
from protomock.core.config import ProtomockConfig, load_config
from protomock.core.errors import ProtomockError
from protomock.core.model import MockSpecification, Property, SynthesisOptions
from protomock.core.overloads import resolve_overloads
from protomock.core.spec_loader import load_specifications
from protomock.core.storage import select_strategies
from protomock.core.validation import validate_specification
from protomock.synth import SynthesisResult, synthesize

logger = logging.getLogger(__name__)

console = Console()

STDOUT = "-"

app = typer.Typer(
    help="""protomock - mock synthesis for interface specifications

Reads MockSpecification files (JSON or TOML) and writes Python modules
defining recording, handler-driven mock classes.
""",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"protomock {__version__}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log synthesis decisions")
    ] = False,
) -> None:
    """protomock CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def module_filename(mock_name: str) -> str:
    """``UserServiceMock`` -> ``user_service_mock.py``."""
    stem = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", mock_name.lstrip("_")).lower()
    return f"{stem}.py"


def _load(spec_file: Path) -> list[MockSpecification]:
    try:
        return load_specifications(spec_file)
    except ProtomockError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _config(spec_file: Path) -> ProtomockConfig:
    try:
        return load_config(spec_file.parent)
    except ProtomockError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _synthesize_all(
    specs: list[MockSpecification], options: SynthesisOptions
) -> list[SynthesisResult]:
    results = []
    for spec in specs:
        try:
            results.append(synthesize(spec, options))
        except ProtomockError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
    return results


def _is_current(target: Path, source: str) -> bool:
    """Whether ``target`` already holds exactly ``source``."""
    try:
        return target.read_text(encoding="utf-8") == source
    except (FileNotFoundError, UnicodeDecodeError):
        return False


@app.command("generate")
def generate_command(
    spec_file: Annotated[Path, typer.Argument(help="Specification file (.json or .toml)")],
    output: Annotated[
        str | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory, or '-' for stdout (default: output_dir from config)",
        ),
    ] = None,
    legacy_lock: Annotated[
        bool, typer.Option("--legacy-lock", help="Use the legacy lock for thread-safe mocks")
    ] = False,
    check: Annotated[
        bool, typer.Option("--check", help="Fail if generated files are missing or stale")
    ] = False,
) -> None:
    """Generate mock modules for every specification in SPEC_FILE."""
    config = _config(spec_file)
    options = config.to_options(force_legacy_lock=True if legacy_lock else None)
    results = _synthesize_all(_load(spec_file), options)

    for result in results:
        for warning in result.warnings:
            typer.echo(f"Warning: {result.spec.interface_name}: {warning}", err=True)

    if output == STDOUT:
        for result in results:
            typer.echo(result.source, nl=False)
        return

    output_dir = Path(output) if output is not None else config.output_dir
    stale: list[Path] = []
    for result in results:
        target = output_dir / module_filename(result.mock_name)
        if check:
            if not _is_current(target, result.source):
                stale.append(target)
            continue
        output_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(result.source, encoding="utf-8")
        logger.debug("Wrote %d bytes to %s", len(result.source), target)
        typer.echo(f"Generated: {target}")

    if check:
        if stale:
            for path in stale:
                typer.echo(f"Out of date: {path}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"{len(results)} mock(s) up to date")


@app.command("validate")
def validate_command(
    spec_file: Annotated[Path, typer.Argument(help="Specification file (.json or .toml)")],
) -> None:
    """Validate the specifications in SPEC_FILE."""
    specs = _load(spec_file)
    failed = False
    for spec in specs:
        report = validate_specification(spec)
        for error in report.errors:
            typer.echo(f"ERROR: {spec.interface_name}: {error}", err=True)
        for warning in report.warnings:
            typer.echo(f"WARNING: {spec.interface_name}: {warning}", err=True)
        failed = failed or not report.is_valid

    if failed:
        raise typer.Exit(code=1)
    typer.echo(f"OK: {len(specs)} specification(s) valid")


@app.command("inspect")
def inspect_command(
    spec_file: Annotated[Path, typer.Argument(help="Specification file (.json or .toml)")],
    legacy_lock: Annotated[
        bool, typer.Option("--legacy-lock", help="Show strategies with the legacy lock forced")
    ] = False,
) -> None:
    """Show each mock's members and the identifiers generated for them."""
    config = _config(spec_file)
    options = config.to_options(force_legacy_lock=True if legacy_lock else None)

    for spec in _load(spec_file):
        report = validate_specification(spec)
        if not report.is_valid:
            console.print(f"[red]{spec.interface_name}: invalid specification[/red]")
            for error in report.errors:
                console.print(f"  [red]- {escape(error)}[/red]")
            raise typer.Exit(code=1)

        overloads = resolve_overloads(spec)
        strategies = select_strategies(spec, options)

        table = Table(title=spec.mock_class_name(options.mock_suffix))
        table.add_column("Member")
        table.add_column("Kind", style="dim")
        table.add_column("Identifier", style="cyan")
        table.add_column("Condition", style="yellow")

        for placeholder in spec.placeholders:
            condition = placeholder.condition
            table.add_row(
                escape(placeholder.signature()),
                placeholder.kind,
                placeholder.name,
                escape(condition.normalized) if condition else "",
            )
        for member in spec.trackable_members:
            if isinstance(member, Property):
                identifier = member.name
                if not (member.is_mutable and member.is_optional):
                    identifier = f"{identifier} [dim](backing {naming.backing(member.name)})[/dim]"
            else:
                identifier = overloads.identifier(member)
                if overloads.is_overloaded(member):
                    identifier = f"{identifier} [dim](overload)[/dim]"
            condition = member.condition
            table.add_row(
                escape(member.signature()),
                member.kind,
                identifier,
                escape(condition.normalized) if condition else "",
            )

        console.print(table)
        console.print(
            f"[dim]concurrency: {spec.concurrency.value}, "
            f"storage: {' + '.join(s.value for s in strategies)}, "
            f"scope: {spec.access_scope.value}[/dim]"
        )
        for warning in report.warnings:
            console.print(f"[yellow]warning: {escape(warning)}[/yellow]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
