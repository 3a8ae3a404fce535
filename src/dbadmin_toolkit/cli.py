"""Command line interface for DB Admin Toolkit."""

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from sys import stdin, stdout
from typing import Literal

from cyclopts import App
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

app = App(help="DB Admin Toolkit CLI tool")

err_console = Console(stderr=True)

# Constants
SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}


def configure_logging(*, verbose: bool = False) -> None:
    """Send library log records to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def validate_file_location(location: Path, *, exists: bool = True) -> None:
    """Validate that an input file is present (or absent)."""
    if exists != location.exists():
        print_error(
            f"File {'does not exist' if exists else 'already exists'}: {location}",
        )
        sys.exit(1)


def validate_database_extension(
    database_location: Path,
    file_extensions: Iterable[str],
) -> None:
    """Validate database file extension."""
    if database_location.suffix.lower() not in file_extensions:
        print_error(
            f"Database file has invalid extension: {', '.join(file_extensions)}",
        )
        sys.exit(1)


def validate_output_path(output: Path) -> None:
    """Validate output path is writable."""
    output_dir = output.parent
    if not output_dir.exists():
        print_error(f"Output directory does not exist: {output_dir}")
        sys.exit(1)
    if not output_dir.is_dir():
        print_error(f"Output path parent is not a directory: {output_dir}")
        sys.exit(1)


def write_output(content: bytes, output: Path | None) -> None:
    """Write to a file, or to stdout when no file is given."""
    if output is None:
        stdout.buffer.write(content)
        stdout.flush()
        return
    try:
        output.write_bytes(content)
    except (PermissionError, OSError) as e:
        print_error(f"Failed to write output file: {e}")
        sys.exit(1)


@app.command
def diagram(
    database: Path,
    *tables: str,
    fmt: Literal["svg", "eps"] = "svg",
    coordinates: Path | None = None,
    show_color: bool = False,
    show_keys: bool = False,
    table_dimension: bool = False,
    same_width: bool = False,
    page: int = 1,
    output: Path | None = None,
    verbose: bool = False,
) -> None:
    """Draw tables and their foreign keys as a vector diagram."""
    try:
        from diagram import (
            DiagramBuilder,
            DiagramOptions,
            InspectorLookup,
            MissingCoordinatesError,
            create_surface,
            grid_positions,
            load_coordinates,
            read_only_sqlite,
        )
    except ImportError:
        print_error("Diagrams require [diagram] extra dependencies")
        sys.exit(1)

    from sqlalchemy.exc import SQLAlchemyError

    configure_logging(verbose=verbose)
    validate_file_location(database, exists=True)
    validate_database_extension(database, SQLITE_EXTENSIONS)
    if coordinates:
        validate_file_location(coordinates, exists=True)
    if output:
        validate_output_path(output)

    print_info(f"Database: {database}")
    print_info(f"Output format: {fmt}")

    options = DiagramOptions(
        show_color=show_color,
        show_keys=show_keys,
        table_dimension=table_dimension,
        all_tables_same_width=same_width,
        page_number=page,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Drawing diagram...", total=None)
        try:
            lookup = InspectorLookup(read_only_sqlite(database), {})
            names = list(tables) or lookup.table_names()
            lookup.positions = (
                load_coordinates(coordinates) if coordinates else grid_positions(names)
            )
            builder = DiagramBuilder(
                database.stem,
                names,
                lookup,
                create_surface(fmt),
                options,
            )
        except MissingCoordinatesError as e:
            print_error(str(e))
            sys.exit(1)
        except SQLAlchemyError as e:
            print_error(f"Failed to read database: {e}")
            sys.exit(1)

    result = builder.output()
    write_output(result.content, output)
    print_success(
        f"Diagram of {len(builder.tables)} tables and "
        f"{len(builder.relations)} relations ({result.filename})",
    )


@app.command
def transform(
    programs: Path,
    *options: str,
    verbose: bool = False,
) -> None:
    """Pipe standard input through an allowed external program."""
    try:
        from transform import ExternalTransformation, load_programs
    except ImportError:
        print_error("Transformations require [transform] extra dependencies")
        sys.exit(1)

    configure_logging(verbose=verbose)
    validate_file_location(programs, exists=True)

    transformation = ExternalTransformation(load_programs(programs))
    stdout.write(transformation.apply(stdin.read(), options))


@app.command
def config(
    settings: Path | None = None,
    *,
    eol: Literal["unix", "win"] = "unix",
    output: Path | None = None,
    verbose: bool = False,
) -> None:
    """Generate a Python configuration file from TOML settings."""
    try:
        from configgen import ConfigFile, config_to_python
    except ImportError:
        print_error("Config generation requires [configgen] extra dependencies")
        sys.exit(1)

    from tomllib import TOMLDecodeError

    configure_logging(verbose=verbose)
    if settings:
        validate_file_location(settings, exists=True)
    if output:
        validate_output_path(output)

    config_file = ConfigFile.from_defaults_file()
    if settings:
        print_info(f"Settings: {settings}")
        try:
            config_file.load_toml(settings)
        except TOMLDecodeError as e:
            print_error(f"Invalid settings file: {e}")
            sys.exit(1)

    source = config_to_python(config_file, eol=eol)
    write_output(source.encode(), output)
    print_success("Configuration generated")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
