"""Shared Typer app object, shared option types, and repository utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.settings import Settings, load_settings
from ..io.repository import Repository, get_default_data_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        "-D",
        help="Directory holding lifts/cycles/logs JSON (default: $LIFT_TRACKER_DIR or ~/.lift-tracker)",
    ),
]

# Shared --json flag for read commands
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="lift-tracker",
    help="Percentage-based barbell training tracker: lifts, cycles, plates and logs.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def resolve_data_dir(data_dir: Path | None) -> Path:
    """Return data_dir, or the default location when it is None."""
    return data_dir if data_dir is not None else get_default_data_dir()


def get_repository(data_dir: Path | None) -> Repository:
    """Get a repository for the given data directory or the default one."""
    return Repository.open(resolve_data_dir(data_dir))


def get_settings(data_dir: Path | None) -> Settings:
    """Load settings, letting <data-dir>/settings.yaml override the user defaults."""
    return load_settings(resolve_data_dir(data_dir))


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich; DEBUG when verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )
