"""CLI entry point -- registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..config import load_config
from ..exceptions import FuzzFindingsError
from ..logging_config import setup_logging
from ._common import console, fail

app = typer.Typer(
    name="fuzz-findings",
    help="fuzz-findings - record, inspect and share fuzzing findings",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fuzz-findings {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (TOML format)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all but ERROR logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    Inspect findings recorded under [bold].cifuzz-findings/[/bold].

    [bold cyan]Examples:[/bold cyan]

      fuzz-findings list

      fuzz-findings show heap_buffer_overflow_in_parse --json

      fuzz-findings bundle heap_buffer_overflow_in_parse -o finding.tar.gz

      fuzz-findings record report.json --input crash-1234
    """
    try:
        settings = load_config(config, verbose=verbose, quiet=quiet)
        setup_logging(verbosity=settings.verbosity, log_file=settings.log_file)
    except FuzzFindingsError as e:
        fail(e)
    except OSError as e:
        fail(f"Cannot open log file {settings.log_file}: {e.strerror or e}")

    ctx.obj = {"config_file": config, "verbose": verbose, "quiet": quiet, "config": settings}


# Import subcommands to register them
from .listing import list_findings_command as _list  # noqa: F401, E402
from .show import show as _show  # noqa: F401, E402
from .bundle import bundle as _bundle  # noqa: F401, E402
from .record import record as _record  # noqa: F401, E402
