"""Shared CLI helpers."""

import json
from pathlib import Path
from typing import Any, NoReturn, Optional, Union

import typer
from rich.console import Console

from ..config import FindingsConfig, load_config
from ..exceptions import FuzzFindingsError

console = Console()


def resolve_config(ctx: typer.Context, project: Optional[Path] = None, **overrides: Any) -> FindingsConfig:
    """Build the config from global CLI options and per-command options."""
    obj = ctx.obj or {}
    try:
        return load_config(
            config_file=obj.get("config_file"),
            project_dir=str(project) if project is not None else None,
            verbose=obj.get("verbose", False),
            quiet=obj.get("quiet", False),
            **overrides,
        )
    except FuzzFindingsError as e:
        fail(e)


def fail(error: Union[Exception, str], as_json: bool = False) -> NoReturn:
    """Print an error and exit with status 1.

    With ``as_json`` the error is printed as ``{"error": {...}}`` on stdout,
    using the error's ``code`` when it has one.
    """
    if as_json:
        if isinstance(error, FuzzFindingsError):
            payload = error.to_dict()
        else:
            payload = {"code": "error", "message": str(error)}
        typer.echo(json.dumps({"error": payload}, indent=2))
    else:
        console.print(f"[red]Error:[/red] {error}", markup=True, highlight=False)
    raise typer.Exit(1)


def format_created(finding) -> str:
    if finding.created_at is None:
        return "-"
    return finding.created_at.strftime("%Y-%m-%d %H:%M:%S")
