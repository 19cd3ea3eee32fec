"""List command -- show all findings of a project, newest first."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..exceptions import FuzzFindingsError
from ..repository import list_findings
from . import app
from ._common import console, fail, format_created, resolve_config


@app.command("list")
def list_findings_command(
    ctx: typer.Context,
    project: Optional[Path] = typer.Argument(
        None,
        help="Project directory (default: configured project_dir)",
        file_okay=False,
        dir_okay=True,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List findings stored in .cifuzz-findings.

    [bold cyan]Examples:[/bold cyan]

      fuzz-findings list

      fuzz-findings list path/to/project --json
    """
    config = resolve_config(ctx, project)
    try:
        findings = list_findings(config.project_dir)
    except FuzzFindingsError as e:
        fail(e, as_json=json_output)

    if json_output:
        typer.echo(json.dumps([f.to_dict() for f in findings], indent=2))
        return

    if not findings:
        console.print("[yellow]No findings recorded yet.[/yellow]")
        return

    table = Table(title="Findings", show_lines=False, pad_edge=True)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Type")
    table.add_column("Created", style="dim")
    table.add_column("Description")
    table.add_column("Input", style="dim", overflow="fold")

    for f in findings:
        error_type = getattr(f.type, "value", f.type) or "-"
        table.add_row(
            escape(f.name),
            escape(error_type),
            format_created(f),
            escape(f.short_description or f.get_details() or "-"),
            escape(f.input_file or "-"),
        )

    console.print(table)
