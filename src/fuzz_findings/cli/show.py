"""Show command -- print one finding with its logs and stack trace."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import FuzzFindingsError
from ..models import Finding
from ..repository import load_finding
from ..serialization import encode_finding
from . import app
from ._common import console, fail, format_created, resolve_config


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the finding"),
    project: Optional[Path] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (default: configured project_dir)",
        file_okay=False,
        dir_okay=True,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the raw finding.json record",
    ),
):
    """Show the details of a single finding."""
    config = resolve_config(ctx, project)
    try:
        finding = load_finding(config.project_dir, name)
    except (FuzzFindingsError, ValueError) as e:
        fail(e, as_json=json_output)

    if json_output:
        typer.echo(encode_finding(finding))
        return

    _print_finding(finding)


def _print_finding(finding: Finding) -> None:
    error_type = getattr(finding.type, "value", finding.type) or "-"

    console.print(f"[bold cyan]{escape(finding.name)}[/bold cyan]  [dim]{error_type}[/dim]")
    console.print(f"  Created:  {format_created(finding)}")
    if finding.short_description:
        console.print(f"  Summary:  {escape(finding.short_description)}")
    if finding.get_details():
        console.print(f"  Details:  {escape(finding.get_details())}")
    if finding.more_details is not None:
        more = finding.more_details
        label = " ".join(part for part in (more.id, more.name) if part)
        if more.severity is not None:
            label += f" (severity {more.severity.score:g} {more.severity.description})".rstrip()
        console.print(f"  Class:    {escape(label)}")
    if finding.input_file:
        console.print(f"  Input:    {escape(finding.input_file)}")

    if finding.stack_trace:
        console.print("\n[bold]Stack trace[/bold]")
        for frame in finding.stack_trace:
            location = f"{frame.source_file}:{frame.line}:{frame.column}"
            console.print(f"  #{frame.frame_number} {escape(frame.function)} [dim]{escape(location)}[/dim]")

    if finding.logs:
        console.print("\n[bold]Logs[/bold]")
        for line in finding.logs:
            console.print(f"  {escape(line)}", highlight=False)
