"""Bundle command -- archive a finding directory for sharing."""

from pathlib import Path
from typing import Optional

import typer

from ..artifact import add_dir_to_manifest, write_archive
from ..exceptions import FuzzFindingsError
from ..locking import LOCK_FILE_NAME, finding_lock
from ..repository import FindingRepository
from . import app
from ._common import console, fail, resolve_config


@app.command()
def bundle(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the finding"),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output archive path (.tar.gz)",
        dir_okay=False,
    ),
    project: Optional[Path] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (default: configured project_dir)",
        file_okay=False,
        dir_okay=True,
    ),
):
    """
    Write a finding's record and crashing inputs to a gzip-compressed tar.

    Entries are stored under [bold]<name>/[/bold].
    """
    config = resolve_config(ctx, project)
    repo = FindingRepository(config.project_dir)

    try:
        if not repo.exists(name):
            fail(f"Finding {name} does not exist")

        finding_dir = repo.finding_dir(name)
        manifest: dict = {}
        # Hold the lock so no input is being added while we read the slots
        with finding_lock(finding_dir):
            add_dir_to_manifest(manifest, name, finding_dir)
            manifest = {k: v for k, v in manifest.items() if Path(v).name != LOCK_FILE_NAME}
            with open(output, "wb") as out:
                write_archive(out, manifest)
    except (FuzzFindingsError, ValueError) as e:
        fail(e)
    except OSError as e:
        fail(f"Cannot write {output}: {e.strerror or e}")

    console.print(f"[green]Bundled {len(manifest)} entries to {output}[/green]")
