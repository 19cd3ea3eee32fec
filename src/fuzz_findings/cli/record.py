"""Record command -- persist a finding report and its crashing input."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import FindingAlreadyExistsError, FuzzFindingsError
from ..logging_config import get_logger
from ..repository import FindingRepository
from ..serialization import decode_finding
from . import app
from ._common import console, fail, resolve_config

logger = get_logger(__name__)


@app.command()
def record(
    ctx: typer.Context,
    report: Path = typer.Argument(
        ...,
        help="Finding report in finding.json format",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="Crashing input to store (default: the report's InputFile)",
    ),
    project: Optional[Path] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (default: configured project_dir)",
        file_okay=False,
        dir_okay=True,
    ),
    corpus: Optional[Path] = typer.Option(
        None,
        "--corpus",
        help="Seed corpus directory (default: configured seed_corpus_dir)",
        file_okay=False,
        dir_okay=True,
    ),
):
    """
    Save a finding and move its crashing input into the finding directory.

    A report whose name is already recorded is merged: the existing record
    is kept and the input is added as a new slot unless it duplicates one.
    New inputs are also copied to the seed corpus.
    """
    config = resolve_config(
        ctx, project, seed_corpus_dir=str(corpus) if corpus is not None else None
    )
    repo = FindingRepository(config.project_dir)

    try:
        finding = decode_finding(report.read_bytes(), report)
    except FuzzFindingsError as e:
        fail(e)
    except OSError as e:
        fail(f"Cannot read {report}: {e.strerror or e}")

    if input_file is not None:
        finding.input_file = str(input_file)
    if finding.created_at is None:
        finding.created_at = datetime.now(timezone.utc)

    try:
        try:
            repo.save(finding)
            created = True
        except FindingAlreadyExistsError:
            logger.info(f"Finding {finding.name} already exists, merging its input")
            created = False

        slot = None
        if finding.input_file:
            slot = repo.store_input(finding, config.corpus_dir)
        else:
            logger.warning(f"Finding {finding.name} has no crashing input")
    except (FuzzFindingsError, ValueError) as e:
        fail(e)

    name = escape(finding.name)
    if created:
        console.print(f"[green]Recorded finding {name}[/green]")
    else:
        console.print(f"[yellow]Finding {name} already recorded[/yellow]")

    if slot is not None:
        console.print(f"  Input:  {escape(str(slot))}")
        console.print(f"  Corpus: {escape(finding.seed_path)}")
    elif finding.input_file:
        console.print("  Input duplicates a stored one, nothing added")
