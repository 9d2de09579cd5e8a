"""
repotrack CLI - Manifest commands.

Inspect a static manifest and compare two of them without touching a
checkout.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from repotrack.cli.errors import ExitCode, print_error
from repotrack.core.manifest import ProjectPool
from repotrack.core.polling import compare_states
from repotrack.core.state import ChangeSet, NoBaseline, RepositorySnapshot, parse_ignore_list

console = Console()


def _short(revision: str | None) -> str:
    if revision is None:
        return "[dim]new[/dim]"
    return revision[:12]


def render_changes(change_set: ChangeSet, current: RepositorySnapshot) -> None:
    """Print a change set as a table of old and new revisions."""
    if isinstance(change_set, NoBaseline):
        console.print("[yellow]No previous state: everything is new[/yellow]")
        return

    if not change_set:
        console.print("[green]No projects changed[/green]")
        return

    table = Table(title=f"Changed projects ({len(change_set)})")
    table.add_column("Path", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("From", style="blue")
    table.add_column("To", style="blue")

    for entry in change_set:
        now = current.get_project(entry.path)
        to = _short(now.revision) if now is not None else "[red]removed[/red]"
        table.add_row(entry.path, entry.server_path, _short(entry.revision), to)

    console.print(table)


def _load_snapshot(
    path: Path,
    branch: str | None,
    manifest_revision: str,
    manifest_url: str,
    pool: ProjectPool,
) -> RepositorySnapshot:
    try:
        text = path.read_text()
    except OSError as e:
        print_error(f"Cannot read manifest: {path}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    return RepositorySnapshot.from_manifest(
        text, manifest_revision, manifest_url, branch, pool=pool
    )


def parse(
    manifest: Path = typer.Argument(..., help="Static manifest XML file"),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Manifest branch to record",
    ),
    manifest_revision: str = typer.Option(
        "",
        "--manifest-revision",
        help="HEAD of the manifest repository",
    ),
    manifest_url: str = typer.Option(
        "",
        "--manifest-url",
        help="Clone URL of the manifest repository",
    ),
) -> None:
    """
    Show the projects recorded from a static manifest.

    Examples:
        repo manifest -o - -r > manifest.xml
        repotrack parse manifest.xml
    """
    snapshot = _load_snapshot(manifest, branch, manifest_revision, manifest_url, ProjectPool())

    if not snapshot.projects:
        print_error(
            "No projects found",
            reason="The manifest is malformed or lists no pinned projects",
            solution="repo manifest -o manifest.xml -r  # write a static manifest",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    table = Table(title=f"Projects ({len(snapshot)})")
    table.add_column("Path", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Revision", style="blue")
    table.add_column("URL")

    for entry in snapshot:
        table.add_row(
            entry.path,
            entry.server_path,
            _short(entry.revision),
            entry.full_repository_uri or "[dim]unresolved[/dim]",
        )

    console.print(table)


def diff(
    old: Path = typer.Argument(..., help="Manifest of the previous build (may be missing)"),
    new: Path = typer.Argument(..., help="Manifest of the current build"),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Manifest branch both manifests were taken from",
    ),
    ignore: str | None = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Server paths whose changes do not trigger a build",
    ),
) -> None:
    """
    Show which projects changed between two static manifests.

    Examples:
        repotrack diff previous.xml current.xml
        repotrack diff previous.xml current.xml --ignore "platform/docs,tools/misc"
    """
    pool = ProjectPool()
    current = _load_snapshot(new, branch, "", "", pool)
    previous = _load_snapshot(old, branch, "", "", pool) if old.exists() else None

    change_set = current.diff(previous)
    render_changes(change_set, current)

    if previous is not None:
        verdict = compare_states(current, previous, parse_ignore_list(ignore))
        console.print(f"Polling verdict: [bold]{verdict.value}[/bold]")
