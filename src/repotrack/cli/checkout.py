"""
repotrack CLI - Checkout, poll and history commands.

These commands run the repo tool in a workspace using the settings from
.repotrack.json and keep one snapshot per build under the state directory.
"""

import sys
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from repotrack.cli.errors import ExitCode, print_checkout_not_configured_error, print_error
from repotrack.cli.manifest import render_changes
from repotrack.core.changelog import collect_changelog, save_changelog
from repotrack.core.config import RepoTrackConfig, load_config, load_layered_env
from repotrack.core.manifest import ProjectPool
from repotrack.core.polling import Poller
from repotrack.core.state import HistoryStoreError, SnapshotHistory
from repotrack.core.sync import SyncOrchestrator

console = Console()


def _load(project_dir: Path) -> RepoTrackConfig:
    # OS env > project .env.local > project .env > user .env
    load_layered_env(project_dir)
    try:
        return load_config(project_dir, use_cache=False)
    except ValidationError as e:
        print_error("Invalid configuration", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)


def _orchestrator(config: RepoTrackConfig, workspace: Path) -> SyncOrchestrator:
    if config.checkout is None:
        print_checkout_not_configured_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return SyncOrchestrator(config.checkout, workspace, output=sys.stdout)


def checkout(
    workspace: Path = typer.Option(
        Path("."),
        "--workspace",
        "-w",
        help="Directory to check out into",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        help="Directory holding .repotrack.json and the state directory",
    ),
    build: int | None = typer.Option(
        None,
        "--build",
        "-n",
        help="Build number to record (defaults to the next one)",
    ),
    changelog: Path | None = typer.Option(
        None,
        "--changelog",
        help="Write the changelog for this build to a JSON file",
    ),
) -> None:
    """
    Sync the checkout, record its state and show what changed.

    Examples:
        repotrack checkout
        repotrack checkout -w /work/aosp --build 42 --changelog changelog.json
    """
    config = _load(project_dir)
    orchestrator = _orchestrator(config, workspace)
    pool = ProjectPool()
    history = SnapshotHistory(project_dir / config.state_dir, pool=pool)

    result = orchestrator.checkout()
    if not result.success:
        console.print(f"[red]{result.summary()}[/red]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    console.print(f"[green]✓[/green] {result.summary()}")

    branch = orchestrator.config.manifest_branch
    snapshot = orchestrator.capture_snapshot(branch, pool=pool)

    try:
        if build is None:
            build = (history.latest_build_number() or 0) + 1
        previous = history.find_last_state(branch, before=build)
        history.record(build, snapshot)
    except HistoryStoreError as e:
        print_error("Snapshot history is unreadable", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"Recorded {len(snapshot)} projects for build {build}")

    change_set = snapshot.diff(previous)
    render_changes(change_set, snapshot)

    if changelog is not None:
        entries = collect_changelog(
            change_set,
            orchestrator.repo_dir,
            snapshot,
            show_all_changes=config.polling.show_all_changes,
        )
        save_changelog(entries, changelog)
        console.print(f"Wrote {len(entries)} changelog entries to {changelog}")


def poll(
    workspace: Path = typer.Option(
        Path("."),
        "--workspace",
        "-w",
        help="Directory to check out into",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        help="Directory holding .repotrack.json and the state directory",
    ),
) -> None:
    """
    Check whether a new build is needed.

    Exits 0 when a build should run and 1 when nothing relevant changed.

    Examples:
        repotrack poll && ./build.sh
    """
    config = _load(project_dir)
    orchestrator = _orchestrator(config, workspace)
    pool = ProjectPool()
    history = SnapshotHistory(project_dir / config.state_dir, pool=pool)
    poller = Poller(
        orchestrator,
        history,
        ignore_projects=config.polling.ignore_projects,
        pool=pool,
    )

    try:
        result = poller.poll()
    except HistoryStoreError as e:
        print_error("Snapshot history is unreadable", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"Polling verdict: [bold]{result.change.value}[/bold]")
    if result.change.needs_build:
        raise typer.Exit(ExitCode.SUCCESS)
    raise typer.Exit(ExitCode.GENERAL_ERROR)


def history(
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        help="Directory holding .repotrack.json and the state directory",
    ),
) -> None:
    """
    List the builds with a recorded state.
    """
    config = _load(project_dir)
    store = SnapshotHistory(project_dir / config.state_dir)

    try:
        builds = store.builds()
    except HistoryStoreError as e:
        print_error("Snapshot history is unreadable", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not builds:
        console.print("[yellow]No builds recorded[/yellow]")
        return

    table = Table(title="Recorded builds")
    table.add_column("Build", style="cyan", justify="right")
    table.add_column("Branch", style="green")
    table.add_column("Projects", justify="right")
    table.add_column("Recorded", style="dim")

    for record in builds:
        table.add_row(
            str(record.build_number),
            record.manifest_branch or "[dim]default[/dim]",
            str(len(record.projects)),
            record.recorded_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)
