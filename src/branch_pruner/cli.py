"""Command line interface for branch-pruner."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from branch_pruner.config import Config
from branch_pruner.engine import BranchPruner
from branch_pruner.exceptions import GatewayError
from branch_pruner.git import GitRepo
from branch_pruner.logging_config import setup_logging
from branch_pruner.models import DeletionMode, DeletionPlan, Detection, MergeStatus, RunOutcome

app = typer.Typer(help="Remove local branches whose remote branch is gone")
console = Console()

EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

PathOption = Annotated[Path, typer.Option(help="Path to git repository")]
RemoteOption = Annotated[str, typer.Option(envvar="BRANCH_PRUNER_REMOTE", help="Remote to compare against")]
BaseOption = Annotated[
    Optional[str],
    typer.Option("--base", envvar="BRANCH_PRUNER_BASE", help="Branch to check merges against (default: current)"),
]
WorkersOption = Annotated[int, typer.Option(help="Parallel merge checks")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show progress messages")]
DebugOption = Annotated[bool, typer.Option(help="Show debug logging")]

STATUS_DISPLAY = {
    MergeStatus.MERGED: "[green]merged[/green]",
    MergeStatus.UNMERGED: "[red]unmerged[/red]",
    MergeStatus.UNKNOWN: "[bright_yellow]unknown[/bright_yellow]",
}


def make_config(remote: str, base: Optional[str], workers: int, verbose: bool, debug: bool) -> Config:
    """Build and validate the run configuration."""
    try:
        config = Config(remote=remote, base_branch=base, workers=workers, verbose=verbose, debug=debug)
    except ValueError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=EXIT_FATAL) from err
    setup_logging(verbose=config.verbose, debug=config.debug)
    return config


def get_pruner(path: Path, config: Config) -> BranchPruner:
    """Open the repository and wrap it in a pruner."""
    try:
        return BranchPruner(GitRepo(path, remote=config.remote), config)
    except GatewayError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=EXIT_FATAL) from err


def detect(pruner: BranchPruner) -> Detection:
    """Run detection, exiting on fatal git errors."""
    try:
        return pruner.run_detection()
    except GatewayError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=EXIT_FATAL) from err


def print_summary(detection: Detection) -> None:
    """Print the current branch and branch counts."""
    current = detection.current.name if detection.current else "(detached HEAD)"
    console.print("[blue]Branch Summary:[/blue]")
    console.print(f"  Current branch: [turquoise2]{current}[/turquoise2]")
    console.print(f"  Total local branches: {detection.total_local}")
    console.print(f"  Stale branches (not on {detection.remote.remote}): {detection.stale_count}")


def create_plan_table(title: str, plan: DeletionPlan) -> Table:
    """Create a table with one row per plan entry."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold",
        title_style="bold blue",
        show_edge=True,
    )
    table.add_column("Branch", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center", no_wrap=True)
    table.add_column("Last Commit", style="yellow")
    table.add_column("Age", style="magenta")
    table.add_column("Action")

    for entry in plan:
        summary = entry.candidate.summary
        if entry.will_delete:
            action = "[red]delete[/red]"
        else:
            action = f"[dim]keep ({entry.reason})[/dim]"
        table.add_row(
            entry.name,
            STATUS_DISPLAY[entry.status],
            str(summary) if summary else "",
            summary.relative_age if summary else "",
            action,
        )
    return table


def print_clean() -> None:
    console.print(
        Panel(
            "[green]No stale branches found ✨[/green]",
            style="green",
            padding=(0, 2),
            expand=False,
        )
    )


def print_outcome(outcome: RunOutcome, force: bool = False) -> None:
    """Print deleted branches, failures and counts."""
    if outcome.deleted:
        deleted_title = f"Successfully deleted {outcome.succeeded} branch(es) 🧹"
        result_table = Table(
            title=deleted_title,
            min_width=len(deleted_title) + 4,
            show_header=True,
            header_style="bold",
            title_style="bold green",
            show_edge=True,
        )
        result_table.add_column("Branch", style="cyan")
        for branch in outcome.deleted:
            result_table.add_row(branch)
        console.print()
        console.print(result_table)

    if outcome.failures:
        failed_title = f"Failed to delete {outcome.failed} branch(es)"
        failure_table = Table(
            title=failed_title,
            min_width=len(failed_title) + 4,
            show_header=True,
            header_style="bold",
            title_style="bold red",
            show_edge=True,
        )
        failure_table.add_column("Branch", style="cyan")
        failure_table.add_column("Reason", style="red")
        for failure in outcome.failures:
            failure_table.add_row(failure.branch, failure.reason)
        console.print()
        console.print(failure_table)

    console.print()
    console.print(f"Attempted: {outcome.attempted}  Deleted: {outcome.succeeded}  Failed: {outcome.failed}")
    if outcome.has_failures and not force:
        console.print("[yellow]Use --force to delete branches git reports as not fully merged[/yellow]")


@app.command("list")
def list_branches(
    path: PathOption = Path("."),
    remote: RemoteOption = "origin",
    base: BaseOption = None,
    workers: WorkersOption = 1,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Show stale branches without deleting anything."""
    config = make_config(remote, base, workers, verbose, debug)
    pruner = get_pruner(path, config)
    detection = detect(pruner)

    print_summary(detection)
    if not detection.candidates:
        console.print()
        print_clean()
        pruner.mark_reported()
        return

    plan = pruner.run_plan(DeletionMode.DRY_RUN)
    console.print()
    console.print(create_plan_table("Stale Branches", plan))

    unmerged = [entry.name for entry in plan if not entry.status.is_safe_to_delete]
    console.print()
    console.print("Run [dim]`branch-pruner clean`[/dim] to delete merged stale branches.")
    if unmerged:
        console.print(
            f"[yellow]{len(unmerged)} unmerged branch(es); use [dim]`branch-pruner clean --force`[/dim] to delete them.[/yellow]"
        )
    pruner.mark_reported()


@app.command()
def clean(
    path: PathOption = Path("."),
    force: bool = typer.Option(False, "--force", "-f", help="Delete stale branches even if not merged"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the plan without deleting"),
    no_interactive: bool = typer.Option(False, "--no-interactive", "-y", help="Skip confirmation prompt"),
    remote: RemoteOption = "origin",
    base: BaseOption = None,
    workers: WorkersOption = 1,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Delete stale branches (merged only, unless --force)."""
    config = make_config(remote, base, workers, verbose, debug)
    pruner = get_pruner(path, config)
    detection = detect(pruner)

    if not detection.candidates:
        print_clean()
        pruner.mark_reported()
        return

    mode = DeletionMode.FORCE_DELETE if force else DeletionMode.SAFE_DELETE
    # --dry-run shows the plan clean would apply, then stops before execution
    plan = pruner.run_plan(mode)

    if force and not dry_run:
        console.print("[bold yellow]Force delete mode enabled - unmerged branches will be deleted![/bold yellow]")
    console.print()
    console.print(create_plan_table("Branches to Delete", plan))

    if dry_run:
        console.print("\n[yellow]Dry run, no branches were deleted[/yellow]")
        pruner.mark_reported()
        return

    if not plan.to_delete:
        console.print("\n[yellow]No branches were deleted[/yellow] 🤔")
        console.print("[yellow]Use --force to delete unmerged branches[/yellow]")
        pruner.mark_reported()
        return

    if not no_interactive:
        console.print()
        confirmed = typer.confirm(f"Delete {len(plan.to_delete)} stale branch(es)?", default=False)
        if not confirmed:
            console.print("\n[yellow]Operation cancelled[/yellow] 🛑")
            return

    outcome = pruner.run_execution(plan)
    print_outcome(outcome, force=plan.force)
    pruner.mark_reported()
    if outcome.has_failures:
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE)


if __name__ == "__main__":
    app()
