"""
Standardized error handling and exit codes for the repotrack CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for repotrack CLI operations."""

    SUCCESS = 0
    """Operation completed successfully (for poll: a build is needed)."""

    GENERAL_ERROR = 1
    """Generic error, failed checkout, or (for poll) nothing to build."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Manifest could not be read",
        ...     reason="File does not exist",
        ...     solution="repo manifest -o manifest.xml -r",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_checkout_not_configured_error() -> None:
    """Print error when no checkout section is configured."""
    print_error(
        "No checkout configured",
        reason="checkout.manifest_url is missing from .repotrack.json",
        solution='echo \'{"checkout": {"manifest_url": "<url>"}}\' > .repotrack.json',
    )
