"""
Standardized error handling and exit codes for the symsync CLI.

Consistent error messages with actionable guidance and standard exit codes
across all commands.
"""

from enum import IntEnum

from rich.console import Console

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for symsync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Sync, parse or I/O failure."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""


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
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_branch_not_configured_error(store_name: str) -> None:
    """Print error when a branch is missing from the configuration."""
    print_error(
        f"Branch '{store_name}' is not configured",
        reason="Branches are listed under 'branches' in .symsync.json",
        solution=(
            'add {"build_name": "...", "store_name": "'
            + store_name
            + '"} to the branches list'
        ),
    )


def print_paths_not_configured_error() -> None:
    """Print error when the store or build server root is unknown."""
    print_error(
        "Symbol store or build server root is not configured",
        reason="Set 'destination' and 'build_source' in .symsync.json",
        solution="export SYMSYNC_DESTINATION=... SYMSYNC_BUILD_SOURCE=...",
    )
