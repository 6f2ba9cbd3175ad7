"""
SymSync CLI - branch commands.

Sync a branch from the build server, and browse its build history and
symbols.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from symsync.cli.errors import (
    ExitCode,
    print_branch_not_configured_error,
    print_error,
    print_paths_not_configured_error,
)
from symsync.core.branch import Arch, BranchBuilder, Build, Symbol
from symsync.core.config import load_config
from symsync.core.errors import (
    BranchNotInitializedError,
    BuildNotExistError,
    CorruptSnapshotError,
    InvalidBuildServerPathError,
    InvalidStorePathError,
    SymStoreError,
    SymSyncError,
)

logger = logging.getLogger(__name__)

console = Console()


def _open_branch(store_name: str, *, allow_corrupt: bool = False) -> BranchBuilder:
    """
    Build a BranchBuilder from config and its snapshot, or exit.

    With `allow_corrupt`, an undecodable snapshot is ignored and the
    builder keeps its configured defaults.
    """
    config = load_config()
    entry = config.get_branch(store_name)
    if entry is None:
        print_branch_not_configured_error(store_name)
        raise typer.Exit(ExitCode.USER_ERROR)

    builder = BranchBuilder.new(entry.build_name, entry.store_name, config)
    try:
        if entry.build_subpath or entry.store_subpath:
            builder.set_subpath(entry.build_subpath, entry.store_subpath)
        builder.load()
    except FileNotFoundError:
        logger.debug("No snapshot for branch %s yet", store_name)
    except CorruptSnapshotError as e:
        if not allow_corrupt:
            print_error(
                str(e),
                reason="The saved branch state could not be decoded",
                solution=f"symsync delete {store_name} --yes",
            )
            raise typer.Exit(ExitCode.USER_ERROR)
        logger.warning("Ignoring corrupt snapshot %s", e.path)
    except BranchNotInitializedError:
        print_paths_not_configured_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except SymSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    return builder


def _load_history(builder: BranchBuilder) -> None:
    """Populate the registry from the history log, if there is one."""
    try:
        builder.parse_builds()
    except FileNotFoundError:
        logger.debug("No build history for branch %s yet", builder.name)


def sync(
    store_name: str = typer.Argument(..., help="Branch name in the symbol store"),
    build_version: str = typer.Option(
        "",
        "--version",
        "-v",
        help="Publish this build version instead of the latest one",
    ),
) -> None:
    """
    Publish a build's symbols to the symbol store.

    Does nothing when the branch is already at the build server's latest
    build, or when the requested build was published before.

    Examples:
        symsync sync UDPv6.5U2                   # Publish the latest build
        symsync sync UDPv6.5U2 -v 4175.2-538     # Publish a specific build
    """
    builder = _open_branch(store_name)

    try:
        builder.validate()
        _load_history(builder)
        build = builder.add_build(build_version)
    except (InvalidStorePathError, InvalidBuildServerPathError) as e:
        print_error(str(e), solution=f"symsync info {store_name}")
        raise typer.Exit(ExitCode.USER_ERROR)
    except SymStoreError as e:
        print_error(str(e), reason=e.output.strip() or None)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except (SymSyncError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if build is None:
        console.print(f"[blue]Branch {builder.name} is up to date[/blue]")
    else:
        console.print(
            f"[green]✓[/green] Published build {build.version} to {builder.name} as {build.id}"
        )

    try:
        builder.persist()
    except OSError as e:
        print_error(f"Failed to save branch {builder.name}: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def builds(
    store_name: str = typer.Argument(..., help="Branch name in the symbol store"),
) -> None:
    """
    List builds published for a branch.

    Examples:
        symsync builds UDPv6.5U2
    """
    builder = _open_branch(store_name)
    rows: list[Build] = []

    try:
        builder.parse_builds(rows.append)
    except (SymSyncError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not rows:
        console.print(f"[dim]No builds published for {builder.name}[/dim]")
        return

    table = Table(title=f"Builds of {builder.name}")
    table.add_column("ID", style="cyan")
    table.add_column("Date")
    table.add_column("Version", style="green")
    table.add_column("Comment", style="dim")
    for build in rows:
        table.add_row(build.id, build.date, build.version, build.comment)
    console.print(table)


def symbols(
    store_name: str = typer.Argument(..., help="Branch name in the symbol store"),
    build_id: str = typer.Argument(..., help="Store build id, e.g. 0000000001"),
    arch: Optional[Arch] = typer.Option(
        None,
        "--arch",
        "-a",
        help="Only show symbols of this architecture",
    ),
) -> None:
    """
    List the unique symbols published by one build.

    Examples:
        symsync symbols UDPv6.5U2 0000000001
        symsync symbols UDPv6.5U2 0000000001 --arch x64
    """
    builder = _open_branch(store_name)
    rows: list[Symbol] = []

    def collect(symbol: Symbol) -> None:
        if arch is None or symbol.arch == arch:
            rows.append(symbol)

    try:
        _load_history(builder)
        total = builder.parse_symbols(build_id, collect)
    except BuildNotExistError as e:
        print_error(str(e), solution=f"symsync builds {store_name}")
        raise typer.Exit(ExitCode.USER_ERROR)
    except (SymSyncError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    table = Table(title=f"Symbols of {builder.name} build {build_id}")
    table.add_column("Name", style="cyan")
    table.add_column("Arch")
    table.add_column("Hash", style="dim")
    table.add_column("Path")
    for symbol in rows:
        table.add_row(symbol.name, symbol.arch.value, symbol.hash, symbol.path)
    console.print(table)
    console.print(f"[dim]{len(rows)} shown, {total} unique symbols in build[/dim]")


def info(
    store_name: str = typer.Argument(..., help="Branch name in the symbol store"),
) -> None:
    """
    Show a branch's configuration and state.

    Examples:
        symsync info UDPv6.5U2
    """
    builder = _open_branch(store_name)
    branch = builder.branch

    def flag(ok: bool) -> str:
        return "[green]yes[/green]" if ok else "[red]no[/red]"

    table = Table(title=f"Branch {builder.name}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Build name", branch.build_name)
    table.add_row("Store path", branch.store_path or "[dim]unset[/dim]")
    table.add_row("Build path", branch.build_path or "[dim]unset[/dim]")
    table.add_row("Latest build", branch.latest_build or "[dim]none[/dim]")
    table.add_row("Builds", str(branch.builds_count))
    table.add_row("Updated", branch.update_date)
    table.add_row("Store valid", flag(builder.can_browse()))
    table.add_row("Build server valid", flag(builder.can_update()))
    console.print(table)


def delete(
    store_name: str = typer.Argument(..., help="Branch name in the symbol store"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """
    Delete a branch's saved state.

    Only the branch snapshot is removed; build history and published
    symbols stay in the store.

    Examples:
        symsync delete UDPv6.5U2 --yes
    """
    builder = _open_branch(store_name, allow_corrupt=True)

    if not yes and not typer.confirm(f"Delete saved state of branch {builder.name}?"):
        raise typer.Exit(ExitCode.SUCCESS)

    try:
        builder.delete()
    except FileNotFoundError:
        print_error(f"Branch {builder.name} has no saved state")
        raise typer.Exit(ExitCode.USER_ERROR)
    except (SymSyncError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Deleted branch {builder.name}")
