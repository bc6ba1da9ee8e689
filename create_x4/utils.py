"""Shared utility functions for create-x4.

Provides async command execution and Rich-based console output used by every
scaffolding stage.  Command helpers never raise for a non-zero exit status;
callers inspect the returned code and decide whether a failure is fatal.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# Return code reported when the executable itself could not be started.
COMMAND_NOT_FOUND = 127


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Executable followed by its arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.  A missing executable yields
        return code ``127`` and a timeout yields ``-1``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except (FileNotFoundError, PermissionError) as exc:
        return (COMMAND_NOT_FOUND, "", f"Could not start {cmd[0]}: {exc}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step(message: str) -> None:
    """Print the start of a pipeline step (``> Downloading template...``)."""
    console.print(f"  [blue]>[/blue] {message}")


def print_done(message: str) -> None:
    """Print the completion of a pipeline step."""
    console.print(f"  [green]✓[/green] {message}")


def print_verbose(message: str, verbose: bool) -> None:
    """Print a dimmed detail line, only when *verbose* is set."""
    if verbose:
        console.print(f"[dim]{escape(message)}[/dim]", highlight=False)


def print_summary_table(rows: list[tuple[str, str]], title: str | None = None) -> None:
    """Print a two-column label/value table.

    Args:
        rows: Ordered ``(label, value)`` pairs.
        title: Optional table title.
    """
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Item", style="bold", no_wrap=True)
    table.add_column("Value", style="cyan")

    for label, value in rows:
        table.add_row(label, value)

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message to stderr."""
    err_console.print(f"\n  [bold red]Error:[/bold red] {message}\n")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
