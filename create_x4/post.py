"""Post-scaffold steps: git init, dependency install, and the summary.

Both side effects are best-effort.  A failure is downgraded to a warning
that tells the user how to finish by hand, and the run carries on.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

from pydantic import BaseModel, Field

from .constants import LOCAL_URLS, Platform
from .detect import PackageManager, get_install_command, get_run_command
from .utils import console, print_summary_table, print_verbose, print_warning, run_command

CommandRunner = Callable[..., Awaitable[tuple[int, str, str]]]

GIT_COMMIT_MESSAGE = "Initial commit from create-x4"
GIT_TIMEOUT = 60
INSTALL_TIMEOUT = 900


class CommandError(Exception):
    """Raised when a post-processing command exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr}" if stderr else ""
        super().__init__(f"`{' '.join(command)}` exited with {returncode}{detail}")


class PostOptions(BaseModel):
    """Inputs to the post-processing step."""

    target_dir: Path
    project_name: str
    pm: PackageManager = PackageManager.NPM
    git: bool = True
    install: bool = True
    exclude_platforms: list[Platform] = Field(default_factory=list)
    verbose: bool = False


class PostResult(BaseModel):
    """What post-processing actually achieved."""

    git_initialized: bool = False
    dependencies_installed: bool = False
    warnings: list[str] = Field(default_factory=list)


async def _run_checked(
    runner: CommandRunner,
    cmd: list[str],
    cwd: Path,
    *,
    timeout: int,
    capture: bool = True,
) -> None:
    returncode, _, stderr = await runner(cmd, cwd=cwd, timeout=timeout, capture=capture)
    if returncode != 0:
        raise CommandError(cmd, returncode, stderr)


async def init_git(opts: PostOptions, runner: CommandRunner = run_command) -> str | None:
    """Initialise a repository with one commit.

    Returns:
        ``None`` on success, otherwise the warning that was printed.
    """
    print_verbose("  Initializing git repository...", opts.verbose)
    try:
        for cmd in (
            ["git", "init"],
            ["git", "add", "-A"],
            ["git", "commit", "-m", GIT_COMMIT_MESSAGE],
        ):
            await _run_checked(runner, cmd, opts.target_dir, timeout=GIT_TIMEOUT)
    except (CommandError, OSError) as exc:
        warning = "Warning: Could not initialize git repository."
        print_warning(f"  {warning}" + (f" {exc}" if opts.verbose else ""))
        return warning

    print_verbose("  Git initialized with initial commit.", opts.verbose)
    return None


async def install_dependencies(
    opts: PostOptions, runner: CommandRunner = run_command
) -> str | None:
    """Run the package manager's install command in the project.

    Output streams to the terminal when verbose and is captured otherwise.

    Returns:
        ``None`` on success, otherwise the warning that was printed.
    """
    cmd = get_install_command(opts.pm)
    console.print(f"\n  Installing dependencies with [bold]{opts.pm.value}[/bold]...\n")
    try:
        await _run_checked(
            runner, cmd, opts.target_dir, timeout=INSTALL_TIMEOUT, capture=not opts.verbose
        )
    except (CommandError, OSError) as exc:
        warning = f'Warning: Dependency installation failed. Run "{" ".join(cmd)}" manually.'
        print_warning(f"\n  {warning}" + (f"\n  {exc}" if opts.verbose else ""))
        return warning
    return None


def build_url_table(exclude_platforms: list[Platform]) -> list[tuple[str, str]]:
    """Local dev URLs for the platforms the project still contains.

    API and Web are always present.
    """
    excluded = set(exclude_platforms)
    rows = [("API", LOCAL_URLS["API"]), ("Web", LOCAL_URLS["Web"])]
    if Platform.MARKETING not in excluded:
        rows.append(("Marketing", LOCAL_URLS["Marketing"]))
    if Platform.DOCS not in excluded:
        rows.append(("Docs", LOCAL_URLS["Docs"]))
    return rows


def next_steps(pm: PackageManager) -> list[tuple[str, str]]:
    """Commands to run after scaffolding, with a short description each."""
    run = get_run_command(pm)
    return [
        ("cp .env.example .env.local", "Configure environment"),
        (f"{run} db:push", "Push schema to database"),
        (f"{run} dev", "Start development"),
    ]


def print_next_steps(opts: PostOptions) -> None:
    """Print the success banner, next steps, and local URL table."""
    console.print()
    console.print("[bold green]  Your project is ready![/bold green]")
    console.print()
    console.print(f"  [bold]cd[/bold] {opts.project_name}")
    console.print()
    console.print("[bold]  Next steps:[/bold]")
    console.print()
    for index, (command, description) in enumerate(next_steps(opts.pm), start=1):
        console.print(f"    {index}. [dim]{command}[/dim]  # {description}", highlight=False)
    console.print()
    print_summary_table(build_url_table(opts.exclude_platforms))


async def post_scaffold(opts: PostOptions, runner: CommandRunner | None = None) -> PostResult:
    """Run git init and install (each optional), then print the summary.

    Never raises for a git or install failure.
    """
    runner = runner or run_command
    result = PostResult()

    if opts.git:
        warning = await init_git(opts, runner)
        result.git_initialized = warning is None
        if warning:
            result.warnings.append(warning)

    if opts.install:
        warning = await install_dependencies(opts, runner)
        result.dependencies_installed = warning is None
        if warning:
            result.warnings.append(warning)

    print_next_steps(opts)
    return result
