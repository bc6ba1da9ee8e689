"""create-x4 scaffold pipeline.

Runs one scaffold request through its stages:

VALIDATE -> FETCH -> STRIP -> REWRITE -> FILTER -> POSTPROCESS -> DONE

Only VALIDATE and FETCH can fail the run.  Stripping and rewriting operate on
a freshly fetched local tree, and post-processing degrades to warnings.

Usage::

    config = ScaffoldConfig(project_name="my-app", scope="@my-app", bundle_id="com.myapp")
    result = await scaffold(config)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .config import DownloadConfig, ScaffoldConfig
from .download import DownloadError, Downloader, download_template
from .platform_filter import filter_platforms
from .post import CommandRunner, PostOptions, PostResult, post_scaffold
from .strip import strip_non_template_files
from .transform import transform_template
from .utils import console, print_done, print_step
from .validate import (
    validate_bundle_id,
    validate_project_name,
    validate_scope,
    validate_target_dir,
)


class ScaffoldStage(str, Enum):
    """Stages of a scaffold run, in order."""

    VALIDATE = "validate"
    FETCH = "fetch"
    STRIP = "strip"
    REWRITE = "rewrite"
    FILTER = "filter"
    POSTPROCESS = "postprocess"
    DONE = "done"


class ScaffoldError(Exception):
    """Raised when a scaffold run fails at a hard-fail stage."""

    def __init__(self, stage: ScaffoldStage, message: str) -> None:
        self.stage = stage
        super().__init__(message)


class ScaffoldResult(BaseModel):
    """Outcome of a successful scaffold run."""

    target_dir: Path
    stages: list[ScaffoldStage] = Field(default_factory=list)
    removed_paths: list[str] = Field(default_factory=list)
    post: PostResult = Field(default_factory=PostResult)


def validate_request(config: ScaffoldConfig) -> list[str]:
    """Return every validation error for *config* (empty when valid)."""
    checks = [
        validate_project_name(config.project_name),
        validate_scope(config.scope),
        validate_bundle_id(config.bundle_id),
    ]
    if config.project_name:
        checks.insert(1, validate_target_dir(config.project_name, config.cwd))
    return [check.error for check in checks if not check.valid and check.error]


async def scaffold(
    config: ScaffoldConfig,
    *,
    downloader: Downloader | None = None,
    download_config: DownloadConfig | None = None,
    runner: CommandRunner | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ScaffoldResult:
    """Create a new project from the template.

    Args:
        config: The validated-or-not scaffold request.
        downloader: One download attempt; defaults to the GitHub tarball fetch.
        download_config: Template source and retry policy.
        runner: Command runner for git and the package manager.
        sleep: Backoff sleep for download retries.

    Raises:
        ScaffoldError: If validation fails or the download is exhausted.
    """
    result = ScaffoldResult(target_dir=config.target_dir)
    target_dir = config.target_dir

    # 1. Validate
    errors = validate_request(config)
    if errors:
        raise ScaffoldError(ScaffoldStage.VALIDATE, errors[0])
    result.stages.append(ScaffoldStage.VALIDATE)

    console.print()
    console.print(
        f"  Creating [bold cyan]{config.project_name}[/bold cyan] "
        f"with scope [bold]{config.scope}[/bold]"
    )
    console.print()

    # 2. Fetch
    print_step("Downloading template...")
    try:
        await download_template(
            target_dir,
            config.branch,
            config.verbose,
            config=download_config,
            downloader=downloader,
            sleep=sleep,
        )
    except DownloadError as exc:
        raise ScaffoldError(ScaffoldStage.FETCH, str(exc)) from exc
    print_done("Template downloaded.")
    result.stages.append(ScaffoldStage.FETCH)

    # 3. Strip template-maintenance artifacts
    print_step("Cleaning template...")
    result.removed_paths = await asyncio.to_thread(
        strip_non_template_files, target_dir, config.verbose
    )
    print_done("Template cleaned.")
    result.stages.append(ScaffoldStage.STRIP)

    # 4. Rewrite placeholders
    print_step("Parameterizing project...")
    await asyncio.to_thread(
        transform_template,
        target_dir,
        config.project_name,
        config.scope,
        config.bundle_id,
        config.verbose,
    )
    print_done("Project parameterized.")
    result.stages.append(ScaffoldStage.REWRITE)

    # 5. Remove excluded platforms
    if config.exclude_platforms:
        names = ", ".join(p.value for p in config.exclude_platforms)
        print_step(f"Removing {names}...")
        await asyncio.to_thread(
            filter_platforms,
            target_dir,
            config.exclude_platforms,
            config.scope,
            config.mobile_name,
            config.verbose,
        )
        print_done("Platforms filtered.")
        result.stages.append(ScaffoldStage.FILTER)

    # 6. Post-process (best effort)
    result.post = await post_scaffold(
        PostOptions(
            target_dir=target_dir,
            project_name=config.project_name,
            pm=config.pm,
            git=config.git,
            install=config.install,
            exclude_platforms=config.exclude_platforms,
            verbose=config.verbose,
        ),
        runner=runner,
    )
    result.stages.append(ScaffoldStage.POSTPROCESS)
    result.stages.append(ScaffoldStage.DONE)
    return result
