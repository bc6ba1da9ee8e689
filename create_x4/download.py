"""Template download with retry and exponential backoff.

The template is fetched as a GitHub tarball and unpacked into the target
directory, overwriting whatever a previous partial attempt left behind.  The
network call sits behind the :data:`Downloader` interface so the retry
discipline can be exercised without a network.
"""

from __future__ import annotations

import asyncio
import io
import tarfile
from collections.abc import Awaitable, Callable
from pathlib import Path, PurePosixPath

import httpx

from .config import AUTH_TOKEN_ENV, DownloadConfig
from .retry import RetryError, retry_with_backoff
from .utils import print_verbose

Downloader = Callable[[DownloadConfig, Path], Awaitable[None]]


class DownloadError(Exception):
    """Raised when the template could not be downloaded after all retries."""

    def __init__(self, message: str, attempts: int = 0, cause: BaseException | None = None) -> None:
        self.attempts = attempts
        self.cause = cause
        super().__init__(message)


# ---------------------------------------------------------------------------
# Default downloader
# ---------------------------------------------------------------------------


def _auth_headers(token: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


async def fetch_github_archive(
    config: DownloadConfig,
    target_dir: Path,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Download the template tarball and unpack it into *target_dir*.

    Raises:
        httpx.HTTPError: On connection problems or a non-2xx response.
        tarfile.TarError: If the payload is not a readable gzip tarball.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=10.0),
            follow_redirects=True,
        )
    try:
        response = await client.get(config.archive_url, headers=_auth_headers(config.auth_token))
        response.raise_for_status()
        payload = response.content
    finally:
        if owns_client:
            await client.aclose()

    await asyncio.to_thread(extract_archive, payload, Path(target_dir))


def extract_archive(payload: bytes, target_dir: Path) -> list[Path]:
    """Unpack a gzip tarball into *target_dir*, dropping the top-level folder.

    GitHub archives wrap everything in ``<repo>-<ref>/``; that component is
    removed.  Members that would land outside *target_dir*, or that the
    ``data`` extraction filter rejects, are skipped.

    Returns:
        Paths of the extracted regular files.
    """
    target_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    with tarfile.open(fileobj=io.BytesIO(payload), mode="r:gz") as archive:
        for member in archive.getmembers():
            parts = PurePosixPath(member.name).parts
            if len(parts) < 2:
                continue
            relative = PurePosixPath(*parts[1:])
            if relative.is_absolute() or ".." in relative.parts:
                continue

            member.name = str(relative)
            try:
                archive.extract(member, target_dir, filter="data")
            except tarfile.FilterError:
                continue
            if member.isfile():
                written.append(target_dir / relative)

    return written


# ---------------------------------------------------------------------------
# Retried download
# ---------------------------------------------------------------------------


async def download_template(
    target_dir: str | Path,
    branch: str | None = None,
    verbose: bool = False,
    *,
    config: DownloadConfig | None = None,
    downloader: Downloader | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Materialise the template into *target_dir*, retrying on failure.

    Args:
        target_dir: Directory to populate.
        branch: Template branch or ref; when given, overrides ``config.branch``.
        verbose: Print attempt and retry notices.
        config: Download settings.  Defaults to :meth:`DownloadConfig.from_env`.
        downloader: Coroutine performing one download attempt.
        sleep: Backoff sleep, injectable for tests.

    Raises:
        DownloadError: After ``config.retry.max_attempts`` failed attempts.
    """
    config = config or DownloadConfig.from_env()
    if branch:
        config = config.model_copy(update={"branch": branch})
    downloader = downloader or fetch_github_archive
    target = Path(target_dir)
    max_attempts = config.retry.max_attempts
    attempt = 0

    async def _attempt() -> None:
        nonlocal attempt
        attempt += 1
        print_verbose(
            f"  Downloading template (attempt {attempt}/{max_attempts})...", verbose
        )
        await downloader(config, target)

    def _on_retry(_attempt: int, delay: float, exc: BaseException) -> None:
        print_verbose(f"  Retrying in {int(delay * 1000)}ms... ({exc})", verbose)

    try:
        await retry_with_backoff(
            _attempt,
            attempts=max_attempts,
            base_delay=config.retry.base_delay,
            sleep=sleep,
            on_retry=_on_retry,
        )
    except RetryError as exc:
        cause = exc.last_error
        raise DownloadError(
            f"Failed to download template from {config.source} after "
            f"{exc.attempts} attempts: {cause}\n\n"
            "If you're hitting GitHub rate limits, set the "
            f"{AUTH_TOKEN_ENV} environment variable:\n"
            f"  {AUTH_TOKEN_ENV}=ghp_your_token create-x4 my-app",
            attempts=exc.attempts,
            cause=cause,
        ) from cause
