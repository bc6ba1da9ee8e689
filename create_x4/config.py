"""create-x4 configuration.

Typed settings for a single scaffold run.  All settings use Pydantic v2
models so they are validated at construction time.  ``ScaffoldConfig`` is the
request assembled from CLI input; ``DownloadConfig`` describes where the
template comes from and how hard to try fetching it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .constants import TEMPLATE_REPO, Platform
from .detect import PackageManager

# Read by the download layer to authenticate against GitHub.
AUTH_TOKEN_ENV = "GIGET_AUTH"


def _env_int(name: str) -> int:
    raw = os.environ[name]
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class RetryConfig(BaseModel):
    """Retry policy for the template download."""

    max_attempts: int = Field(default=3, ge=1, description="Total attempts, including the first")
    base_delay_ms: int = Field(
        default=1000, ge=0, description="Delay before the first retry; doubles each retry"
    )

    @property
    def base_delay(self) -> float:
        """Base delay in seconds."""
        return self.base_delay_ms / 1000.0


class DownloadConfig(BaseModel):
    """Where the template archive is fetched from."""

    repo: str = Field(default=TEMPLATE_REPO, pattern=r"^[\w.-]+/[\w.-]+$")
    branch: str = Field(default="main", min_length=1)
    timeout: int = Field(default=60, ge=1, description="Per-request timeout in seconds")
    auth_token: str | None = Field(default=None, description="GitHub token for rate limits")
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @property
    def source(self) -> str:
        """Human-readable template source, e.g. ``github:corbanb/x4-mono#main``."""
        return f"github:{self.repo}#{self.branch}"

    @property
    def archive_url(self) -> str:
        """Tarball URL for :attr:`repo` at :attr:`branch`."""
        return f"https://codeload.github.com/{self.repo}/tar.gz/{self.branch}"

    @classmethod
    def from_env(cls, **overrides: Any) -> "DownloadConfig":
        """Build a ``DownloadConfig`` from environment variables.

        Recognised variables (all optional):
            CREATE_X4_TEMPLATE_REPO, CREATE_X4_BRANCH,
            CREATE_X4_DOWNLOAD_TIMEOUT, CREATE_X4_MAX_ATTEMPTS, GIGET_AUTH.

        Keyword *overrides* win over the environment.

        Raises:
            ValueError: If a numeric variable is not an integer.
            pydantic.ValidationError: If a value is out of range.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_X4_TEMPLATE_REPO"):
            kwargs["repo"] = os.environ["CREATE_X4_TEMPLATE_REPO"]
        if os.environ.get("CREATE_X4_BRANCH"):
            kwargs["branch"] = os.environ["CREATE_X4_BRANCH"]
        if os.environ.get("CREATE_X4_DOWNLOAD_TIMEOUT"):
            kwargs["timeout"] = _env_int("CREATE_X4_DOWNLOAD_TIMEOUT")
        if os.environ.get(AUTH_TOKEN_ENV):
            kwargs["auth_token"] = os.environ[AUTH_TOKEN_ENV]

        retry_kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_X4_MAX_ATTEMPTS"):
            retry_kwargs["max_attempts"] = _env_int("CREATE_X4_MAX_ATTEMPTS")
        kwargs["retry"] = RetryConfig(**retry_kwargs)

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


class ScaffoldConfig(BaseModel):
    """A single scaffold request, assembled from CLI input.

    Built once per invocation and not mutated after validation.
    """

    project_name: str
    scope: str
    bundle_id: str
    exclude_platforms: list[Platform] = Field(default_factory=list)
    pm: PackageManager = Field(default=PackageManager.NPM)
    git: bool = True
    install: bool = True
    branch: str | None = Field(
        default=None, description="Template ref; None keeps DownloadConfig.branch"
    )
    verbose: bool = False
    cwd: Path = Field(default_factory=Path.cwd)
    mobile_name: str = Field(default="main", description="Suffix of the template's mobile app dir")

    @property
    def target_dir(self) -> Path:
        """Absolute path of the project directory to create."""
        return (Path(self.cwd) / self.project_name).resolve()
