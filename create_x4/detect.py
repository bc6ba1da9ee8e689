"""Package-manager detection.

Detection is a function of an environment snapshot and a probe that answers
"is this binary runnable?".  The default probe spawns ``<cmd> --version``;
tests substitute a fake so no real binaries are needed.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum

from .utils import run_command

# Set by npm/pnpm/yarn/bun when running via npx/pnpm dlx/yarn dlx/bunx.
USER_AGENT_ENV = "npm_config_user_agent"

PROBE_TIMEOUT = 10


class PackageManager(str, Enum):
    """Supported JavaScript package managers."""

    BUN = "bun"
    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"


PM_PRIORITY: tuple[PackageManager, ...] = (
    PackageManager.BUN,
    PackageManager.PNPM,
    PackageManager.YARN,
    PackageManager.NPM,
)

Probe = Callable[[str], Awaitable[bool]]


async def is_installed(cmd: str) -> bool:
    """Return ``True`` if ``<cmd> --version`` exits successfully.

    Any failure (non-zero exit, missing binary, timeout) is a plain ``False``.
    """
    returncode, _, _ = await run_command([cmd, "--version"], timeout=PROBE_TIMEOUT)
    return returncode == 0


async def detect_package_manager(
    env: Mapping[str, str] | None = None,
    probe: Probe | None = None,
) -> PackageManager:
    """Pick the package manager to use for a new project.

    Resolution order:

    1. The ``npm_config_user_agent`` variable, matched by prefix against
       :data:`PM_PRIORITY`.
    2. The first binary in priority order whose probe succeeds.
    3. ``npm``.
    """
    env = os.environ if env is None else env
    probe = probe or is_installed

    user_agent = env.get(USER_AGENT_ENV, "")
    for pm in PM_PRIORITY:
        if user_agent.startswith(pm.value):
            return pm

    for pm in PM_PRIORITY:
        if await probe(pm.value):
            return pm

    return PackageManager.NPM


async def validate_package_manager(pm: str, probe: Probe | None = None) -> bool:
    """Return ``True`` if *pm* is a known package manager and is installed."""
    probe = probe or is_installed
    if pm not in {p.value for p in PackageManager}:
        return False
    return await probe(pm)


def get_install_command(pm: PackageManager | str) -> list[str]:
    """Return the dependency install command for *pm*."""
    pm = PackageManager(pm)
    if pm is PackageManager.YARN:
        return ["yarn"]
    return [pm.value, "install"]


def get_run_command(pm: PackageManager | str) -> str:
    """Return the script runner prefix for *pm* (``npx`` for npm)."""
    pm = PackageManager(pm)
    return "npx" if pm is PackageManager.NPM else pm.value
