"""Shared pytest fixtures for the create-x4 test suite.

Provides reusable fixtures for:
- A miniature copy of the x4-mono template on disk
- A fake command runner that records git / package-manager invocations
- A recording sleep so retry tests never wait
- A fake downloader that materialises the miniature template
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from create_x4.config import DownloadConfig, RetryConfig


# ---------------------------------------------------------------------------
# Miniature template
# ---------------------------------------------------------------------------

ROUTER_INDEX = """\
import { router } from "../trpc";
import { usersRouter } from "./users";
import { aiRouter } from "./ai";

export const appRouter = router({
  users: usersRouter,
  ai: aiRouter,
});
"""

ENV_EXAMPLE = """\
DATABASE_URL=
MARKETING_URL=http://localhost:3001
DOCS_URL = http://localhost:3003
ANTHROPIC_API_KEY=
OPENAI_API_KEY=
"""

ELECTRON_BUILDER = """\
appId: com.x4.desktop
productName: x4-mono
directories:
  output: dist
"""


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def build_template_tree(root: Path) -> Path:
    """Write a small but structurally faithful x4-mono checkout under *root*."""
    _write_json(
        root / "package.json",
        {
            "name": "x4-mono",
            "private": True,
            "workspaces": ["apps/*", "packages/*"],
            "devDependencies": {"@x4/shared": "workspace:*", "turbo": "^2.0.0"},
        },
    )
    _write_json(
        root / "turbo.json",
        {
            "globalEnv": [
                "DATABASE_URL",
                "MARKETING_URL",
                "DOCS_URL",
                "ANTHROPIC_API_KEY",
                "OPENAI_API_KEY",
            ],
            "tasks": {"build": {"dependsOn": ["^build"]}, "openapi:generate": {}},
        },
    )
    _write(root / ".env.example", ENV_EXAMPLE)
    _write(root / "README.md", "# x4-mono\n\nPackages live under `@x4/*`.\n")

    # Template maintenance artifacts
    _write(root / "CLAUDE.md", "internal notes\n")
    _write(root / "wiki" / "Home.md", "wiki\n")
    _write(root / ".claude" / "settings.json", "{}\n")
    _write(root / "bun.lock", "lock\n")
    _write(root / "node_modules" / "left-pad" / "index.js", "module.exports = '@x4';\n")
    _write(root / "create-x4" / "package.json", '{"name": "create-x4"}\n')
    _write(root / "apps" / "api" / "openapi.json", "{}\n")

    # API
    _write_json(
        root / "apps" / "api" / "package.json",
        {
            "name": "@x4/api",
            "dependencies": {
                "@x4/shared": "workspace:*",
                "@x4/ai-integrations": "workspace:*",
                "hono": "^4.0.0",
            },
        },
    )
    _write(root / "apps" / "api" / "src" / "routers" / "index.ts", ROUTER_INDEX)
    _write(root / "apps" / "api" / "src" / "routers" / "ai.ts", "export const aiRouter = {};\n")
    _write(root / "apps" / "api" / "src" / "routers" / "users.ts", "export const usersRouter = {};\n")

    # Web
    _write_json(
        root / "apps" / "web" / "package.json",
        {
            "name": "@x4/web",
            "scripts": {"dev": "next dev --port 3000"},
            "dependencies": {"@x4/api": "workspace:*", "@x4/shared": "workspace:*"},
        },
    )
    _write(
        root / "apps" / "web" / "src" / "lib" / "trpc.ts",
        'import type { AppRouter } from "@x4/api";\n',
    )
    _write(
        root / "apps" / "web" / "src" / "app" / "(dashboard)" / "ai" / "page.tsx",
        "export default function AiPage() { return null; }\n",
    )

    # Mobile
    _write_json(
        root / "apps" / "mobile-main" / "package.json",
        {"name": "@x4/mobile-main", "dependencies": {"@x4/shared": "workspace:*"}},
    )
    _write_json(
        root / "apps" / "mobile-main" / "app.json",
        {
            "expo": {
                "name": "x4-mono",
                "slug": "x4-mono-mobile",
                "scheme": "x4",
                "ios": {"bundleIdentifier": "com.x4.mobile"},
                "android": {"package": "com.x4.mobile"},
            }
        },
    )
    (root / "apps" / "mobile-main" / "assets").mkdir(parents=True, exist_ok=True)
    (root / "apps" / "mobile-main" / "assets" / "icon.png").write_bytes(b"\x89PNG\r\n\x1a\n")

    # Desktop, marketing, docs
    _write(root / "apps" / "desktop" / "electron-builder.yml", ELECTRON_BUILDER)
    _write_json(root / "apps" / "desktop" / "package.json", {"name": "@x4/desktop"})
    _write_json(
        root / "apps" / "marketing" / "package.json",
        {"name": "@x4/marketing", "scripts": {"dev": "next dev --port 3001"}},
    )
    _write_json(
        root / "apps" / "docs" / "package.json",
        {"name": "@x4/docs", "scripts": {"dev": "next dev --port 3003"}},
    )

    # Workflows
    for workflow in (
        "deploy-mobile-main.yml",
        "deploy-desktop.yml",
        "deploy-marketing.yml",
        "deploy-docs.yml",
        "ci.yml",
    ):
        _write(root / ".github" / "workflows" / workflow, "name: deploy\n")

    # Packages
    _write_json(
        root / "packages" / "shared" / "package.json",
        {
            "name": "@x4/shared",
            "exports": {".": "./src/index.ts", "./ai": "./src/ai-types/index.ts"},
            "scripts": {"lint": "eslint src/types/ ai-types/"},
        },
    )
    _write(root / "packages" / "shared" / "ai-types" / "index.ts", "export type Ai = {};\n")
    _write_json(
        root / "packages" / "auth" / "package.json",
        {
            "name": "@x4/auth",
            "exports": {".": "./src/index.ts", "./client/native": "./src/client.native.ts"},
        },
    )
    _write(root / "packages" / "auth" / "src" / "client.native.ts", "export {};\n")
    _write_json(
        root / "packages" / "ai-integrations" / "package.json",
        {"name": "@x4/ai-integrations"},
    )

    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A freshly written miniature template."""
    return build_template_tree(tmp_path / "template")


@pytest.fixture
def template_builder():
    """The tree writer itself, for tests that need the template at a chosen path."""
    return build_template_tree


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRunner:
    """Stands in for :func:`create_x4.utils.run_command`.

    Every call is recorded.  Commands whose first two words match a key in
    *failures* return that key's exit code.
    """

    def __init__(self, failures: dict[tuple[str, ...], int] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, cmd, cwd=None, timeout=120, capture=True, env=None):
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "timeout": timeout, "capture": capture})
        for prefix, returncode in self.failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return (returncode, "", f"{cmd[0]} failed")
        return (0, "", "")

    @property
    def commands(self) -> list[list[str]]:
        return [call["cmd"] for call in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def failing_runner():
    """Factory: ``failing_runner({("git", "init"): 128})``."""
    return FakeRunner


class SleepRecorder:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def download_config() -> DownloadConfig:
    """Download settings that never touch the environment."""
    return DownloadConfig(retry=RetryConfig(max_attempts=3, base_delay_ms=1000))


@pytest.fixture
def fake_downloader():
    """Downloader that writes the miniature template and records each call."""

    calls: list[tuple[DownloadConfig, Path]] = []

    async def _download(config: DownloadConfig, target_dir: Path) -> None:
        calls.append((config, target_dir))
        build_template_tree(target_dir)

    _download.calls = calls
    return _download
