"""Static template constants: stripped paths, placeholder tokens and platforms.

Everything here is immutable configuration loaded once at import time.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Template maintenance artifacts
# ---------------------------------------------------------------------------

# Files and directories removed from the downloaded template.
STRIP_PATHS: tuple[str, ...] = (
    "create-x4",
    "wiki",
    ".claude",
    ".claude-old",
    "CLAUDE.md",
    ".vercel",
    ".env.local",
    ".env",
    "bun.lock",
    "bun.lockb",
    "node_modules",
    ".turbo",
    "coverage",
    ".DS_Store",
    "apps/api/openapi.json",
    ".git",
)

# File extensions that receive global placeholder replacement.
TEXT_REPLACE_EXTENSIONS: tuple[str, ...] = (
    "ts",
    "tsx",
    "md",
    "mdx",
    "mjs",
    "yml",
    "yaml",
    "json",
    "js",
    "jsx",
    "css",
)


# ---------------------------------------------------------------------------
# Template placeholders
# ---------------------------------------------------------------------------

TEMPLATE_SCOPE = "@x4"
TEMPLATE_NAME = "x4-mono"
TEMPLATE_BUNDLE_PREFIX = "com.x4"
TEMPLATE_REPO = "corbanb/x4-mono"

# Names npm refuses as package names.
NPM_RESERVED_NAMES: frozenset[str] = frozenset(
    {
        "node_modules",
        "favicon.ico",
        "package.json",
        "package-lock.json",
    }
)

MAX_PROJECT_NAME_LENGTH = 214


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------


class Platform(str, Enum):
    """Optional application targets that can be excluded from a project."""

    MOBILE = "mobile"
    DESKTOP = "desktop"
    MARKETING = "marketing"
    DOCS = "docs"
    AI = "ai"


class PlatformSpec(BaseModel):
    """Everything that has to go when a platform is excluded."""

    model_config = ConfigDict(frozen=True)

    dirs: tuple[str, ...] = Field(default=(), description="Directories relative to the project root")
    workflows: tuple[str, ...] = Field(default=(), description="Files under .github/workflows")
    auth_exports: tuple[str, ...] = Field(default=(), description="Export keys in packages/auth")
    auth_files: tuple[str, ...] = Field(default=(), description="Files under packages/auth")
    shared_dirs: tuple[str, ...] = Field(default=(), description="Directories under packages/shared")
    shared_exports: tuple[str, ...] = Field(default=(), description="Export keys in packages/shared")
    env_vars: tuple[str, ...] = Field(default=(), description="Environment variable names")
    turbo_tasks: tuple[str, ...] = Field(default=(), description="Task names in turbo.json")
    api_router_import: str | None = Field(default=None, description="tRPC router module name")
    web_pages: tuple[str, ...] = Field(default=(), description="Page directories under apps/web")


PLATFORMS: dict[Platform, PlatformSpec] = {
    Platform.MOBILE: PlatformSpec(
        dirs=("apps/mobile-main",),
        workflows=("deploy-mobile-main.yml",),
        auth_exports=("./client/native",),
        auth_files=("src/client.native.ts",),
    ),
    Platform.DESKTOP: PlatformSpec(
        dirs=("apps/desktop",),
        workflows=("deploy-desktop.yml",),
    ),
    Platform.MARKETING: PlatformSpec(
        dirs=("apps/marketing",),
        workflows=("deploy-marketing.yml",),
        env_vars=("MARKETING_URL",),
    ),
    Platform.DOCS: PlatformSpec(
        dirs=("apps/docs",),
        workflows=("deploy-docs.yml",),
        env_vars=("DOCS_URL",),
        turbo_tasks=("openapi:generate",),
    ),
    Platform.AI: PlatformSpec(
        dirs=("packages/ai-integrations",),
        shared_dirs=("ai-types",),
        shared_exports=("./ai",),
        env_vars=("ANTHROPIC_API_KEY", "OPENAI_API_KEY"),
        api_router_import="ai",
        web_pages=("src/app/(dashboard)/ai",),
    ),
}

PLATFORM_NAMES: tuple[str, ...] = tuple(p.value for p in Platform)


# ---------------------------------------------------------------------------
# Local development URLs (printed after scaffolding)
# ---------------------------------------------------------------------------

LOCAL_URLS: dict[str, str] = {
    "API": "http://localhost:3002",
    "Web": "http://localhost:3000",
    "Marketing": "http://localhost:3001",
    "Docs": "http://localhost:3003",
}
