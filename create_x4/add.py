"""``create-x4 add``: add a web or mobile app to an existing x4 monorepo.

Template files live under ``create_x4/templates/<kind>/`` with a ``.tmpl``
suffix.  A leading ``dot-`` in a file name stands for ``.`` so dotfiles
survive packaging (``dot-env.example.tmpl`` -> ``.env.example``).
"""

from __future__ import annotations

import json
import re
import shutil
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .post import CommandRunner
from .rewrite import TemplateFile, apply_template
from .utils import console, print_success, print_warning, run_command
from .validate import derive_bundle_id, validate_app_name

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

TEMPLATE_SUFFIX = ".tmpl"
DOTFILE_PREFIX = "dot-"
DEFAULT_BASE_PORT = 3004
INSTALL_COMMAND = ["bun", "install"]

_PORT_RE = re.compile(r"--port\s+(\d+)")


class AppKind(str, Enum):
    """Kinds of app the ``add`` command can scaffold."""

    MOBILE_APP = "mobile-app"
    WEB_APP = "web-app"


class AddError(Exception):
    """Raised when an app cannot be added to the monorepo."""


class MonorepoConfig(BaseModel):
    """Identity of an existing monorepo, read back from its files."""

    root: Path
    scope: str
    project_name: str
    bundle_id: str | None = None


class AddResult(BaseModel):
    """Outcome of ``create-x4 add``."""

    kind: AppKind
    target_dir: Path
    files: list[Path] = Field(default_factory=list)
    installed: bool = False


# ---------------------------------------------------------------------------
# Monorepo discovery
# ---------------------------------------------------------------------------


def find_monorepo_root(start_dir: str | Path) -> Path | None:
    """Walk up from *start_dir* to the first directory with ``turbo.json`` and ``packages/``."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        if (directory / "turbo.json").is_file() and (directory / "packages").is_dir():
            return directory
    return None


def _load_json(path: Path) -> dict | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _detect_scope_from_packages(root: Path) -> str | None:
    packages_dir = root / "packages"
    if not packages_dir.is_dir():
        return None
    for package_dir in sorted(p for p in packages_dir.iterdir() if p.is_dir()):
        pkg = _load_json(package_dir / "package.json")
        name = pkg.get("name") if pkg else None
        if isinstance(name, str) and name.startswith("@") and "/" in name:
            return name.split("/")[0]
    return None


def _detect_bundle_id(root: Path) -> str | None:
    apps_dir = root / "apps"
    if not apps_dir.is_dir():
        return None
    for app_dir in sorted(p for p in apps_dir.iterdir() if p.is_dir() and p.name.startswith("mobile-")):
        app_json = _load_json(app_dir / "app.json")
        if app_json is None:
            continue
        expo = app_json.get("expo")
        ios = expo.get("ios") if isinstance(expo, dict) else None
        ios_id = ios.get("bundleIdentifier") if isinstance(ios, dict) else None
        if isinstance(ios_id, str) and ios_id:
            parts = ios_id.split(".")
            if "mobile" in parts and parts.index("mobile") > 0:
                return ".".join(parts[: parts.index("mobile")])
            return None
    return None


def read_monorepo_config(root: str | Path) -> MonorepoConfig:
    """Recover scope, project name and bundle ID prefix from a monorepo.

    Raises:
        AddError: If the root ``package.json`` is missing or unreadable.
    """
    root = Path(root)
    root_pkg = _load_json(root / "package.json")
    if root_pkg is None:
        raise AddError(f"Could not read {root / 'package.json'}")

    name = root_pkg.get("name") or ""
    if name.startswith("@") and "/" in name:
        scope, project_name = name.split("/", 1)
    else:
        project_name = name
        scope = _detect_scope_from_packages(root) or f"@{name}"

    return MonorepoConfig(
        root=root,
        scope=scope,
        project_name=project_name,
        bundle_id=_detect_bundle_id(root),
    )


def find_next_port(apps_dir: str | Path, base_port: int = DEFAULT_BASE_PORT) -> int:
    """Return the first port from *base_port* not claimed by an app's ``dev`` script."""
    apps_dir = Path(apps_dir)
    used: set[int] = set()
    if apps_dir.is_dir():
        for app_dir in apps_dir.iterdir():
            pkg = _load_json(app_dir / "package.json") if app_dir.is_dir() else None
            scripts = pkg.get("scripts") if pkg else None
            dev = scripts.get("dev") if isinstance(scripts, dict) else None
            if isinstance(dev, str):
                match = _PORT_RE.search(dev)
                if match:
                    used.add(int(match.group(1)))

    port = base_port
    while port in used:
        port += 1
    return port


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def _output_path(relative: Path) -> str:
    parts = list(relative.parts)
    name = parts[-1][: -len(TEMPLATE_SUFFIX)]
    if name.startswith(DOTFILE_PREFIX):
        name = "." + name[len(DOTFILE_PREFIX):]
    parts[-1] = name
    return "/".join(parts)


def load_template(kind: AppKind | str, template_dir: str | Path | None = None) -> list[TemplateFile]:
    """Load every template file for *kind*, sorted by output path.

    Raises:
        AddError: If no templates exist for *kind*.
    """
    kind = AppKind(kind)
    base = Path(template_dir or _DEFAULT_TEMPLATE_DIR) / kind.value
    files = [
        TemplateFile(
            path=_output_path(path.relative_to(base)),
            content=path.read_text(encoding="utf-8"),
        )
        for path in sorted(base.rglob(f"*{TEMPLATE_SUFFIX}"))
    ]
    if not files:
        raise AddError(f"No templates found for {kind.value} in {base}")
    return sorted(files, key=lambda f: f.path)


def mobile_display_name(name: str) -> str:
    """``admin-panel`` -> ``AdminPanel``."""
    return name[:1].upper() + re.sub(r"-([a-z])", lambda m: m.group(1).upper(), name[1:])


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


async def add_app(
    kind: AppKind | str,
    name: str,
    cwd: str | Path,
    *,
    bundle_id: str | None = None,
    install: bool = True,
    runner: CommandRunner | None = None,
    template_dir: str | Path | None = None,
) -> AddResult:
    """Scaffold a new app of *kind* inside the monorepo containing *cwd*.

    Raises:
        AddError: If no monorepo is found or the app name is invalid.
    """
    kind = AppKind(kind)
    runner = runner or run_command

    root = find_monorepo_root(cwd)
    if root is None:
        raise AddError(
            "Could not find monorepo root (turbo.json + packages/). "
            "Run this command from inside an x4 monorepo."
        )
    config = read_monorepo_config(root)
    console.print(f"  Found monorepo: [bold]{config.project_name}[/bold] ({config.scope})")

    dir_name = f"mobile-{name}" if kind is AppKind.MOBILE_APP else name
    apps_dir = root / "apps"
    target_dir = apps_dir / dir_name

    check = validate_app_name(name, target_dir)
    if not check.valid:
        raise AddError(check.error or "Invalid app name")

    template = load_template(kind, template_dir)
    if kind is AppKind.MOBILE_APP:
        prefix = bundle_id or config.bundle_id or derive_bundle_id(config.project_name)
        replacements = {
            "__SCOPE__": config.scope,
            "__PROJECT_NAME__": config.project_name,
            "__MOBILE_NAME_CLEAN__": mobile_display_name(name),
            "__MOBILE_NAME__": name,
            "__BUNDLE_ID__": f"{prefix}.mobile.{name}",
        }
    else:
        replacements = {
            "__SCOPE__": config.scope,
            "__PROJECT_NAME__": config.project_name,
            "__WEB_NAME__": name,
            "__PORT__": str(find_next_port(apps_dir)),
        }

    files = apply_template(template, target_dir, replacements)

    if kind is AppKind.MOBILE_APP:
        _copy_mobile_assets(apps_dir, target_dir)

    result = AddResult(kind=kind, target_dir=target_dir, files=files)

    if install:
        returncode, _, _ = await runner(INSTALL_COMMAND, cwd=root, timeout=900, capture=True)
        result.installed = returncode == 0
        if not result.installed:
            print_warning(
                f"  Dependency installation failed. Run '{' '.join(INSTALL_COMMAND)}' manually."
            )

    print_success(f"  Added {kind.value}: apps/{dir_name}/")
    print_add_next_steps(kind, dir_name)
    return result


def print_add_next_steps(kind: AppKind, dir_name: str) -> None:
    """Print the commands to start working on a freshly added app."""
    env_file = ".env" if kind is AppKind.MOBILE_APP else ".env.local"
    steps = [f"cd apps/{dir_name}", f"cp .env.example {env_file}", "bun run dev"]
    console.print()
    console.print("[bold]  Next steps:[/bold]")
    for index, command in enumerate(steps, start=1):
        console.print(f"    {index}. [dim]{command}[/dim]", highlight=False)
    console.print()


def _copy_mobile_assets(apps_dir: Path, target_dir: Path) -> None:
    """Reuse the assets of an existing mobile app, or create an empty folder."""
    existing = sorted(
        p
        for p in apps_dir.iterdir()
        if p.is_dir() and p.name.startswith("mobile-") and p != target_dir
    )
    source = existing[0] / "assets" if existing else None
    if source is not None and source.is_dir():
        shutil.copytree(source, target_dir / "assets", dirs_exist_ok=True)
    else:
        (target_dir / "assets").mkdir(parents=True, exist_ok=True)
