"""Removal of excluded platforms from a parameterised template.

Each excluded :class:`~create_x4.constants.Platform` loses its app
directories and deploy workflows, plus the references other packages hold to
it: package exports, environment variables, turbo tasks, and (for AI) the
API router wiring.  Every step tolerates files that are already gone, so
filtering is idempotent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from .constants import PLATFORMS, Platform, PlatformSpec
from .strip import remove_path
from .transform import read_json, write_json
from .utils import print_verbose

_AI_IMPORT_RE = re.compile(r"""import\s*\{[^}]*\}\s*from\s*["']\./ai["'];?\n?""")
_AI_ROUTER_RE = re.compile(r"\s*ai:\s*aiRouter,?\n?")
_TRAILING_COMMA_RE = re.compile(r",(\s*\})")
_SHARED_LINT_AI_RE = re.compile(r"\s*ai-types/")


def filter_platforms(
    target_dir: str | Path,
    exclude_platforms: Iterable[Platform | str],
    scope: str,
    mobile_name: str = "main",
    verbose: bool = False,
) -> None:
    """Remove every platform in *exclude_platforms* from *target_dir*."""
    root = Path(target_dir)
    for platform in exclude_platforms:
        platform = Platform(platform)
        print_verbose(f"  Removing {platform.value} platform...", verbose)
        remove_platform(root, platform, scope, mobile_name, verbose)


def remove_platform(
    root: Path,
    platform: Platform,
    scope: str,
    mobile_name: str = "main",
    verbose: bool = False,
) -> None:
    """Remove a single platform and everything that references it."""
    spec: PlatformSpec = PLATFORMS[platform]

    dirs = list(spec.dirs)
    workflows = list(spec.workflows)
    if platform is Platform.MOBILE:
        dirs = [f"apps/mobile-{mobile_name}"]
        workflows = [f"deploy-mobile-{mobile_name}.yml"]

    for relative in dirs:
        if remove_path(root / relative):
            print_verbose(f"    Deleting {relative}/", verbose)

    for workflow in workflows:
        if remove_path(root / ".github" / "workflows" / workflow):
            print_verbose(f"    Deleting .github/workflows/{workflow}", verbose)

    auth_dir = root / "packages" / "auth"
    if spec.auth_exports:
        remove_package_exports(auth_dir / "package.json", spec.auth_exports, verbose)
    for relative in spec.auth_files:
        if remove_path(auth_dir / relative):
            print_verbose(f"    Deleting packages/auth/{relative}", verbose)

    shared_dir = root / "packages" / "shared"
    for relative in spec.shared_dirs:
        if remove_path(shared_dir / relative):
            print_verbose(f"    Deleting packages/shared/{relative}/", verbose)
    if spec.shared_exports:
        remove_package_exports(shared_dir / "package.json", spec.shared_exports, verbose)

    if spec.env_vars:
        remove_turbo_env_vars(root, spec.env_vars, verbose)
        remove_env_example_vars(root, spec.env_vars, verbose)

    if spec.turbo_tasks:
        remove_turbo_tasks(root, spec.turbo_tasks, verbose)

    if platform is Platform.AI:
        remove_ai_integration(root, scope, spec, verbose)


# ---------------------------------------------------------------------------
# JSON / env edits
# ---------------------------------------------------------------------------


def remove_package_exports(file: Path, exports: Iterable[str], verbose: bool = False) -> bool:
    """Drop *exports* keys from a ``package.json`` ``exports`` map."""
    pkg = read_json(file)
    if not isinstance(pkg, dict) or not isinstance(pkg.get("exports"), dict):
        return False

    modified = False
    for export in exports:
        if export in pkg["exports"]:
            del pkg["exports"][export]
            modified = True
            print_verbose(f'    Removed export "{export}" from {file.name}', verbose)

    if modified:
        write_json(file, pkg)
    return modified


def remove_turbo_env_vars(root: Path, env_vars: Iterable[str], verbose: bool = False) -> bool:
    """Drop *env_vars* from ``turbo.json`` ``globalEnv``."""
    file = root / "turbo.json"
    turbo = read_json(file)
    if not isinstance(turbo, dict) or not isinstance(turbo.get("globalEnv"), list):
        return False

    names = set(env_vars)
    before = len(turbo["globalEnv"])
    turbo["globalEnv"] = [v for v in turbo["globalEnv"] if v not in names]
    if len(turbo["globalEnv"]) == before:
        return False

    print_verbose(f"    Removed {', '.join(sorted(names))} from turbo.json globalEnv", verbose)
    write_json(file, turbo)
    return True


def remove_turbo_tasks(root: Path, tasks: Iterable[str], verbose: bool = False) -> bool:
    """Drop *tasks* from ``turbo.json`` ``tasks``."""
    file = root / "turbo.json"
    turbo = read_json(file)
    if not isinstance(turbo, dict) or not isinstance(turbo.get("tasks"), dict):
        return False

    modified = False
    for task in tasks:
        if task in turbo["tasks"]:
            del turbo["tasks"][task]
            modified = True
            print_verbose(f'    Removed task "{task}" from turbo.json', verbose)

    if modified:
        write_json(file, turbo)
    return modified


def remove_env_example_vars(root: Path, env_vars: Iterable[str], verbose: bool = False) -> bool:
    """Drop ``VAR=`` / ``VAR =`` lines from ``.env.example``."""
    file = root / ".env.example"
    if not file.is_file():
        return False

    names = list(env_vars)
    lines = file.read_text(encoding="utf-8").split("\n")
    kept = [
        line
        for line in lines
        if not any(line.startswith(f"{v}=") or line.startswith(f"{v} =") for v in names)
    ]
    if len(kept) == len(lines):
        return False

    print_verbose(f"    Removed {', '.join(names)} from .env.example", verbose)
    file.write_text("\n".join(kept), encoding="utf-8")
    return True


# ---------------------------------------------------------------------------
# AI integration
# ---------------------------------------------------------------------------


def remove_ai_integration(
    root: Path, scope: str, spec: PlatformSpec, verbose: bool = False
) -> None:
    """Unwire the AI router, its dependency, and the AI web pages."""
    router_name = spec.api_router_import or "ai"
    routers_dir = root / "apps" / "api" / "src" / "routers"

    router_index = routers_dir / "index.ts"
    if router_index.is_file():
        content = router_index.read_text(encoding="utf-8")
        updated = _AI_IMPORT_RE.sub("", content)
        updated = _AI_ROUTER_RE.sub("\n", updated)
        updated = _TRAILING_COMMA_RE.sub(r"\1", updated)
        if updated != content:
            router_index.write_text(updated, encoding="utf-8")
            print_verbose("    Removed AI router from apps/api/src/routers/index.ts", verbose)

    if remove_path(routers_dir / router_name):
        print_verbose(f"    Deleted apps/api/src/routers/{router_name}/", verbose)
    if remove_path(routers_dir / f"{router_name}.ts"):
        print_verbose(f"    Deleted apps/api/src/routers/{router_name}.ts", verbose)

    api_pkg_file = root / "apps" / "api" / "package.json"
    api_pkg = read_json(api_pkg_file)
    if isinstance(api_pkg, dict):
        ai_pkg_name = f"{scope}/ai-integrations"
        modified = False
        for key in ("dependencies", "devDependencies"):
            deps = api_pkg.get(key)
            if isinstance(deps, dict) and ai_pkg_name in deps:
                del deps[ai_pkg_name]
                modified = True
                print_verbose(f"    Removed {ai_pkg_name} from apps/api/package.json", verbose)
        if modified:
            write_json(api_pkg_file, api_pkg)

    for page in spec.web_pages:
        if remove_path(root / "apps" / "web" / page):
            print_verbose(f"    Deleted apps/web/{page}/", verbose)

    shared_pkg_file = root / "packages" / "shared" / "package.json"
    shared_pkg = read_json(shared_pkg_file)
    scripts = shared_pkg.get("scripts") if isinstance(shared_pkg, dict) else None
    if isinstance(scripts, dict) and isinstance(scripts.get("lint"), str):
        lint = _SHARED_LINT_AI_RE.sub("", scripts["lint"], count=1)
        if lint != scripts["lint"]:
            scripts["lint"] = lint
            write_json(shared_pkg_file, shared_pkg)
