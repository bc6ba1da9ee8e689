"""Parameterisation of a fetched template.

Two passes:

1. Structured edits: ``package.json`` names and dependency keys, Expo
   ``app.json`` identifiers, and the Electron builder config.
2. Global placeholder replacement over every whitelisted text file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .constants import (
    TEMPLATE_BUNDLE_PREFIX,
    TEMPLATE_NAME,
    TEMPLATE_SCOPE,
)
from .rewrite import SKIP_DIRS, rewrite_tree
from .utils import print_verbose

DEPENDENCY_KEYS = ("dependencies", "devDependencies", "peerDependencies")


def rewrite_package_name(name: str, scope: str, project_name: str) -> str:
    """Map a template package name onto the new project.

    ``@x4/foo`` becomes ``<scope>/foo`` and ``x4-mono`` becomes the project
    name; anything else is returned unchanged.
    """
    prefix = f"{TEMPLATE_SCOPE}/"
    if name.startswith(prefix):
        return f"{scope}/{name[len(prefix):]}"
    if name == TEMPLATE_NAME:
        return project_name
    return name


def placeholder_map(project_name: str, scope: str, bundle_id: str) -> dict[str, str]:
    """Template placeholders and the values that replace them."""
    return {
        f"{TEMPLATE_SCOPE}/": f"{scope}/",
        TEMPLATE_SCOPE: scope,
        TEMPLATE_NAME: project_name,
        f"{TEMPLATE_BUNDLE_PREFIX}.": f"{bundle_id}.",
    }


def write_json(path: Path, data: Any) -> None:
    """Write *data* as 2-space indented JSON with a trailing newline."""
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def read_json(path: Path) -> Any | None:
    """Parse a JSON file, returning ``None`` if it is missing or malformed."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Pass 1: structured edits
# ---------------------------------------------------------------------------


def _find_package_json_files(root: Path) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        if "package.json" in filenames:
            found.append(Path(dirpath) / "package.json")
    return found


def transform_package_json_files(
    root: Path, project_name: str, scope: str, verbose: bool = False
) -> list[Path]:
    """Rewrite ``name`` and dependency keys of every ``package.json``."""
    modified_files: list[Path] = []

    for file in _find_package_json_files(root):
        pkg = read_json(file)
        if not isinstance(pkg, dict):
            continue

        modified = False
        if isinstance(pkg.get("name"), str):
            new_name = rewrite_package_name(pkg["name"], scope, project_name)
            if new_name != pkg["name"]:
                pkg["name"] = new_name
                modified = True

        for key in DEPENDENCY_KEYS:
            deps = pkg.get(key)
            if not isinstance(deps, dict):
                continue
            new_deps: dict[str, Any] = {}
            for dep_name, version in deps.items():
                new_dep = rewrite_package_name(dep_name, scope, project_name)
                new_deps[new_dep] = version
                if new_dep != dep_name:
                    modified = True
            pkg[key] = new_deps

        if modified:
            print_verbose(f"  Transforming {file.relative_to(root).as_posix()}", verbose)
            write_json(file, pkg)
            modified_files.append(file)

    return modified_files


def transform_app_json(
    root: Path, project_name: str, bundle_id: str, verbose: bool = False
) -> list[Path]:
    """Set Expo name, slug, scheme and native identifiers in mobile apps."""
    apps_dir = root / "apps"
    if not apps_dir.is_dir():
        return []

    modified_files: list[Path] = []
    for file in sorted(apps_dir.glob("mobile*/app.json")):
        config = read_json(file)
        expo = config.get("expo") if isinstance(config, dict) else None
        if not isinstance(expo, dict):
            continue

        expo["name"] = project_name
        expo["slug"] = f"{project_name}-mobile"
        expo["scheme"] = project_name
        if isinstance(expo.get("ios"), dict):
            expo["ios"]["bundleIdentifier"] = f"{bundle_id}.mobile"
        if isinstance(expo.get("android"), dict):
            expo["android"]["package"] = f"{bundle_id}.mobile"

        print_verbose(f"  Transforming {file.relative_to(root).as_posix()}", verbose)
        write_json(file, config)
        modified_files.append(file)

    return modified_files


def transform_electron_builder(
    root: Path, project_name: str, bundle_id: str, verbose: bool = False
) -> Path | None:
    """Line-based edit of ``appId`` and ``productName`` in electron-builder.yml."""
    file = root / "apps" / "desktop" / "electron-builder.yml"
    if not file.is_file():
        return None

    lines = []
    for line in file.read_text(encoding="utf-8").split("\n"):
        if line.startswith("appId:"):
            line = f"appId: {bundle_id}.desktop"
        elif line.startswith("productName:"):
            line = f"productName: {project_name}"
        lines.append(line)

    print_verbose("  Transforming apps/desktop/electron-builder.yml", verbose)
    file.write_text("\n".join(lines), encoding="utf-8")
    return file


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def transform_template(
    target_dir: str | Path,
    project_name: str,
    scope: str,
    bundle_id: str,
    verbose: bool = False,
) -> list[Path]:
    """Parameterise the template in *target_dir* for a new project.

    Returns:
        Paths changed by the global text replacement pass.
    """
    root = Path(target_dir)
    transform_package_json_files(root, project_name, scope, verbose)
    transform_app_json(root, project_name, bundle_id, verbose)
    transform_electron_builder(root, project_name, bundle_id, verbose)
    return rewrite_tree(root, placeholder_map(project_name, scope, bundle_id))
