"""Command-line entry point for create-x4.

Usage::

    create-x4 my-app --preset saas --pm bun
    create-x4 add web-app --name admin
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from . import __version__
from .add import AddError, AppKind, add_app
from .config import DownloadConfig, ScaffoldConfig
from .constants import Platform
from .detect import PackageManager, Probe, detect_package_manager, validate_package_manager
from .presets import PRESET_NAMES, resolve_exclusions
from .scaffold import ScaffoldError, scaffold
from .utils import print_error
from .validate import (
    derive_bundle_id,
    derive_scope,
    validate_bundle_id,
    validate_project_name,
    validate_scope,
    validate_target_dir,
)

_PLATFORM_FLAGS: dict[Platform, str] = {
    Platform.MOBILE: "Exclude Expo mobile app",
    Platform.DESKTOP: "Exclude Electron desktop app",
    Platform.MARKETING: "Exclude marketing site",
    Platform.DOCS: "Exclude docs site",
    Platform.AI: "Exclude AI integration package",
}


class UsageError(Exception):
    """Raised for invalid command-line input."""


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Parser for ``create-x4 <project-name> ...``."""
    parser = argparse.ArgumentParser(
        prog="create-x4",
        description="Scaffold a full-stack TypeScript monorepo with x4",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-x4 my-app\n"
            "  create-x4 my-app --preset saas --pm bun\n"
            "  create-x4 my-app --no-mobile --no-desktop --scope @acme\n"
            "  create-x4 add web-app --name admin\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("project_name", help="Directory and monorepo name (e.g., my-app)")
    parser.add_argument(
        "--scope", "-s",
        default=None,
        help="npm scope for packages (default: @{project-name})",
    )
    parser.add_argument(
        "--bundle-id",
        default=None,
        help="Reverse-domain prefix (default: com.{project-name})",
    )
    parser.add_argument(
        "--preset",
        choices=PRESET_NAMES,
        default=None,
        help="Platform preset to start from",
    )
    for platform, help_text in _PLATFORM_FLAGS.items():
        parser.add_argument(
            f"--no-{platform.value}",
            dest="exclude",
            action="append_const",
            const=platform,
            help=help_text,
        )
    parser.add_argument(
        "--pm",
        default=None,
        help="Package manager: bun|npm|yarn|pnpm (default: auto-detect)",
    )
    parser.add_argument(
        "--git",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Initialize a git repository (default: on)",
    )
    parser.add_argument(
        "--install",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Install dependencies (default: on)",
    )
    parser.add_argument(
        "--branch",
        default=None,
        help="Template branch (default: $CREATE_X4_BRANCH or main)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def build_add_parser() -> argparse.ArgumentParser:
    """Parser for ``create-x4 add <kind> --name NAME``."""
    parser = argparse.ArgumentParser(
        prog="create-x4 add",
        description="Add an app to an existing x4 monorepo",
    )
    parser.add_argument("kind", choices=[k.value for k in AppKind], help="App template")
    parser.add_argument("--name", "-n", required=True, help="App name (kebab-case)")
    parser.add_argument(
        "--bundle-id",
        default=None,
        help="Bundle ID prefix for mobile apps (default: detected from the monorepo)",
    )
    parser.add_argument(
        "--install",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run bun install afterwards (default: on)",
    )
    return parser


# ---------------------------------------------------------------------------
# Request resolution
# ---------------------------------------------------------------------------


async def resolve_config(
    args: argparse.Namespace,
    cwd: Path,
    probe: Probe | None = None,
) -> ScaffoldConfig:
    """Turn parsed arguments into a validated :class:`ScaffoldConfig`.

    Raises:
        UsageError: On the first invalid value.
    """
    name = args.project_name
    for check in (validate_project_name(name), validate_target_dir(name, cwd)):
        if not check.valid:
            raise UsageError(check.error)

    scope = args.scope or derive_scope(name)
    check = validate_scope(scope)
    if not check.valid:
        raise UsageError(check.error)

    bundle_id = args.bundle_id or derive_bundle_id(name)
    check = validate_bundle_id(bundle_id)
    if not check.valid:
        raise UsageError(check.error)

    if args.pm:
        if args.pm not in {p.value for p in PackageManager}:
            raise UsageError(
                f'Unknown package manager "{args.pm}". Use bun, npm, yarn, or pnpm.'
            )
        if not await validate_package_manager(args.pm, probe):
            raise UsageError(
                f"{args.pm} is not installed. Install it first or use a different --pm."
            )
        pm = PackageManager(args.pm)
    else:
        pm = await detect_package_manager(probe=probe)

    return ScaffoldConfig(
        project_name=name,
        scope=scope,
        bundle_id=bundle_id,
        exclude_platforms=resolve_exclusions(args.preset, args.exclude or ()),
        pm=pm,
        git=args.git,
        install=args.install,
        branch=args.branch,
        verbose=args.verbose,
        cwd=cwd,
    )


def load_download_config() -> DownloadConfig:
    """Read template download settings from the environment.

    Raises:
        UsageError: If an environment variable holds an invalid value.
    """
    try:
        return DownloadConfig.from_env()
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise UsageError(f"Invalid download settings: {details}") from exc
    except ValueError as exc:
        raise UsageError(f"Invalid download settings: {exc}") from exc


async def _run_create(args: argparse.Namespace, cwd: Path) -> None:
    download_config = load_download_config()
    config = await resolve_config(args, cwd)
    await scaffold(config, download_config=download_config)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit status."""
    argv = list(sys.argv[1:] if argv is None else argv)
    cwd = Path.cwd()

    try:
        if argv and argv[0] == "add":
            args = build_add_parser().parse_args(argv[1:])
            asyncio.run(
                add_app(
                    args.kind,
                    args.name,
                    cwd,
                    bundle_id=args.bundle_id,
                    install=args.install,
                )
            )
        else:
            args = build_parser().parse_args(argv)
            asyncio.run(_run_create(args, cwd))
    except (UsageError, ScaffoldError, AddError) as exc:
        print_error(str(exc))
        return 1
    except KeyboardInterrupt:
        print_error("Aborted.")
        return 130

    return 0
