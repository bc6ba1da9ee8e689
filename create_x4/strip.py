"""Removal of template-maintenance artifacts from a fetched template."""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

from .constants import STRIP_PATHS
from .utils import print_verbose


def remove_path(path: Path) -> bool:
    """Recursively delete *path* if it exists.

    Returns:
        ``True`` if something was removed, ``False`` if the path was absent.
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def strip_non_template_files(
    target_dir: str | Path,
    verbose: bool = False,
    paths: Iterable[str] = STRIP_PATHS,
) -> list[str]:
    """Delete every path in *paths* (relative to *target_dir*) that exists.

    Missing paths are skipped, so running this twice leaves the tree exactly
    as running it once.

    Returns:
        The relative paths that were actually removed.
    """
    root = Path(target_dir)
    removed: list[str] = []
    for relative in paths:
        full = root / relative
        if full.exists() or full.is_symlink():
            print_verbose(f"  Removing {relative}", verbose)
            remove_path(full)
            removed.append(relative)
    return removed
