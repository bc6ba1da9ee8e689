"""Placeholder substitution for template files.

Placeholders are literal strings.  All placeholders are matched in a single
left-to-right pass, preferring the longest placeholder at each position, so
a placeholder that is a prefix of another (``@x4`` vs ``@x4/``) never
shadows it, and text inserted by one replacement is never rewritten by
another.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from .constants import TEXT_REPLACE_EXTENSIONS

SKIP_DIRS = frozenset({"node_modules"})


@dataclass(frozen=True)
class TemplateFile:
    """A generated file: path relative to the target directory, plus content."""

    path: str
    content: str


class TokenReplacer:
    """Replaces every placeholder in a mapping, longest placeholder first."""

    def __init__(self, replacements: Mapping[str, str]) -> None:
        if any(not key for key in replacements):
            raise ValueError("Placeholders must be non-empty strings")
        self.replacements = dict(replacements)
        ordered = sorted(self.replacements, key=len, reverse=True)
        self._pattern = (
            re.compile("|".join(re.escape(key) for key in ordered)) if ordered else None
        )

    def __call__(self, content: str) -> str:
        return self.replace(content)

    def replace(self, content: str) -> str:
        """Return *content* with every placeholder substituted."""
        if self._pattern is None:
            return content
        return self._pattern.sub(lambda m: self.replacements[m.group(0)], content)


# ---------------------------------------------------------------------------
# Explicit file lists
# ---------------------------------------------------------------------------


def apply_template(
    template: Iterable[TemplateFile],
    target_dir: str | Path,
    replacements: Mapping[str, str],
) -> list[Path]:
    """Write *template* into *target_dir* with placeholders substituted.

    Parent directories are created as needed.

    Returns:
        The paths written, in template order.
    """
    replacer = TokenReplacer(replacements)
    root = Path(target_dir)
    written: list[Path] = []

    for file in template:
        out = root / file.path
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(replacer(file.content), encoding="utf-8")
        written.append(out)

    return written


# ---------------------------------------------------------------------------
# Filesystem walk
# ---------------------------------------------------------------------------


def iter_text_files(
    target_dir: str | Path,
    extensions: Iterable[str] = TEXT_REPLACE_EXTENSIONS,
) -> list[Path]:
    """Return files under *target_dir* whose extension is whitelisted.

    ``node_modules`` directories are not descended into.
    """
    suffixes = {f".{ext.lstrip('.')}" for ext in extensions}
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(target_dir):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.suffix in suffixes and not path.is_symlink():
                found.append(path)

    return found


def rewrite_tree(
    target_dir: str | Path,
    replacements: Mapping[str, str],
    extensions: Iterable[str] = TEXT_REPLACE_EXTENSIONS,
) -> list[Path]:
    """Substitute placeholders in every whitelisted text file under *target_dir*.

    Files are only rewritten when their content changes.  Files that are not
    valid UTF-8 are left untouched.

    Returns:
        The paths that were modified.
    """
    replacer = TokenReplacer(replacements)
    changed: list[Path] = []

    for path in iter_text_files(target_dir, extensions):
        try:
            content = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            continue
        updated = replacer(content)
        if updated != content:
            path.write_bytes(updated.encode("utf-8"))
            changed.append(path)

    return changed
