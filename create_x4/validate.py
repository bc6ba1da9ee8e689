"""Validation of user-supplied project metadata.

Every validator is synchronous and returns a :class:`ValidationResult`
instead of raising.  Only :func:`validate_target_dir` and
:func:`validate_app_name` touch the filesystem (an existence check).
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel

from .constants import MAX_PROJECT_NAME_LENGTH, NPM_RESERVED_NAMES

KEBAB_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
SCOPE_RE = re.compile(r"^@[a-z][a-z0-9]*(-[a-z0-9]+)*$")
BUNDLE_ID_RE = re.compile(r"^[a-z][a-z0-9]*(\.[a-z][a-z0-9]*)+$")
APP_NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")


class ValidationResult(BaseModel):
    """Outcome of a validation check."""

    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)

    def __bool__(self) -> bool:
        return self.valid


def validate_project_name(name: str) -> ValidationResult:
    """Check that *name* is a usable npm package / directory name."""
    if not name:
        return ValidationResult.fail("Project name is required.")

    if len(name) > MAX_PROJECT_NAME_LENGTH:
        return ValidationResult.fail(
            f"Project name must be {MAX_PROJECT_NAME_LENGTH} characters or fewer."
        )

    if name in NPM_RESERVED_NAMES:
        return ValidationResult.fail(f'"{name}" is a reserved name.')

    if not KEBAB_CASE_RE.match(name):
        return ValidationResult.fail(
            "Project name must be lowercase kebab-case (e.g., my-app)."
        )

    return ValidationResult.ok()


def validate_scope(scope: str) -> ValidationResult:
    """Check that *scope* looks like ``@my-org``."""
    if not scope.startswith("@"):
        return ValidationResult.fail("Scope must start with @ (e.g., @my-org).")

    if not SCOPE_RE.match(scope):
        return ValidationResult.fail(
            "Scope must be lowercase kebab-case (e.g., @my-org)."
        )

    return ValidationResult.ok()


def validate_bundle_id(bundle_id: str) -> ValidationResult:
    """Check that *bundle_id* is lowercase reverse-domain notation."""
    if not BUNDLE_ID_RE.match(bundle_id):
        return ValidationResult.fail(
            "Bundle ID must be reverse-domain notation (e.g., com.myapp). "
            "Only lowercase letters and numbers, at least two segments."
        )

    return ValidationResult.ok()


def validate_target_dir(name: str, cwd: str | Path) -> ValidationResult:
    """Fail if ``cwd/name`` already exists."""
    target = (Path(cwd) / name).resolve()
    if target.exists():
        return ValidationResult.fail(
            f'Directory "{name}" already exists. '
            "Choose a different name or delete the existing directory."
        )

    return ValidationResult.ok()


def validate_app_name(name: str, target_dir: str | Path) -> ValidationResult:
    """Validate the name of an app added to an existing monorepo."""
    if not APP_NAME_RE.match(name):
        return ValidationResult.fail(
            "Name must be kebab-case (lowercase letters, numbers, hyphens)."
        )
    if Path(target_dir).exists():
        return ValidationResult.fail(f"Directory already exists: {target_dir}")

    return ValidationResult.ok()


def derive_scope(name: str) -> str:
    """Default npm scope for a project: ``my-app`` -> ``@my-app``."""
    return f"@{name}"


def derive_bundle_id(name: str) -> str:
    """Default bundle ID for a project: ``my-app`` -> ``com.myapp``.

    Hyphens are dropped because Java package segments cannot contain them.
    """
    return f"com.{name.replace('-', '')}"
