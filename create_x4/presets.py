"""Named bundles of platform exclusions offered as scaffolding shortcuts."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from .constants import Platform


class Preset(BaseModel):
    """A named set of excluded platforms."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    exclude: tuple[Platform, ...] = Field(default=())


PRESETS: dict[str, Preset] = {
    "full-stack": Preset(
        name="Full Stack",
        description="Web + API + Mobile + Desktop + AI + Marketing + Docs",
        exclude=(),
    ),
    "saas": Preset(
        name="SaaS",
        description="Web + API + AI",
        exclude=(Platform.MOBILE, Platform.DESKTOP, Platform.MARKETING, Platform.DOCS),
    ),
    "landing": Preset(
        name="Landing",
        description="Web + API + Marketing",
        exclude=(Platform.MOBILE, Platform.DESKTOP, Platform.DOCS, Platform.AI),
    ),
    "api-only": Preset(
        name="API Only",
        description="Hono + tRPC API server",
        exclude=(
            Platform.MOBILE,
            Platform.DESKTOP,
            Platform.MARKETING,
            Platform.DOCS,
            Platform.AI,
        ),
    ),
}

PRESET_NAMES: list[str] = list(PRESETS)


def get_preset(key: str) -> Preset:
    """Look up a preset by its CLI key (e.g. ``"saas"``).

    Raises:
        ValueError: If *key* is not a known preset.
    """
    try:
        return PRESETS[key]
    except KeyError:
        raise ValueError(
            f'Unknown preset "{key}". Choose one of: {", ".join(PRESET_NAMES)}.'
        ) from None


def resolve_exclusions(
    preset: str | None,
    flags: Iterable[Platform] = (),
) -> list[Platform]:
    """Combine a preset with explicit ``--no-*`` flags.

    Preset exclusions come first, then any flag not already present, so the
    result keeps a stable order and never contains duplicates.
    """
    excluded: list[Platform] = list(get_preset(preset).exclude) if preset else []
    for platform in flags:
        platform = Platform(platform)
        if platform not in excluded:
            excluded.append(platform)
    return excluded
