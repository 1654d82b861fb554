"""UI theme definitions and selection helpers.

Themes colour the chrome only (titles, cursor, status bar, help). jj supplies
the colours of log and diff text itself.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    divider: str
    reset: str
    title: str
    title_focused: str
    cursor_marker: str
    details_key: str
    status: str
    status_error: str
    help_heading: str
    help_key: str
    help_dim: str


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reset="\033[0m",
    title="\033[2;38;5;250m",
    title_focused="\033[1;38;5;81m",
    cursor_marker="\033[1;38;5;44m",
    details_key="\033[38;5;214m",
    status="\033[38;5;250m",
    status_error="\033[1;38;5;203m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
    help_dim="\033[2;38;5;250m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    divider="\033[2;38;5;31m",
    reset="\033[0m",
    title="\033[2;38;5;110m",
    title_focused="\033[1;38;5;45m",
    cursor_marker="\033[1;38;5;39m",
    details_key="\033[38;5;117m",
    status="\033[38;5;153m",
    status_error="\033[1;38;5;209m",
    help_heading="\033[1;38;5;45m",
    help_key="\033[38;5;153m",
    help_dim="\033[2;38;5;110m",
)

PLAIN_THEME = UITheme(
    name="plain",
    divider="",
    reset="",
    title="",
    title_focused="",
    cursor_marker="",
    details_key="",
    status="",
    status_error="",
    help_heading="",
    help_key="",
    help_dim="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def next_theme_name(name: str) -> str:
    names = available_theme_names()
    normalized = normalize_theme_name(name)
    return names[(names.index(normalized) + 1) % len(names)]


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]


__all__ = [
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "UITheme",
    "available_theme_names",
    "next_theme_name",
    "normalize_theme_name",
    "resolve_theme",
]
