"""Pygments colouring for diff text that arrived without ANSI colour.

jj normally colours its own output; this only kicks in for plain text (for
example when a user config forces ``color = "never"``). Pygments is imported
on first use to keep startup light.
"""

from __future__ import annotations

from .ansi import has_ansi

DEFAULT_STYLE = "monokai"

_PYGMENTS = None
_FORMATTERS: dict[str, object] = {}
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


def _pygments():
    global _PYGMENTS
    if _PYGMENTS is None:
        from pygments import highlight
        from pygments.formatters import TerminalFormatter
        from pygments.lexers import DiffLexer
        from pygments.styles import get_style_by_name
        from pygments.util import ClassNotFound

        _PYGMENTS = (highlight, TerminalFormatter, DiffLexer, get_style_by_name, ClassNotFound)
    return _PYGMENTS


def normalize_style(style: str) -> str:
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE

    _, _, _, get_style_by_name, class_not_found = _pygments()
    try:
        get_style_by_name(style)
    except class_not_found:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter_for_style(style: str):
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        _, terminal_formatter, _, _, _ = _pygments()
        formatter = terminal_formatter(style=style)
        _FORMATTERS[style] = formatter
    return formatter


def colorize_diff(text: str, style: str = DEFAULT_STYLE) -> str:
    """Return ``text`` coloured as a diff unless it already carries colour."""
    if not text or has_ansi(text):
        return text
    highlight, _, diff_lexer, _, _ = _pygments()
    rendered = highlight(text, diff_lexer(), _formatter_for_style(normalize_style(style)))
    if not text.endswith("\n") and rendered.endswith("\n"):
        rendered = rendered[:-1]
    return rendered


__all__ = ["DEFAULT_STYLE", "colorize_diff", "normalize_style"]
