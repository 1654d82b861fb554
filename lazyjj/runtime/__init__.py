"""Interactive runtime: input, terminal, app model, rendering and main loop."""

from __future__ import annotations


def run_tui(*args, **kwargs):
    """Lazily import the session bootstrap to keep package imports light."""
    from .loop import run_tui as _run_tui

    return _run_tui(*args, **kwargs)


__all__ = ["run_tui"]
