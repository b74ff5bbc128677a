"""wsnav: tmux session navigation with a persistent back stack.

The ``ws`` command picks, kills, and steps back between tmux sessions.
``main`` is the programmatic entry point; it imports the CLI on first call.
"""

from __future__ import annotations


def main(*args, **kwargs):
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
