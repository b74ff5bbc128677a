"""Fuzzy single-choice pickers over session names.

``fzf`` runs as a subprocess reading candidates on stdin.
``inquirer`` uses InquirerPy's fuzzy prompt in-process.
A cancelled pick returns ``None``; only broken pickers raise.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from typing import Callable

FZF_CANCEL_CODES = (1, 130)

logger = logging.getLogger(__name__)

Selector = Callable[[Sequence[str], str], "str | None"]


class PickerError(RuntimeError):
    """The picker could not be started or crashed."""


def _only_known(choice: str, items: Sequence[str]) -> str | None:
    return choice if choice in items else None


def select_with_fzf(items: Sequence[str], prompt: str = "> ") -> str | None:
    if not items:
        return None
    if shutil.which("fzf") is None:
        raise PickerError("fzf not found on PATH")
    cmd = [
        "fzf",
        "--height=100%",
        "--layout=reverse",
        "--no-multi",
        "--color=bw",
        f"--prompt={prompt}",
    ]
    try:
        proc = subprocess.run(
            cmd,
            input="\n".join(items) + "\n",
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise PickerError(f"failed to run fzf: {exc}") from exc
    if proc.returncode in FZF_CANCEL_CODES:
        logger.debug("fzf pick cancelled (status %d)", proc.returncode)
        return None
    if proc.returncode != 0:
        raise PickerError(f"fzf exited with status {proc.returncode}")
    return _only_known(proc.stdout.strip("\n"), items)


def select_with_inquirer(items: Sequence[str], prompt: str = "> ") -> str | None:
    if not items:
        return None
    # Imported lazily: prompt_toolkit is slow to load for the fzf path.
    from InquirerPy import inquirer

    try:
        choice = inquirer.fuzzy(
            message=prompt.strip() or ">",
            choices=list(items),
            mandatory=False,
        ).execute()
    except KeyboardInterrupt:
        return None
    if not isinstance(choice, str):
        return None
    return _only_known(choice, items)


_BACKENDS: dict[str, Selector] = {
    "fzf": select_with_fzf,
    "inquirer": select_with_inquirer,
}


def get_selector(name: str) -> Selector:
    try:
        return _BACKENDS[name]
    except KeyError:
        raise PickerError(f"unknown picker backend: {name!r}") from None
