"""File-backed history stack shared by independent ``ws`` invocations.

Reads never fail: a missing, unreadable, or malformed file loads as empty.
Writes go through a temp file and ``os.replace`` under an advisory lock.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import tempfile
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

from .navigation import DEFAULT_MAX_HISTORY, normalize_history

HISTORY_HEADER = "# wsnav history v1"
LOCK_POLL_SECONDS = 0.02

logger = logging.getLogger(__name__)


def _is_valid_entry(entry: str) -> bool:
    return bool(entry) and entry.isprintable()


def parse_history(text: str, max_entries: int = DEFAULT_MAX_HISTORY) -> tuple[str, ...] | None:
    """Decode file contents; ``None`` means the content is not a history file."""
    lines = text.splitlines()
    if not lines:
        return ()
    if lines[0] != HISTORY_HEADER:
        return None
    entries: list[str] = []
    # Session names may carry leading or trailing spaces; only the newline is framing.
    for entry in lines[1:]:
        if not entry:
            continue
        if not _is_valid_entry(entry):
            return None
        entries.append(entry)
    return normalize_history(entries, max_entries)


def format_history(history: Iterable[str]) -> str:
    lines = [HISTORY_HEADER]
    lines.extend(entry for entry in history if _is_valid_entry(entry))
    return "\n".join(lines) + "\n"


class HistoryStore:
    """Durable history stack at ``path``.

    ``lock_timeout`` bounds how long ``locked()`` waits for another invocation;
    on timeout the caller proceeds unlocked and the last completed save wins.
    """

    def __init__(
        self,
        path: Path,
        max_entries: int = DEFAULT_MAX_HISTORY,
        lock_timeout: float = 0.5,
    ) -> None:
        self.path = Path(path)
        self.max_entries = max(1, max_entries)
        self.lock_timeout = max(0.0, lock_timeout)

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def load(self) -> tuple[str, ...]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("history file %s is unreadable, starting empty: %s", self.path, exc)
            return ()
        history = parse_history(text, self.max_entries)
        if history is None:
            logger.warning("history file %s is malformed, starting empty", self.path)
            return ()
        return history

    def save(self, history: Iterable[str]) -> bool:
        """Atomically replace the history file. Returns ``False`` when the write failed."""
        payload = format_history(normalize_history(history, self.max_entries))
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            logger.warning("could not save history to %s: %s", self.path, exc)
            return False
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
        return True

    @contextlib.contextmanager
    def locked(self) -> Iterator[bool]:
        """Hold the advisory lock for one read-modify-write.

        Yields whether the lock was acquired. Contention past ``lock_timeout``
        is logged and the body still runs.
        """
        lock_fd: int | None = None
        acquired = False
        try:
            try:
                self.lock_path.parent.mkdir(parents=True, exist_ok=True)
                lock_fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
            except OSError as exc:
                logger.warning("cannot open history lock %s: %s", self.lock_path, exc)
            else:
                acquired = self._acquire(lock_fd)
                if not acquired:
                    logger.warning(
                        "history lock %s busy after %.2fs, continuing without it",
                        self.lock_path,
                        self.lock_timeout,
                    )
            yield acquired
        finally:
            if lock_fd is not None:
                if acquired:
                    with contextlib.suppress(OSError):
                        fcntl.flock(lock_fd, fcntl.LOCK_UN)
                os.close(lock_fd)

    def _acquire(self, lock_fd: int) -> bool:
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return True
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    return False
                time.sleep(LOCK_POLL_SECONDS)
            except OSError as exc:
                logger.warning("history lock %s failed: %s", self.lock_path, exc)
                return False
