"""tmux session directory adapter.

Thin wrapper over the ``tmux`` binary: list, inspect, switch, and kill sessions.
Holds no state; every call shells out.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass

TMUX_TIMEOUT_SECONDS = 5.0
LIST_FORMAT = "#{session_name}\t#{session_last_attached}"

_NO_SERVER_MARKERS = ("no server running", "error connecting to", "no sessions")
_NOT_FOUND_MARKERS = ("can't find session", "session not found", "no such session")

logger = logging.getLogger(__name__)


class AdapterError(RuntimeError):
    """tmux is missing, hung, or failed in a way we cannot recover from."""


@dataclass(frozen=True)
class SessionInfo:
    name: str
    last_attached: int = 0


def _exact(name: str) -> str:
    # Without ``=`` tmux resolves targets by prefix and fnmatch.
    return f"={name}"


def _has_marker(stderr: str, markers: tuple[str, ...]) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in markers)


def in_tmux() -> bool:
    return bool(os.environ.get("TMUX"))


def _run_tmux(args: list[str], timeout_seconds: float = TMUX_TIMEOUT_SECONDS) -> subprocess.CompletedProcess[str]:
    logger.debug("tmux %s", " ".join(args))
    try:
        return subprocess.run(
            ["tmux", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise AdapterError("tmux not found on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise AdapterError(f"tmux {args[0]} timed out after {timeout_seconds:g}s") from exc
    except OSError as exc:
        raise AdapterError(f"failed to run tmux: {exc}") from exc


def _failure(proc: subprocess.CompletedProcess[str], args: list[str]) -> AdapterError:
    detail = proc.stderr.strip() or f"exit status {proc.returncode}"
    return AdapterError(f"tmux {args[0]} failed: {detail}")


def _parse_session_line(line: str) -> SessionInfo | None:
    name, _sep, raw_attached = line.partition("\t")
    if not name:
        return None
    try:
        last_attached = int(raw_attached.strip() or 0)
    except ValueError:
        last_attached = 0
    return SessionInfo(name=name, last_attached=last_attached)


class TmuxClient:
    """Session directory backed by a tmux server."""

    def __init__(self, timeout_seconds: float = TMUX_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        return _run_tmux(args, self.timeout_seconds)

    def list_sessions(self) -> list[SessionInfo]:
        """Return live sessions; a server that is not running has none."""
        args = ["list-sessions", "-F", LIST_FORMAT]
        proc = self._run(args)
        if proc.returncode != 0:
            if _has_marker(proc.stderr, _NO_SERVER_MARKERS):
                return []
            raise _failure(proc, args)
        sessions: list[SessionInfo] = []
        for line in proc.stdout.splitlines():
            info = _parse_session_line(line)
            if info is not None:
                sessions.append(info)
        return sessions

    def list_live_sessions(self) -> set[str]:
        return {info.name for info in self.list_sessions()}

    def active_session(self) -> str | None:
        """Name of the session this client is attached to, or ``None`` outside tmux."""
        if not in_tmux():
            return None
        args = ["display-message", "-p", "#{session_name}"]
        proc = self._run(args)
        if proc.returncode != 0:
            raise _failure(proc, args)
        name = proc.stdout.rstrip("\r\n")
        return name or None

    def switch_to(self, name: str) -> bool:
        """Switch (inside tmux) or attach (outside). ``False`` means the session is gone."""
        if in_tmux():
            args = ["switch-client", "-t", _exact(name)]
            proc = self._run(args)
        else:
            args = ["attach-session", "-t", _exact(name)]
            proc = self._attach(args)
        if proc.returncode == 0:
            return True
        if _has_marker(proc.stderr or "", _NOT_FOUND_MARKERS):
            return False
        raise _failure(proc, args)

    def switch_blocks(self) -> bool:
        """Whether ``switch_to`` attaches and so runs until the user detaches."""
        return not in_tmux()

    def _attach(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        # attach-session takes over the terminal and runs until detach.
        logger.debug("tmux %s", " ".join(args))
        try:
            return subprocess.run(["tmux", *args], check=False, text=True, stderr=subprocess.PIPE)
        except FileNotFoundError as exc:
            raise AdapterError("tmux not found on PATH") from exc
        except OSError as exc:
            raise AdapterError(f"failed to run tmux: {exc}") from exc

    def destroy(self, name: str) -> bool:
        """Kill a session. ``False`` means it was already gone."""
        args = ["kill-session", "-t", _exact(name)]
        proc = self._run(args)
        if proc.returncode == 0:
            return True
        if _has_marker(proc.stderr, _NOT_FOUND_MARKERS + _NO_SERVER_MARKERS):
            return False
        raise _failure(proc, args)
