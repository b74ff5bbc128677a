"""Command dispatcher for ``pick``, ``kill``, ``back``, and ``history``.

Reads tmux state, runs the navigation engine under the history lock,
applies the resulting action, and persists history only when it changed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Protocol

from . import navigation
from .history import HistoryStore
from .navigation import NavigationState, Outcome
from .tmux import AdapterError, SessionInfo

PICK_PROMPT = "> "
KILL_PROMPT = "kill> "

MSG_NO_PREVIOUS = "No previous session in history"
MSG_NO_SESSIONS_TO_KILL = "No sessions to kill"
MSG_NO_SESSIONS_REMAIN = "No sessions remain"

logger = logging.getLogger(__name__)


class SessionDirectory(Protocol):
    def list_sessions(self) -> list[SessionInfo]: ...

    def active_session(self) -> str | None: ...

    def switch_to(self, name: str) -> bool: ...

    def switch_blocks(self) -> bool: ...

    def destroy(self, name: str) -> bool: ...


@dataclass(frozen=True)
class CommandDeps:
    """Collaborators a command needs; tests swap in fakes."""

    directory: SessionDirectory
    store: HistoryStore
    select: Callable[[Sequence[str], str], str | None]


@dataclass(frozen=True)
class CommandResult:
    """What the CLI should report. ``message`` goes to stderr when set."""

    outcome: Outcome | None = None
    message: str | None = None
    lines: tuple[str, ...] = ()

    @property
    def no_sessions_remain(self) -> bool:
        return self.outcome is not None and self.outcome.action.no_sessions_remain


def _read_directory(directory: SessionDirectory) -> tuple[list[SessionInfo], str | None]:
    sessions = directory.list_sessions()
    return sessions, directory.active_session()


def _snapshot(deps: CommandDeps) -> NavigationState:
    sessions, active = _read_directory(deps.directory)
    return NavigationState.build((info.name for info in sessions), active, deps.store.load())


def _apply(directory: SessionDirectory, outcome: Outcome) -> None:
    action = outcome.action
    # Never leave the client without a session: switch away before destroying.
    if action.switch_to is not None:
        if not directory.switch_to(action.switch_to):
            raise AdapterError(f"session {action.switch_to!r} disappeared before switching")
    if action.destroy is not None:
        if not directory.destroy(action.destroy):
            logger.info("session %r was already gone", action.destroy)


def _run_locked(deps: CommandDeps, decide: Callable[[NavigationState], Outcome]) -> Outcome:
    with deps.store.locked():
        state = _snapshot(deps)
        outcome = decide(state)
        logger.debug(
            "active=%r history=%r -> action=%r history=%r",
            state.active,
            state.history,
            outcome.action,
            outcome.history,
        )
        # An attach holds the terminal until detach: persist and unlock before it.
        deferred = outcome.action.switch_to is not None and deps.directory.switch_blocks()
        if not deferred:
            _apply(deps.directory, outcome)
        if outcome.history_changed:
            deps.store.save(outcome.history)
    if deferred:
        _apply(deps.directory, outcome)
    return outcome


def _candidates(deps: CommandDeps) -> list[str]:
    sessions, active = _read_directory(deps.directory)
    state = NavigationState.build((info.name for info in sessions), active, deps.store.load())
    last_attached = {info.name: info.last_attached for info in sessions}
    return navigation.pick_candidates(state, last_attached)


def run_pick(deps: CommandDeps) -> CommandResult:
    candidates = _candidates(deps)
    if not candidates:
        return CommandResult(message="No sessions to pick from")
    # The picker may wait on the user for a long time; keep it outside the lock.
    selected = deps.select(candidates, PICK_PROMPT)
    if selected is None:
        return CommandResult()
    max_entries = deps.store.max_entries
    return CommandResult(outcome=_run_locked(deps, lambda state: navigation.pick(state, selected, max_entries)))


def run_back(deps: CommandDeps) -> CommandResult:
    outcome = _run_locked(deps, navigation.back)
    if outcome.action.is_noop:
        return CommandResult(outcome=outcome, message=MSG_NO_PREVIOUS)
    return CommandResult(outcome=outcome)


def run_kill(deps: CommandDeps, target: str | None = None) -> CommandResult:
    if target is None:
        candidates = _candidates(deps)
        if not candidates:
            return CommandResult(message=MSG_NO_SESSIONS_TO_KILL)
        target = deps.select(candidates, KILL_PROMPT)
        if target is None:
            return CommandResult()
    elif not deps.directory.list_sessions():
        return CommandResult(message=MSG_NO_SESSIONS_TO_KILL)

    outcome = _run_locked(deps, lambda state: navigation.kill(state, target))
    if outcome.action.no_sessions_remain:
        return CommandResult(outcome=outcome, message=MSG_NO_SESSIONS_REMAIN)
    return CommandResult(outcome=outcome)


def run_history(deps: CommandDeps) -> CommandResult:
    """List reachable history, newest first. Read-only: pruning is not saved."""
    state = _snapshot(deps)
    live_history = navigation.prune_history(state.history, state.live)
    lines = tuple(entry for entry in reversed(live_history) if entry != state.active)
    return CommandResult(lines=lines)
