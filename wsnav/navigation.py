"""Session navigation engine: history stack rules and per-command decisions.

This module intentionally has no I/O.
Each command is a pure function of ``NavigationState`` returning an ``Outcome``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

DEFAULT_MAX_HISTORY = 10

logger = logging.getLogger(__name__)


def normalize_history(entries: Iterable[str], max_entries: int = DEFAULT_MAX_HISTORY) -> tuple[str, ...]:
    """Collapse adjacent duplicates and keep only the newest ``max_entries`` ids."""
    out: list[str] = []
    for entry in entries:
        if not entry:
            continue
        if out and out[-1] == entry:
            continue
        out.append(entry)
    overflow = len(out) - max(1, max_entries)
    if overflow > 0:
        del out[:overflow]
    return tuple(out)


def push_history(
    history: tuple[str, ...],
    session: str,
    max_entries: int = DEFAULT_MAX_HISTORY,
) -> tuple[str, ...]:
    """Append ``session`` unless it repeats the tail, dropping the oldest on overflow."""
    return normalize_history((*history, session), max_entries)


def prune_history(history: tuple[str, ...], live: Iterable[str]) -> tuple[str, ...]:
    """Drop ids that are no longer live, re-collapsing neighbours that become adjacent."""
    live_set = frozenset(live)
    kept = [entry for entry in history if entry in live_set]
    if len(kept) != len(history):
        logger.debug("pruned %d stale history entries", len(history) - len(kept))
    return normalize_history(kept, max_entries=max(1, len(kept)))


def _without(history: tuple[str, ...], session: str) -> tuple[str, ...]:
    kept = [entry for entry in history if entry != session]
    return normalize_history(kept, max_entries=max(1, len(kept)))


@dataclass(frozen=True)
class NavigationState:
    """Everything one invocation knows: live ids, the active id, and the stored history."""

    live: frozenset[str]
    active: str | None
    history: tuple[str, ...] = ()

    @classmethod
    def build(cls, live: Iterable[str], active: str | None, history: Iterable[str] = ()) -> NavigationState:
        return cls(live=frozenset(live), active=active or None, history=tuple(history))


@dataclass(frozen=True)
class Action:
    """Side effects the dispatcher must apply, in order: switch first, then destroy."""

    switch_to: str | None = None
    destroy: str | None = None
    no_sessions_remain: bool = False

    @property
    def is_noop(self) -> bool:
        return self.switch_to is None and self.destroy is None


NOOP = Action()


@dataclass(frozen=True)
class Outcome:
    action: Action
    history: tuple[str, ...]
    history_changed: bool


def _outcome(state: NavigationState, action: Action, history: tuple[str, ...]) -> Outcome:
    return Outcome(action=action, history=history, history_changed=history != state.history)


def _nearest_live(
    history: tuple[str, ...],
    live: frozenset[str],
    skip: frozenset[str],
) -> int | None:
    """Index of the most recent history entry that is live and not in ``skip``."""
    for idx in range(len(history) - 1, -1, -1):
        entry = history[idx]
        if entry in live and entry not in skip:
            return idx
    return None


def pick(
    state: NavigationState,
    selected: str | None,
    max_entries: int = DEFAULT_MAX_HISTORY,
) -> Outcome:
    """Switch to ``selected``, remembering the session we are leaving.

    Cancelled selections, re-selecting the active session, and selections that
    vanished between listing and choosing are all no-ops.
    """
    if not selected or selected == state.active:
        return _outcome(state, NOOP, state.history)
    if selected not in state.live:
        logger.info("selected session %r is no longer live", selected)
        return _outcome(state, NOOP, state.history)

    history = prune_history(state.history, state.live)
    if state.active is not None:
        history = push_history(history, state.active, max_entries)
    else:
        history = normalize_history(history, max_entries)
    return _outcome(state, Action(switch_to=selected), history)


def back(state: NavigationState) -> Outcome:
    """Return to the most recent live, non-active session in history.

    The target and everything newer than it is popped. When nothing qualifies
    the whole stack is dropped so later calls do not rescan dead entries.
    """
    skip = frozenset({state.active}) if state.active is not None else frozenset()
    idx = _nearest_live(state.history, state.live, skip)
    if idx is None:
        return _outcome(state, NOOP, ())
    target = state.history[idx]
    return _outcome(state, Action(switch_to=target), state.history[:idx])


def kill(state: NavigationState, target: str | None) -> Outcome:
    """Destroy ``target``, choosing a replacement first when it is the active session.

    ``target`` is removed from history unconditionally, which keeps a repeated
    kill idempotent.
    """
    if not target:
        return _outcome(state, NOOP, state.history)
    if target not in state.live:
        return _outcome(state, NOOP, _without(state.history, target))

    remaining = state.live - {target}
    if target != state.active:
        return _outcome(
            state,
            Action(destroy=target, no_sessions_remain=not remaining),
            _without(state.history, target),
        )

    idx = _nearest_live(state.history, state.live, frozenset({target}))
    if idx is not None:
        fallback = state.history[idx]
        return _outcome(
            state,
            Action(switch_to=fallback, destroy=target),
            _without(state.history[:idx], target),
        )

    if not remaining:
        return _outcome(state, Action(destroy=target, no_sessions_remain=True), ())
    # History is exhausted; any survivor will do, sorted for repeatability.
    return _outcome(state, Action(switch_to=min(remaining), destroy=target), ())


def pick_candidates(
    state: NavigationState,
    last_attached: Mapping[str, int] | None = None,
) -> list[str]:
    """Order live sessions for the picker: history recency, then tmux recency, active last."""
    last_attached = last_attached or {}
    ordered: list[str] = []
    seen: set[str] = set()
    for entry in reversed(state.history):
        if entry in state.live and entry != state.active and entry not in seen:
            ordered.append(entry)
            seen.add(entry)

    rest = [name for name in state.live if name not in seen and name != state.active]
    rest.sort(key=lambda name: (-last_attached.get(name, 0), name))
    ordered.extend(rest)

    if state.active is not None and state.active in state.live:
        ordered.append(state.active)
    return ordered
