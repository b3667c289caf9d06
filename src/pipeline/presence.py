"""
Presence debouncing.

A single frame without the target is not enough to declare it gone: the
state clears only once the target has been missing for longer than the
grace period, which keeps the indicator from flickering on missed frames.
"""

from __future__ import annotations

import logging

from models.stats import PresenceState


class PresenceTracker:
    def __init__(self, grace_ms: float = 1000.0):
        self.grace_ms = grace_ms
        self._state = PresenceState()

    @property
    def state(self) -> PresenceState:
        return self._state

    def update(self, seen: bool, now: float) -> bool:
        """
        Fold one cycle's observation in. Returns True if ``is_present`` changed.
        """
        previous = self._state.is_present

        if seen:
            self._state = PresenceState(is_present=True, last_seen_at=now)
        elif previous and (
            self._state.last_seen_at is None or now - self._state.last_seen_at > self.grace_ms
        ):
            self._state = PresenceState(is_present=False, last_seen_at=self._state.last_seen_at)

        changed = self._state.is_present != previous
        if changed:
            logging.info("Person entered view" if self._state.is_present else "Person left view")
        return changed

    def reset(self) -> None:
        self._state = PresenceState()
