"""
Leading-edge alert throttle.

Turns a stream of "person detected" events into a bounded rate of visible
alerts. The first qualifying call fires at once; every call inside the
cooldown window after a fire is dropped, never deferred.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from .audio import AudioNotifier


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


# call_later(delay_seconds, callback) -> handle
CallLater = Callable[[float, Callable[[], None]], TimerHandle]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def default_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule on the running event loop, or on a timer thread outside one."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback)


@dataclass(frozen=True)
class AlertThrottleConfig:
    cooldown_ms: float = 10000.0
    display_ms: float = 2000.0


class AlertThrottle:
    """
    Rate limiter for the person alert.

    notify() fires when no alert has fired yet or when at least
    ``cooldown_ms`` elapsed since the last fire. Firing plays the audio cue
    once, shows the notification, and schedules its dismissal after
    ``display_ms``.

    Args:
        notifier: Audio collaborator, or None to alert visually only.
        config: Cooldown and display durations.
        clock: Millisecond clock used when notify() gets no timestamp.
        call_later: Scheduler for the dismissal timer.
        on_change: Called with the new visibility whenever it changes.
    """

    def __init__(
        self,
        notifier: Optional[AudioNotifier] = None,
        config: Optional[AlertThrottleConfig] = None,
        clock: Callable[[], float] = monotonic_ms,
        call_later: CallLater = default_call_later,
        on_change: Optional[Callable[[bool], Any]] = None,
    ):
        self.notifier = notifier
        self.config = config or AlertThrottleConfig()
        self._clock = clock
        self._call_later = call_later
        self._on_change = on_change
        self._last_fired_at: Optional[float] = None
        self._visible = False
        self._dismiss_handle: Optional[TimerHandle] = None
        self._fire_count = 0

    @property
    def last_fired_at(self) -> Optional[float]:
        return self._last_fired_at

    @property
    def notification_visible(self) -> bool:
        return self._visible

    @property
    def fire_count(self) -> int:
        return self._fire_count

    def notify(self, now: Optional[float] = None) -> bool:
        """
        Report a detection. Returns True if this call fired the alert.
        """
        if now is None:
            now = self._clock()

        if self._last_fired_at is not None and now - self._last_fired_at < self.config.cooldown_ms:
            return False

        self._last_fired_at = now
        self._fire_count += 1
        logging.info(f"Person alert fired (#{self._fire_count})")

        if self.notifier is not None:
            try:
                self.notifier.play()
            except Exception as e:
                logging.warning(f"Audio alert failed: {e}")

        self._show()
        return True

    def close(self) -> None:
        """Cancel a pending dismissal and hide the notification."""
        self._cancel_dismiss()
        self._set_visible(False)

    def _show(self) -> None:
        self._cancel_dismiss()
        self._set_visible(True)
        self._dismiss_handle = self._call_later(self.config.display_ms / 1000.0, self._dismiss)

    def _dismiss(self) -> None:
        self._dismiss_handle = None
        self._set_visible(False)

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        if self._on_change is not None:
            try:
                self._on_change(visible)
            except Exception as e:
                logging.warning(f"Notification listener error: {e}")
