"""Long-press toggle of the helper overlay.

A short press of the helper key flips the overlay; holding it shows the
overlay only while held. Entering the mode shows the overlay after a delay.
The delayed enable runs on a timer thread, so every state change happens
under a lock and a superseded timer can never fire its callback.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .config import HelperConfig
from .logging_utils import get_logger

logger = get_logger('improveway.helpers')

__all__ = ['CancellableTask', 'HelpersToggle']


class CancellableTask:
    """Run ``callback`` once after ``delay`` seconds unless cancelled first.

    ``cancel()`` is final: after it returns the callback will not start,
    even if the timer already expired and is waiting for the lock.
    """

    def __init__(self, delay: float, callback: Callable[[], None],
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self._lock = threading.Lock()
        self._cancelled = False
        self._fired = False
        self._callback = callback
        self._timer = timer_factory(delay, self._run)
        self._timer.daemon = True

    def start(self) -> 'CancellableTask':
        self._timer.start()
        return self

    def _run(self) -> None:
        with self._lock:
            if self._cancelled or self._fired:
                return
            self._fired = True
        self._callback()

    def cancel(self) -> bool:
        """Cancel the task; returns False when the callback already ran."""
        with self._lock:
            self._cancelled = True
            fired = self._fired
        self._timer.cancel()
        return not fired

    @property
    def fired(self) -> bool:
        return self._fired


class HelpersToggle:
    """Tracks whether the helper overlay is shown.

    Parameters
    ----------
    config : HelperConfig
        ``long_keypress_time`` separates a tap from a hold (seconds).
    redraw : callable, optional
        Invoked after every visible change; may run on the timer thread.
    clock : callable
        Monotonic time source in seconds.
    task_factory : callable
        ``(delay, callback) -> CancellableTask``; tests inject a manual one.
    """

    def __init__(self, config: Optional[HelperConfig] = None, redraw: Optional[Callable[[], None]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 task_factory: Callable[[float, Callable[[], None]], CancellableTask] = CancellableTask):
        self.config = config or HelperConfig()
        self._redraw = redraw
        self._clock = clock
        self._task_factory = task_factory
        self._lock = threading.RLock()
        self._generation = 0
        self._task: Optional[CancellableTask] = None
        self.enabled = False
        self.use_original = False
        self.expert = False
        self._keypress_time: Optional[float] = None
        self._enabled_before_keypress = False

    def _request_redraw(self) -> None:
        if self._redraw is not None:
            self._redraw()

    def _cancel_pending(self) -> None:
        # caller holds the lock
        self._generation += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def enter_mode(self) -> None:
        """Hide helpers and schedule showing them after the long-press delay."""
        with self._lock:
            if not self.expert:
                return
            self.enabled = False
            self._keypress_time = None
            self._cancel_pending()
            generation = self._generation
            self._task = self._task_factory(self.config.long_keypress_time,
                                            lambda: self._delayed_enable(generation))
            self._task.start()

    def exit_mode(self) -> None:
        with self._lock:
            self._cancel_pending()

    def _delayed_enable(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("stale helper timer ignored (gen %d != %d)", generation, self._generation)
                return
            self.enabled = True
            self.use_original = True
            self._task = None
        self._request_redraw()

    def key_pressed(self) -> None:
        with self._lock:
            if not self.expert:
                return
            self._keypress_time = self._clock()
            self._enabled_before_keypress = self.enabled
            self.enabled = True
            self.use_original = True
        self._request_redraw()

    def key_released(self) -> None:
        with self._lock:
            if not self.expert:
                return
            self._cancel_pending()
            now = self._clock()
            if self._keypress_time is None:
                # released the key that entered the mode
                self.enabled = False
            elif now - self._keypress_time > self.config.long_keypress_time:
                self.enabled = self._enabled_before_keypress
            else:
                self.enabled = not self._enabled_before_keypress
            self.use_original = False
        self._request_redraw()

    def expert_changed(self, expert: bool) -> None:
        changed = False
        with self._lock:
            self.expert = bool(expert)
            if not self.expert:
                self._cancel_pending()
                if self.enabled:
                    self.enabled = False
                    changed = True
        if changed:
            self._request_redraw()
