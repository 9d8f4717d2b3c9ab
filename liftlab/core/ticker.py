"""Tick scheduler driving the simulation loop in real time.

``TickScheduler`` calls registered callbacks with
``(delta_time_s, total_time_s)`` at a configurable rate. Ticks are delivered
strictly one at a time from a single worker thread: a tick never starts while
the previous tick's callbacks are still running.

By default ``delta_time_s`` is the wall time measured since the previous tick
(so drift and late wake-ups are accounted for). With ``fixed_step=True`` the
nominal interval is reported instead, which is handy when the consumer wants
equal simulation steps regardless of host timing.

``tick_once()`` delivers a single tick synchronously on the caller's thread,
which is how headless runs and tests drive a simulation without wall-clock
waits.

Example::

    scheduler = TickScheduler(ticks_per_second=10)
    handle = scheduler.on_tick(lambda dt, total: print(dt, total))
    scheduler.start()
    ...
    scheduler.pause()
    scheduler.resume()
    handle.remove()
    scheduler.stop()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[float, float], None]
"""Signature of tick callbacks: ``(delta_time_s, total_time_s) -> None``."""

__all__ = [
    "FrameRateMonitor",
    "TickCallback",
    "TickHandle",
    "TickScheduler",
    "format_time",
]


class TickHandle:
    """Detachable registration returned by ``TickScheduler.on_tick``.

    Calling the handle (or ``remove()``) unregisters the callback. Removing
    twice is a no-op.
    """

    __slots__ = ("_scheduler", "_callback", "_removed")

    def __init__(self, scheduler: TickScheduler, callback: TickCallback):
        self._scheduler = scheduler
        self._callback = callback
        self._removed = False

    @property
    def callback(self) -> TickCallback:
        return self._callback

    @property
    def removed(self) -> bool:
        return self._removed

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        self._scheduler._remove_callback(self._callback)

    def __call__(self) -> None:
        self.remove()


class TickScheduler:
    """Controllable timer delivering ticks at ``ticks_per_second``.

    Args:
        ticks_per_second: Target tick rate. Must be > 0.
        fixed_step: Report the nominal interval as ``delta_time`` instead of
            the measured wall time.
        clock: Monotonic time source in seconds.

    Raises:
        ValueError: If ``ticks_per_second`` is not positive.
    """

    def __init__(
        self,
        ticks_per_second: float = 60.0,
        *,
        fixed_step: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ticks_per_second <= 0:
            raise ValueError(f"Tick rate must be positive, got {ticks_per_second}")

        self._interval = 1.0 / ticks_per_second
        self._fixed_step = fixed_step
        self._clock = clock

        self._callbacks: list[TickCallback] = []
        self._active = False
        self._paused = False
        self._total_time = 0.0
        self._last_tick_time = 0.0
        self._ticks_delivered = 0

        self._cond = threading.Condition()
        # Serializes callback delivery between the worker and tick_once()
        self._delivery_lock = threading.RLock()
        self._worker: threading.Thread | None = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin ticking from idle. Total time starts again from zero."""
        with self._cond:
            if self._active:
                return
            self._active = True
            self._paused = False
            self._total_time = 0.0
            self._last_tick_time = self._clock()
            self._generation += 1
            generation = self._generation

            self._worker = threading.Thread(
                target=self._run,
                args=(generation,),
                name=f"liftlab-ticker-{generation}",
                daemon=True,
            )
            self._worker.start()
        logger.info("Ticker started at %.2f ticks/s", self.tick_rate)

    def stop(self) -> None:
        """Halt ticking. Safe to call from inside a tick callback."""
        with self._cond:
            if not self._active:
                return
            self._active = False
            self._paused = False
            self._generation += 1
            worker = self._worker
            self._worker = None
            self._cond.notify_all()

        if worker is not None and worker is not threading.current_thread():
            worker.join()
        logger.info("Ticker stopped after %d ticks (%.2fs)", self._ticks_delivered, self._total_time)

    def pause(self) -> None:
        """Suspend tick delivery, keeping the accumulated total time.

        A tick already in progress finishes normally.
        """
        with self._cond:
            if not self._active:
                return
            self._paused = True
            self._cond.notify_all()
        logger.info("Ticker paused at %.2fs", self._total_time)

    def resume(self) -> None:
        """Continue from a pause. Time spent paused is not counted."""
        with self._cond:
            if not self._active or not self._paused:
                return
            self._paused = False
            self._last_tick_time = self._clock()
            self._cond.notify_all()
        logger.info("Ticker resumed at %.2fs", self._total_time)

    def is_running(self) -> bool:
        return self._active and not self._paused

    def is_paused(self) -> bool:
        return self._paused

    # ------------------------------------------------------------------
    # Rate and time
    # ------------------------------------------------------------------

    @property
    def tick_rate(self) -> float:
        """Current target rate in ticks per second."""
        return 1.0 / self._interval

    @property
    def interval(self) -> float:
        """Nominal seconds between ticks."""
        return self._interval

    def set_tick_rate(self, ticks_per_second: float) -> None:
        """Change the target rate; the next scheduled tick uses the new interval.

        Raises:
            ValueError: If ``ticks_per_second`` is not positive.
        """
        if ticks_per_second <= 0:
            raise ValueError(f"Tick rate must be positive, got {ticks_per_second}")
        with self._cond:
            self._interval = 1.0 / ticks_per_second
            self._cond.notify_all()
        logger.debug("Tick rate set to %.2f ticks/s", ticks_per_second)

    @property
    def total_time(self) -> float:
        """Seconds accumulated over all delivered ticks."""
        return self._total_time

    @property
    def ticks_delivered(self) -> int:
        return self._ticks_delivered

    def reset_time(self) -> None:
        with self._cond:
            self._total_time = 0.0
            self._last_tick_time = self._clock()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_tick(self, callback: TickCallback) -> TickHandle:
        """Register a callback. Callbacks fire in registration order."""
        with self._cond:
            self._callbacks.append(callback)
        return TickHandle(self, callback)

    def clear_callbacks(self) -> None:
        with self._cond:
            self._callbacks.clear()

    def tick_once(self, delta_time: float | None = None) -> None:
        """Deliver one tick synchronously on the calling thread.

        Args:
            delta_time: Seconds to report. Defaults to the nominal interval.
        """
        delta = self._interval if delta_time is None else delta_time
        if delta < 0:
            raise ValueError(f"delta_time must be >= 0, got {delta}")
        with self._cond:
            self._total_time += delta
            total = self._total_time
            callbacks = list(self._callbacks)
        self._deliver(callbacks, delta, total)

    def _remove_callback(self, callback: TickCallback) -> None:
        with self._cond:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self, generation: int) -> None:
        while True:
            with self._cond:
                if not self._active or generation != self._generation:
                    return
                if self._paused:
                    self._cond.wait()
                    continue

                now = self._clock()
                elapsed = now - self._last_tick_time
                remaining = self._interval - elapsed
                if remaining > 0:
                    self._cond.wait(timeout=remaining)
                    continue

                delta = self._interval if self._fixed_step else elapsed
                self._last_tick_time = now
                self._total_time += delta
                total = self._total_time
                callbacks = list(self._callbacks)

            self._deliver(callbacks, delta, total)

    def _deliver(self, callbacks: list[TickCallback], delta: float, total: float) -> None:
        with self._delivery_lock:
            self._ticks_delivered += 1
            for callback in callbacks:
                try:
                    callback(delta, total)
                except Exception:
                    logger.exception("Error in tick callback %r", callback)


# ---------------------------------------------------------------------------
# Timing helpers
# ---------------------------------------------------------------------------


def format_time(seconds: float) -> str:
    """Human-readable duration, e.g. ``"2m 30s"`` or ``"45s"``."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class FrameRateMonitor:
    """Measures achieved ticks per second.

    Call ``tick()`` once per delivered tick; ``fps`` refreshes every
    ``update_interval`` seconds.
    """

    def __init__(self, update_interval: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self._update_interval = update_interval
        self._clock = clock
        self._frame_count = 0
        self._last_time = clock()
        self._fps = 0.0

    def tick(self) -> None:
        self._frame_count += 1
        now = self._clock()
        elapsed = now - self._last_time
        if elapsed >= self._update_interval:
            self._fps = self._frame_count / elapsed
            self._frame_count = 0
            self._last_time = now

    @property
    def fps(self) -> float:
        return round(self._fps, 1)

    def reset(self) -> None:
        self._frame_count = 0
        self._last_time = self._clock()
        self._fps = 0.0
