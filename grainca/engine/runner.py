"""SimulationRunner: drives a Space from a background thread.

The runner thread is the only writer of the space while it runs. Steps run
strictly one after another; after each completed step every subscribed
observer is called synchronously, in subscription order, before the loop
moves on. Pausing is reversible, cancelling is not.
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, List, Optional
import logging

from ..config import IDLE_POLL_INTERVAL
from ..core.grid import Grid
from .space import Space

logger = logging.getLogger(__name__)

Observer = Callable[[], None]
ErrorHandler = Callable[[BaseException], None]


class RunnerState(Enum):
    """Lifecycle of a runner."""

    IDLE = "idle"            # thread not started
    RUNNING = "running"
    PAUSED = "paused"
    CANCELLED = "cancelled"  # stopped for good, by request or max_steps
    FAILED = "failed"        # a step raised; see runner.error


class SimulationRunner:
    """Run/pause/cancel execution loop around a `Space`.

    Provides thread-safe access to:
      - grid snapshots taken at step boundaries
      - the step counter and lifecycle state
      - control commands (start / resume / pause / cancel)
    """

    def __init__(self, space: Space, *, poll_interval: float = IDLE_POLL_INTERVAL,
                 max_steps: Optional[int] = None) -> None:
        """Initialize runner; the thread is created lazily by `start`.

        Args:
            space: Simulation space to drive
            poll_interval: Seconds to sleep between checks while paused
            max_steps: Stop permanently after this many steps (None = unbounded)
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be >= 1")

        self.space = space
        self.poll_interval = poll_interval
        self.max_steps = max_steps
        self.error: Optional[BaseException] = None

        self._observers: List[Observer] = []
        self._error_handlers: List[ErrorHandler] = []
        self._step_lock = threading.Lock()
        self._run_lock = threading.RLock()  # held across step + notify
        self._working = threading.Event()
        self._stay_alive = threading.Event()
        self._stay_alive.set()
        self._thread: Optional[threading.Thread] = None
        self._steps_completed = 0
        self._state = RunnerState.IDLE

    # -- public properties --

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def working(self) -> bool:
        return self._working.is_set()

    @property
    def steps_completed(self) -> int:
        return self._steps_completed

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -- observers --

    def subscribe(self, observer: Observer) -> None:
        """Call `observer()` after every completed step."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def on_error(self, handler: ErrorHandler) -> None:
        """Call `handler(exc)` if a step fails."""
        self._error_handlers.append(handler)

    # -- snapshot access --

    def snapshot(self) -> Grid:
        """Copy of the grid as of the last completed step."""
        with self._step_lock:
            return self.space.snapshot()

    # -- lifecycle --

    def start(self) -> None:
        """Start the loop thread, or resume it if already started.

        Raises:
            RuntimeError: If the runner was cancelled or failed
        """
        if self._state in (RunnerState.CANCELLED, RunnerState.FAILED):
            raise RuntimeError(f"Cannot start a runner in state {self._state.value}")

        if self._thread is None:
            self._working.set()
            self._state = RunnerState.RUNNING
            self._thread = threading.Thread(target=self._run_loop, name="grainca-runner", daemon=True)
            self._thread.start()
            logger.info(f"Runner started ({self.space.task_type.value})")
        else:
            self.resume()

    def resume(self) -> None:
        if self._state is RunnerState.PAUSED:
            self._state = RunnerState.RUNNING
        self._working.set()
        logger.info(f"Runner resumed at step {self._steps_completed}")

    def pause(self) -> None:
        self._working.clear()
        if self._state is RunnerState.RUNNING:
            self._state = RunnerState.PAUSED
        logger.info(f"Runner paused at step {self._steps_completed}")

    def cancel(self, timeout: Optional[float] = None) -> None:
        """Stop the loop permanently after the current step or sleep.

        Args:
            timeout: Seconds to wait for the thread to exit (None = wait)
        """
        self._stay_alive.clear()
        self._working.clear()
        if self._state is not RunnerState.FAILED:
            self._state = RunnerState.CANCELLED
        self.join(timeout)
        logger.info(f"Runner cancelled after {self._steps_completed} steps")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    # -- internals --

    def run_once(self) -> int:
        """Run one step under the step lock and notify observers.

        Safe to call from any thread: each step finishes notifying its
        observers before the next step starts.

        Returns:
            Number of cells changed by the step
        """
        with self._run_lock:
            with self._step_lock:
                changed = self.space.step()
                self._steps_completed += 1
            self._notify()
        return changed

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer()

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.debug("Runner thread started")

        while self._stay_alive.is_set():
            if not self._working.is_set():
                time.sleep(self.poll_interval)
                continue

            try:
                self.run_once()
            except Exception as exc:
                self._fail(exc)
                break

            if self.max_steps is not None and self._steps_completed >= self.max_steps:
                self._stay_alive.clear()
                self._working.clear()
                self._state = RunnerState.CANCELLED
                logger.info(f"Runner reached max_steps={self.max_steps}")

        logger.debug("Runner thread exited")

    def _fail(self, exc: Exception) -> None:
        logger.exception(f"Step {self._steps_completed + 1} failed; runner stopped")
        self.error = exc
        self._state = RunnerState.FAILED
        self._working.clear()
        self._stay_alive.clear()
        for handler in list(self._error_handlers):
            handler(exc)
