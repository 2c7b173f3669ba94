# src/ponc_planner/calculation_task.py
from __future__ import annotations

import copy
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from threading import Event
from typing import Dict, List, Optional
import logging

from .calculator import Calculator, CalculatorArgs
from .tree_node import TreeNode

logger = logging.getLogger(__name__)


class TaskState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CalculationTask:
    """
    Runs a Calculator on a background thread.

    - Arguments are deep-copied on construction, so the caller may keep
      editing its own catalog while the task runs.
    - progress is a best-effort estimate in [0, 1], never decreasing.
    - stop() is cooperative: the calculator notices it before its next level
      and returns the inputs unchanged.
    - get_result() never blocks and hands the forest over exactly once.

    Use as a context manager (or call close()) to make sure the worker has
    stopped before the task goes away.
    """

    def __init__(self, args: CalculatorArgs) -> None:
        self._args = copy.deepcopy(args)
        self._stop_event = Event()
        self._progress = 0.0
        self._was_stopped = False
        self._result_taken = False
        self._frontier: Dict[int, float] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None

    def __enter__(self) -> "CalculationTask":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        stop_event = getattr(self, "_stop_event", None)
        if stop_event is not None:
            stop_event.set()

    # Public API --------------------------------------------------------

    def start(self) -> None:
        """Start the calculation and return immediately."""
        if self._future is not None:
            raise RuntimeError("CalculationTask has already been started.")

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ponc-calc")
        self._future = self._executor.submit(self._run)
        logger.info(
            "Calculation started: %d input(s), %d template(s), %d client(s).",
            len(self._args.input_nodes),
            len(self._args.family_nodes),
            self._args.settings.num_clients,
        )

    def stop(self) -> None:
        """Request cooperative cancellation."""
        self._stop_event.set()

    def is_running(self) -> bool:
        return self._future is not None and not self._future.done()

    @property
    def state(self) -> TaskState:
        if self._future is None:
            return TaskState.IDLE
        if not self._future.done():
            return TaskState.RUNNING
        if self._was_stopped:
            return TaskState.CANCELLED
        return TaskState.COMPLETED

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def frontier(self) -> Dict[int, float]:
        """Client count -> minimal total cost, filled in once finished."""
        return dict(self._frontier)

    def get_result(self) -> Optional[List[TreeNode]]:
        """
        The calculated forest, once the task has finished, on the first call
        only. Returns None while running, before start and after the result
        has been taken. Errors raised by the calculator are re-raised here.
        """
        if self._future is None or not self._future.done() or self._result_taken:
            return None
        self._result_taken = True
        return self._future.result()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the calculation finishes. Returns False on timeout."""
        if self._future is None:
            return False
        done, _ = wait([self._future], timeout=timeout)
        return bool(done)

    def close(self) -> None:
        """Request cancellation and block until the worker has stopped."""
        self.stop()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # Internal helpers --------------------------------------------------

    def _run(self) -> List[TreeNode]:
        calculator = Calculator(
            self._args,
            stop_event=self._stop_event,
            progress_callback=self._on_progress,
        )
        self._was_stopped = calculator.was_stopped
        self._frontier = calculator.root_frontier()
        return calculator.take_result()

    def _on_progress(self, value: float) -> None:
        if value > self._progress:
            self._progress = value
