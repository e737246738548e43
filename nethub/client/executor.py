"""
Background Executor

Runs blocking service calls (probes, link checks) on a worker pool and
posts their completion back through the callback dispatcher, so results
are only ever applied on the front end's context.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from nethub.shared.constants import DEFAULT_WORKER_THREADS
from nethub.shared.exceptions import ExecutorError
from nethub.shared.protocols import CallbackDispatcher


logger = logging.getLogger(__name__)


@dataclass
class ExecutorStats:
    """Statistics for background task execution."""
    submitted: int
    completed: int
    failed: int
    pending: int
    average_task_duration: float


class BackgroundExecutor:
    """
    Worker pool whose completions are marshaled through a dispatcher.
    """

    def __init__(self, dispatcher: CallbackDispatcher, max_workers: int = DEFAULT_WORKER_THREADS) -> None:
        """
        Initialize the executor.

        Args:
            dispatcher: Receives the success/error callbacks of finished tasks.
            max_workers: Size of the worker pool.
        """
        self._dispatcher = dispatcher
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="NetHub-Worker"
        )
        self._lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._active_futures: Set[Future] = set()
        self._submitted = 0
        self._completed = 0
        self._failed = 0
        self._total_duration = 0.0

        logger.debug(f"BackgroundExecutor initialized with {max_workers} workers")

    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        **kwargs: Any
    ) -> Future:
        """
        Run ``func(*args, **kwargs)`` on a worker.

        Args:
            func: Blocking callable to run.
            on_success: Posted with the result when ``func`` returns.
            on_error: Posted with the exception when ``func`` raises.

        Returns:
            Future for the task.

        Raises:
            ExecutorError: If the executor has been shut down.
        """
        if self._shutdown_event.is_set():
            raise ExecutorError("Executor is shut down")

        name = getattr(func, '__name__', repr(func))

        def task() -> Any:
            started = time.monotonic()
            try:
                return func(*args, **kwargs)
            finally:
                with self._lock:
                    self._total_duration += time.monotonic() - started

        try:
            future = self._executor.submit(task)
        except RuntimeError as e:
            raise ExecutorError(f"Task submission failed: {e}") from e

        with self._lock:
            self._submitted += 1
            self._active_futures.add(future)

        future.add_done_callback(lambda f: self._task_done(f, name, on_success, on_error))
        logger.debug(f"Task submitted: {name}")
        return future

    def _task_done(
        self,
        future: Future,
        name: str,
        on_success: Optional[Callable[[Any], None]],
        on_error: Optional[Callable[[BaseException], None]]
    ) -> None:
        with self._lock:
            self._active_futures.discard(future)

        if future.cancelled():
            logger.debug(f"Task cancelled: {name}")
            return

        error = future.exception()
        if error is None:
            with self._lock:
                self._completed += 1
            if on_success is not None:
                self._dispatcher.post(on_success, future.result())
            return

        with self._lock:
            self._failed += 1
        logger.warning(f"Task {name} failed: {error}")
        if on_error is not None:
            self._dispatcher.post(on_error, error)

    def get_stats(self) -> ExecutorStats:
        """
        Get current execution statistics.

        Returns:
            ExecutorStats snapshot.
        """
        with self._lock:
            finished = self._completed + self._failed
            return ExecutorStats(
                submitted=self._submitted,
                completed=self._completed,
                failed=self._failed,
                pending=len(self._active_futures),
                average_task_duration=self._total_duration / finished if finished else 0.0,
            )

    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks and release the worker pool.

        Args:
            wait: Block until running tasks finish.
        """
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("BackgroundExecutor shut down")
