"""
Callback Dispatcher

Marshals callbacks from background threads onto the single-threaded
front-end context. Network threads ``post``; the owner thread drains the
queue with ``process_pending``.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from nethub.shared.protocols import CallbackDispatcher as CallbackDispatcherProtocol


logger = logging.getLogger(__name__)


@dataclass
class DispatcherStats:
    """Counters for dispatcher activity."""
    posted: int = 0
    executed: int = 0
    failed: int = 0
    dropped: int = 0


class CallbackDispatcher(CallbackDispatcherProtocol):
    """
    FIFO hand-off queue between worker threads and the owner thread.
    
    Callbacks run in the order they were posted, one at a time, on whichever
    thread calls ``process_pending`` (normally the thread that created the
    dispatcher).
    """
    
    def __init__(self) -> None:
        self._queue: "queue.Queue[Tuple[Callable[..., Any], Tuple[Any, ...]]]" = queue.Queue()
        self._owner_thread_id = threading.get_ident()
        self._shutdown_event = threading.Event()
        self._stats = DispatcherStats()
        self._stats_lock = threading.Lock()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """
        Queue a callback for the owner thread. Safe from any thread.
        
        Args:
            callback: Callable to run on the owner thread.
            *args: Positional arguments for the callable.
        """
        if self._shutdown_event.is_set():
            with self._stats_lock:
                self._stats.dropped += 1
            logger.debug(f"Dropping callback {getattr(callback, '__name__', callback)!r} after shutdown")
            return

        with self._stats_lock:
            self._stats.posted += 1
        self._queue.put((callback, args))
    
    def process_pending(self, max_items: Optional[int] = None, timeout: float = 0.0) -> int:
        """
        Run queued callbacks on the calling thread.
        
        Args:
            max_items: Upper bound on callbacks to run; None drains the queue.
            timeout: Seconds to wait for the first callback if none is queued.
            
        Returns:
            Number of callbacks executed.
        """
        executed = 0
        block = timeout > 0
        
        while max_items is None or executed < max_items:
            try:
                if block:
                    callback, args = self._queue.get(timeout=timeout)
                    block = False
                else:
                    callback, args = self._queue.get_nowait()
            except queue.Empty:
                break
            
            try:
                callback(*args)
                with self._stats_lock:
                    self._stats.executed += 1
            except Exception:
                with self._stats_lock:
                    self._stats.failed += 1
                logger.exception(f"Dispatched callback {getattr(callback, '__name__', callback)!r} failed")
            executed += 1
        
        return executed
    
    def pending_count(self) -> int:
        """Approximate number of queued callbacks."""
        return self._queue.qsize()
    
    def is_owner_thread(self) -> bool:
        """True when called from the thread that created the dispatcher."""
        return threading.get_ident() == self._owner_thread_id
    
    def clear(self) -> int:
        """Discard queued callbacks without running them."""
        discarded = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return discarded
            discarded += 1
    
    def shutdown(self) -> None:
        """Stop accepting new callbacks and discard the queued ones."""
        self._shutdown_event.set()
        discarded = self.clear()
        with self._stats_lock:
            self._stats.dropped += discarded
        if discarded:
            logger.debug(f"Discarded {discarded} pending callback(s) on shutdown")
    
    def get_stats(self) -> DispatcherStats:
        """Snapshot of the dispatcher counters."""
        with self._stats_lock:
            return DispatcherStats(
                posted=self._stats.posted,
                executed=self._stats.executed,
                failed=self._stats.failed,
                dropped=self._stats.dropped,
            )
