"""Bounded worker pool with core/max sizing and a bounded queue.

Admission follows the classic thread-pool-executor rules:

1. fewer than ``core_size`` workers → start a worker for the task;
2. otherwise, room in the queue (or an idle worker to take it) → enqueue;
3. otherwise, fewer than ``max_size`` workers → start an extra worker;
4. otherwise → reject with PoolSaturatedError.

So at most ``max_size + queue_capacity`` tasks are admitted at once. Extra
workers retire after ``keep_alive`` idle seconds. ``shutdown()`` stops
admission, lets workers drain the queue for a bounded time and cancels
whatever is still queued afterwards.
"""

import itertools
import threading
import time
from collections import deque
from concurrent.futures import Future

import structlog

logger = structlog.get_logger(__name__)


class PoolSaturatedError(Exception):
    """All workers are busy and the queue is full."""

    def __init__(self, max_size: int, queue_capacity: int) -> None:
        super().__init__(f"Worker pool saturated ({max_size} workers busy, {queue_capacity} tasks queued)")
        self.max_size = max_size
        self.queue_capacity = queue_capacity


class PoolShutdownError(Exception):
    """The pool no longer accepts work."""


class _WorkItem:
    __slots__ = ("future", "fn", "args", "kwargs")

    def __init__(self, fn, args, kwargs):
        self.future = Future()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self):
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as exc:
            self.future.set_exception(exc)
        else:
            self.future.set_result(result)


class BoundedWorkerPool:
    def __init__(
        self,
        core_size: int,
        max_size: int,
        queue_capacity: int,
        keep_alive: float = 60.0,
        name: str = "worker",
    ) -> None:
        if core_size < 1:
            raise ValueError("core_size must be at least 1")
        if max_size < core_size:
            raise ValueError("max_size must be greater than or equal to core_size")
        if queue_capacity < 0:
            raise ValueError("queue_capacity must not be negative")

        self.core_size = core_size
        self.max_size = max_size
        self.queue_capacity = queue_capacity
        self.keep_alive = keep_alive
        self.name = name

        self._cond = threading.Condition()
        self._queue: deque[_WorkItem] = deque()
        self._workers: set[threading.Thread] = set()
        self._busy = 0
        self._shutdown = False
        self._counter = itertools.count(1)

    # -------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------
    @property
    def worker_count(self) -> int:
        with self._cond:
            return len(self._workers)

    @property
    def queued(self) -> int:
        with self._cond:
            return len(self._queue)

    @property
    def busy(self) -> int:
        with self._cond:
            return self._busy

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def submit(self, fn, /, *args, **kwargs) -> Future:
        """Schedule ``fn(*args, **kwargs)`` and return its future.

        Raises:
            PoolSaturatedError: ``max_size`` workers are busy and the queue is full.
            PoolShutdownError: ``shutdown()`` has been called.
        """
        item = _WorkItem(fn, args, kwargs)
        with self._cond:
            if self._shutdown:
                raise PoolShutdownError("Worker pool is shut down")

            workers = len(self._workers)
            if workers < self.core_size:
                self._start_worker(item)
            elif len(self._queue) < max(self.queue_capacity, workers - self._busy):
                self._queue.append(item)
                self._cond.notify()
            elif workers < self.max_size:
                self._start_worker(item)
            else:
                raise PoolSaturatedError(self.max_size, self.queue_capacity)

        return item.future

    def _start_worker(self, first_item: _WorkItem) -> None:
        # Called with self._cond held
        thread = threading.Thread(
            target=self._work,
            args=(first_item,),
            name=f"{self.name}-{next(self._counter)}",
            daemon=True,
        )
        self._workers.add(thread)
        self._busy += 1
        thread.start()

    # -------------------------------------------------------------------
    # Workers
    # -------------------------------------------------------------------
    def _work(self, item: _WorkItem | None) -> None:
        try:
            while item is not None:
                item.run()
                item = self._next_item()
        finally:
            with self._cond:
                self._workers.discard(threading.current_thread())
                self._cond.notify_all()

    def _next_item(self) -> _WorkItem | None:
        """Block until there is work; None tells the worker to exit."""
        with self._cond:
            self._busy -= 1
            while not self._queue:
                if self._shutdown:
                    return None
                if len(self._workers) > self.core_size:
                    if not self._cond.wait(self.keep_alive) and not self._queue:
                        if len(self._workers) > self.core_size:
                            self._workers.discard(threading.current_thread())
                            return None
                else:
                    self._cond.wait()
            self._busy += 1
            return self._queue.popleft()

    # -------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------
    def shutdown(self, timeout: float | None = None) -> list[Future]:
        """Stop accepting work and drain for at most ``timeout`` seconds.

        Queued work left after the timeout is cancelled; its futures are
        returned. Work already running is not interrupted.
        """
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()
            workers = list(self._workers)

        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in workers:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)

        with self._cond:
            abandoned = list(self._queue)
            self._queue.clear()

        for item in abandoned:
            item.future.cancel()

        if abandoned:
            logger.warning("Worker pool abandoned queued work", pool=self.name, abandoned=len(abandoned))

        return [item.future for item in abandoned]
