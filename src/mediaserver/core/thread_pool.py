"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A fixed set of worker threads pulling tasks from a shared queue. The HTTP
server submits one task per accepted connection, so the pool size is the
number of connections served at the same time; the rest wait in the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   accept loop ──submit()──►  [Task] [Task] [Task] ...   (FIFO)      │
    │                                      │                              │
    │                                      │ get()                        │
    │                                      ▼                              │
    │              ┌──────────┐  ┌──────────┐  ┌──────────┐               │
    │              │ Worker-0 │  │ Worker-1 │  │ Worker-2 │   daemon      │
    │              │  (busy)  │  │  (idle)  │  │  (busy)  │   threads     │
    │              └──────────┘  └──────────┘  └──────────┘               │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHUTDOWN WITH A GRACE PERIOD
=============================================================================

    pool.shutdown(timeout=5.0)

        1. Reject new submissions.
        2. Wait until nothing is queued or running, or the deadline passes.
        3. Remove whatever is still queued; those tasks never run and are
           returned to the caller so it can release their resources.
        4. One poison pill (None) per worker; join each for a short while.

Tasks still running after the deadline are NOT interrupted: a thread can't
be killed. The HTTP server unblocks them by closing their sockets.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, List, Optional, Any
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A deferred function call.

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        kwargs: Keyword arguments for the function.
        submitted_at: Time the task was queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. get() a task (wakes every idle_timeout to check shutdown)      │
    │   2. None?  → poison pill, exit                                     │
    │   3. run it; any exception is logged, the worker keeps going        │
    │   4. task_done(), report completion to the pool, back to 1          │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        on_done: Callable[[], None],
        idle_timeout: float = 1.0,
        name_prefix: str = "Worker",
    ):
        """
        Args:
            task_queue: Queue to pull tasks from.
            worker_id: Identifier for this worker (for logging).
            on_done: Called after every task, successful or not.
            idle_timeout: Seconds to wait for a task before checking shutdown.
            name_prefix: Thread name prefix.
        """
        super().__init__(name=f"{name_prefix}-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self._on_done = on_done

        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            if task is None:
                self.task_queue.task_done()
                break

            try:
                self._execute_task(task)
            finally:
                self.task_queue.task_done()
                self._on_done()

        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)

            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")
            self.tasks_completed += 1

        except Exception as e:
            # One bad task must not take the worker down with it
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1

    def shutdown(self):
        """Signal the worker to stop after its current task."""
        self._shutdown.set()


class ThreadPool:
    """
    Fixed-size thread pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   pool = ThreadPool(workers=3)                                      │
    │   pool.start()                                                      │
    │   pool.submit(handler.handle, args=(conn,))                         │
    │   cancelled = pool.shutdown(timeout=5.0)   # → [Task, ...]          │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        workers: int = 3,
        idle_timeout: float = 1.0,
        name_prefix: str = "Worker",
    ):
        """
        Args:
            workers: Number of worker threads, must be > 0.
            idle_timeout: Seconds idle workers wait before checking shutdown.
            name_prefix: Thread name prefix, shown in log records.

        Raises:
            ValueError: If workers is not positive.
        """
        if workers <= 0:
            raise ValueError(f"workers must be positive, got {workers}")

        self.workers = workers
        self.idle_timeout = idle_timeout
        self.name_prefix = name_prefix

        self._task_queue: queue.Queue = queue.Queue()

        self._workers: List[Worker] = []
        self._lock = threading.Lock()

        # Tasks submitted but not yet finished (queued + running)
        self._pending = 0
        self._idle = threading.Condition(self._lock)

        self._started = False
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    def start(self):
        """Create and start the workers. Calling it again is a no-op."""
        with self._lock:
            if self._started:
                return
            self._shutdown = False

            logger.info(f"Starting thread pool with {self.workers} workers")

            for worker_id in range(self.workers):
                worker = Worker(
                    task_queue=self._task_queue,
                    worker_id=worker_id,
                    on_done=self._task_finished,
                    idle_timeout=self.idle_timeout,
                    name_prefix=self.name_prefix,
                )
                self._workers.append(worker)
                worker.start()

            self._started = True

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
    ) -> None:
        """
        Queue a task.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        with self._lock:
            if not self._started:
                raise RuntimeError("Thread pool not started")
            if self._shutdown:
                raise RuntimeError("Thread pool is shutting down")
            self._pending += 1

        self._task_queue.put(Task(func=func, args=args, kwargs=kwargs or {}))

    def _task_finished(self):
        with self._idle:
            self._pending -= 1
            if self._pending <= 0:
                self._idle.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until no task is queued or running.

        Returns:
            True if the pool went idle, False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._pending > 0:
                if deadline is None:
                    self._idle.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def cancel_pending(self) -> List[Task]:
        """
        Remove every task that hasn't started yet.

        Returns:
            The removed tasks, in submission order. They will never run.
        """
        cancelled = []
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            if task is not None:
                cancelled.append(task)
                self._task_finished()

        if cancelled:
            logger.warning(f"Cancelled {len(cancelled)} queued tasks")
        return cancelled

    def shutdown(self, timeout: Optional[float] = None) -> List[Task]:
        """
        Stop the pool, giving in-flight work up to timeout seconds.

        Args:
            timeout: Grace period in seconds. None waits for everything,
                     0 cancels whatever is still queued right away.

        Returns:
            Tasks that were still queued at the deadline and never ran.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return []
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if not self.wait_idle(timeout):
            logger.warning(f"Thread pool still busy after {timeout}s, forcing stop")

        cancelled = self.cancel_pending()

        # ─────────────────────────────────────────────────────────────────
        # POISON PILLS
        # ─────────────────────────────────────────────────────────────────
        for worker in self._workers:
            worker.shutdown()
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join(timeout=2.0)

        stats = self.stats
        with self._lock:
            self._workers.clear()
            self._started = False

        logger.info(
            f"Thread pool shutdown complete: {stats['completed']} tasks completed, "
            f"{stats['failed']} failed, {len(cancelled)} cancelled"
        )
        return cancelled

    @property
    def pending(self) -> int:
        """Tasks queued or running."""
        return self._pending

    @property
    def stats(self) -> dict:
        """Task counts across all workers, logged at shutdown."""
        return {
            "workers": len(self._workers),
            "pending": self._pending,
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
