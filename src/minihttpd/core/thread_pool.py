"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads pulling connections off a bounded queue.

=============================================================================
WHY A BOUNDED POOL?
=============================================================================

A thread per connection has no upper limit: a burst of 10,000 clients
means 10,000 threads. With a pool the limits are explicit:

    max_workers   connections being served at the same time
    queue_size    accepted connections waiting for a worker

When both are used up, submit() returns False immediately and the accept
thread answers 503 Service Unavailable instead of queueing forever.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept thread ── submit(conn) ──┐                                  │
    │                                   ▼                                  │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  TASK QUEUE (queue.Queue, maxsize=queue_size)               │   │
    │   │  [conn 1] [conn 2] [conn 3] ...        full → False → 503    │   │
    │   └──────────────────────┬──────────────────────────────────────┘   │
    │                          │ get()                                     │
    │                          ▼                                           │
    │   ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐               │
    │   │ Worker 0 │ │ Worker 1 │ │ Worker 2 │ │ Worker 3 │  max_workers  │
    │   │ (idle)   │ │ (busy)   │ │ (busy)   │ │ (idle)   │               │
    │   └──────────┘ └──────────┘ └──────────┘ └──────────┘               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

    pool.shutdown()
        └─ wait for queued tasks to finish (queue.join())
        └─ for each worker: queue.put(None)
        └─ a worker that gets None exits its loop

Workers also poll a shutdown flag every idle_timeout seconds, so they exit
even if a pill could not be queued.

=============================================================================
"""

import queue
import threading
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Any, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states."""

    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Running a task
    STOPPED = "stopped"  # Thread has exited


@dataclass
class Task:
    """
    A unit of work for the pool.

    Attributes:
        func: The callable to run.
        args: Positional arguments for func.
        submitted_at: When the task entered the queue.
    """

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

        1. Wait for a task (poll every idle_timeout seconds)
        2. None? → exit
        3. Run it, log (never propagate) any exception
        4. task_done(), back to 1
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        idle_timeout: float = 1.0
    ):
        # daemon=True: a stuck worker never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
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

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args)
            elapsed = time.time() - start_time
            logger.debug(
                f"Worker {self.worker_id} completed task in {elapsed:.3f}s "
                f"(queued {waited:.3f}s)"
            )
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   pool = ThreadPool(max_workers=16, queue_size=64)                  │
    │   pool.start()                                                       │
    │                                                                      │
    │   if not pool.submit(handle_connection, args=(conn,)):              │
    │       reject(conn)               # pool saturated → 503             │
    │                                                                      │
    │   pool.stats   # {"workers": {"busy": 3, ...}, "tasks": {...}}      │
    │   pool.shutdown(wait=True)                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        max_workers: int = 16,
        queue_size: int = 64,
        idle_timeout: float = 1.0
    ):
        """
        Args:
            max_workers: Number of worker threads (all started up front).
            queue_size: Maximum number of tasks waiting for a worker.
            idle_timeout: How often idle workers check for shutdown.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._rejected = 0

    def start(self):
        """Start all worker threads. Idempotent."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.max_workers} workers")

            for worker_id in range(self.max_workers):
                worker = Worker(
                    task_queue=self._task_queue,
                    worker_id=worker_id,
                    idle_timeout=self.idle_timeout,
                )
                self._workers.append(worker)
                worker.start()

            self._shutdown = False
            self._started = True

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Queue a task without blocking.

        Returns:
            True if the task was queued, False if the queue was full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        try:
            self._task_queue.put(Task(func=func, args=args), block=False)
            return True
        except queue.Full:
            with self._lock:
                self._rejected += 1
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish first. If False, they are
                  abandoned (their connections are never served).
            timeout: Upper bound, in seconds, on waiting for the queue.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        for worker in self._workers:
            worker.shutdown()
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # the worker sees its shutdown flag instead

        for worker in self._workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()
            self._started = False

        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def queued_tasks(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counters, for logging and tests."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.queued_tasks,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
                "rejected": self._rejected,
            },
        }
