"""Parallel extraction of links from many documents, with progress reporting."""

from __future__ import annotations

import enum
import sys
import threading
import time
from collections import Counter, deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from hapiq.extractor import PDFExtractor
from hapiq.types import ExtractionOptions, ExtractionResult, default_extraction_options

DEFAULT_WORKERS = 4
PROGRESS_CAPACITY = 100
_POLL_SECONDS = 0.05

T = TypeVar("T")


class TaskStatus(str, enum.Enum):
    """Lifecycle state of an extraction task."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass
class ExtractionTask:
    """One document to extract links from."""

    id: str
    filename: str
    options: ExtractionOptions = field(default_factory=default_extraction_options)


@dataclass
class ExtractionTaskResult:
    """Outcome of one extraction task: a result or the error that stopped it."""

    task: ExtractionTask
    result: ExtractionResult | None = None
    error: Exception | None = None


@dataclass
class ProgressUpdate:
    """A progress event emitted while tasks are queued and processed."""

    task_id: str
    filename: str
    status: TaskStatus
    message: str = ""
    completed: int = 0
    total: int = 0
    elapsed_time: float = 0.0


@dataclass
class WorkerPoolStats:
    """Counts describing the state of a worker pool."""

    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    num_workers: int


class _Channel(Generic[T]):
    """A bounded, closable FIFO shared between threads."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(capacity, 1)
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, item: T, abort: threading.Event | None = None) -> bool:
        """Block until there is room; return False if aborted first."""
        with self._cond:
            while True:
                if self._closed:
                    raise RuntimeError("send on a closed channel")
                if len(self._items) < self._capacity:
                    self._items.append(item)
                    self._cond.notify_all()
                    return True
                if abort is not None and abort.is_set():
                    return False
                self._cond.wait(_POLL_SECONDS)

    def offer(self, item: T) -> bool:
        """Add the item only if there is room right now."""
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, abort: threading.Event | None = None) -> tuple[T | None, bool]:
        """Block for the next item; (None, False) once closed and drained or aborted."""
        with self._cond:
            while not self._items:
                if self._closed:
                    return None, False
                if abort is not None and abort.is_set():
                    return None, False
                self._cond.wait(_POLL_SECONDS)
            item = self._items.popleft()
            self._cond.notify_all()
            return item, True

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            item, ok = self.get()
            if not ok:
                return
            yield item  # type: ignore[misc]


class WorkerPool:
    """Runs extraction tasks on a fixed number of worker threads."""

    def __init__(self, num_workers: int = DEFAULT_WORKERS) -> None:
        if num_workers <= 0:
            num_workers = DEFAULT_WORKERS
        self.num_workers = num_workers
        self._tasks: _Channel[ExtractionTask] = _Channel(num_workers * 2)
        self._results: _Channel[ExtractionTaskResult] = _Channel(num_workers * 2)
        self._progress: _Channel[ProgressUpdate] = _Channel(PROGRESS_CAPACITY)
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._total_tasks = 0
        self._completed_tasks = 0
        self._finished = False

    def start(self) -> None:
        """Start the worker threads."""
        for worker_id in range(self.num_workers):
            thread = threading.Thread(
                target=self._worker, args=(worker_id,), name=f"hapiq-worker-{worker_id}", daemon=True
            )
            self._threads.append(thread)
            thread.start()

    def _worker(self, worker_id: int) -> None:
        extractor = PDFExtractor(ExtractionOptions())
        while not self._cancelled.is_set():
            task, ok = self._tasks.get(abort=self._cancelled)
            if not ok or task is None:
                return
            self._process_task(worker_id, task, extractor)

    def _process_task(self, worker_id: int, task: ExtractionTask, extractor: PDFExtractor) -> None:
        start = time.monotonic()
        self._send_progress(
            ProgressUpdate(
                task_id=task.id,
                filename=task.filename,
                status=TaskStatus.PROCESSING,
                message=f"Worker {worker_id} started processing",
            )
        )

        extractor.options = task.options
        result: ExtractionResult | None = None
        error: Exception | None = None
        try:
            result = extractor.extract_from_file(task.filename)
        except Exception as exc:  # a worker reports every failure instead of dying
            error = exc
        elapsed = time.monotonic() - start

        with self._lock:
            self._completed_tasks += 1
            completed = self._completed_tasks
            total = self._total_tasks

        if error is None:
            status = TaskStatus.COMPLETED
            message = f"Worker {worker_id} completed in {elapsed:.3f}s"
        else:
            status = TaskStatus.FAILED
            message = f"Worker {worker_id} failed: {error}"

        self._send_progress(
            ProgressUpdate(
                task_id=task.id,
                filename=task.filename,
                status=status,
                message=message,
                completed=completed,
                total=total,
                elapsed_time=elapsed,
            )
        )
        self._results.put(ExtractionTaskResult(task=task, result=result, error=error), self._cancelled)

    def _send_progress(self, update: ProgressUpdate) -> None:
        # Progress is best effort: a full channel drops the update rather than block.
        self._progress.offer(update)

    def submit_task(self, task: ExtractionTask) -> None:
        """Queue a task; blocks while the queue is full unless the pool is shut down."""
        if self._tasks.closed:
            raise RuntimeError("worker pool is closed")
        with self._lock:
            self._total_tasks += 1
        self._send_progress(
            ProgressUpdate(
                task_id=task.id,
                filename=task.filename,
                status=TaskStatus.PENDING,
                message="Task queued for processing",
            )
        )
        self._tasks.put(task, self._cancelled)

    def submit_batch(self, tasks: Iterable[ExtractionTask]) -> None:
        """Queue several tasks in order."""
        for task in tasks:
            self.submit_task(task)

    def results(self) -> Iterator[ExtractionTaskResult]:
        """Iterate over task results as they arrive, until the pool is closed."""
        return iter(self._results)

    def progress(self) -> Iterator[ProgressUpdate]:
        """Iterate over progress updates as they arrive, until the pool is closed."""
        return iter(self._progress)

    def wait(self) -> None:
        """Stop accepting tasks, let the workers finish and close the output streams."""
        with self._lock:
            if self._finished:
                return
            self._finished = True
        self._tasks.close()
        for thread in self._threads:
            thread.join()
        self._results.close()
        self._progress.close()

    def shutdown(self) -> None:
        """Cancel outstanding work and close the pool."""
        self._cancelled.set()
        self.wait()

    def stats(self) -> WorkerPoolStats:
        """Return current task counts."""
        with self._lock:
            return WorkerPoolStats(
                total_tasks=self._total_tasks,
                completed_tasks=self._completed_tasks,
                pending_tasks=self._total_tasks - self._completed_tasks,
                num_workers=self.num_workers,
            )


@dataclass
class ProgressSummary:
    """Snapshot of the progress seen by a tracker."""

    start_time: datetime
    last_update: datetime
    status_counts: dict[TaskStatus, int]
    elapsed_time: float
    update_count: int
    total_tasks: int


def _format_duration(seconds: float) -> str:
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class ProgressTracker:
    """Keeps the latest status of each task from a stream of progress updates."""

    def __init__(self) -> None:
        self._start_time = datetime.now()
        self._start_clock = time.monotonic()
        self._last_update = self._start_time
        self._statuses: dict[str, TaskStatus] = {}
        self._update_count = 0
        self._lock = threading.Lock()

    def update(self, update: ProgressUpdate) -> None:
        """Record a progress update."""
        with self._lock:
            self._statuses[update.task_id] = update.status
            self._last_update = datetime.now()
            self._update_count += 1

    def summary(self) -> ProgressSummary:
        """Return a snapshot of the tracked progress."""
        with self._lock:
            return ProgressSummary(
                start_time=self._start_time,
                last_update=self._last_update,
                status_counts=dict(Counter(self._statuses.values())),
                elapsed_time=time.monotonic() - self._start_clock,
                update_count=self._update_count,
                total_tasks=len(self._statuses),
            )

    def print_progress(self) -> None:
        """Write a one-line progress report, overwriting the current line."""
        summary = self.summary()
        counts = summary.status_counts
        completed = counts.get(TaskStatus.COMPLETED, 0)
        failed = counts.get(TaskStatus.FAILED, 0)
        processing = counts.get(TaskStatus.PROCESSING, 0)
        pending = counts.get(TaskStatus.PENDING, 0)

        parts = [f"\r🔄 Progress: {completed}/{summary.total_tasks} completed"]
        if failed:
            parts.append(f" ({failed} failed)")
        if processing:
            parts.append(f" ({processing} processing)")
        if pending:
            parts.append(f" ({pending} pending)")
        if summary.total_tasks:
            parts.append(f" [{completed / summary.total_tasks * 100:.1f}%]")
        parts.append(f" [{_format_duration(summary.elapsed_time)} elapsed]")

        sys.stdout.write("".join(parts))
        sys.stdout.flush()

    def estimate_completion(self) -> float:
        """Estimate the seconds left until every task is done; 0 when unknown."""
        summary = self.summary()
        completed = summary.status_counts.get(TaskStatus.COMPLETED, 0)
        if completed == 0 or summary.total_tasks == 0:
            return 0.0
        per_task = summary.elapsed_time / completed
        return per_task * (summary.total_tasks - completed)