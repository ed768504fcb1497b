"""Background execution of scans and cleanups for devstrip front ends.

The engine is synchronous. Front ends run it on a single worker thread and
poll two channels: a status queue with human-readable messages, and a
one-shot future with the final result. Cancellation is a shared flag that
the engine checks at well-defined points.
"""

import queue
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Generic, Optional, TypeVar

from devstrip.cleaner import cleanup_with_callback
from devstrip.models import Candidate, CleanupProgress, CleanupResult, ScanConfig
from devstrip.scanner import Reporter, scan_with_cancel

T = TypeVar("T")


class CancelFlag:
    """Shared cancellation flag, safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()


class BackgroundTask(Generic[T]):
    """
    Run one job on a dedicated worker thread.

    The job receives a reporter (pushes onto the status queue) and the
    task's cancel flag. Status messages arrive in the order they were sent;
    readers are free to skip straight to the latest one.
    """

    def __init__(self, job: Callable[[Reporter, CancelFlag], T]):
        self._status: queue.Queue[str] = queue.Queue()
        self._cancel = CancelFlag()
        self._last_status: Optional[str] = None
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="devstrip-worker")
        self._future: Future[T] = executor.submit(job, self._status.put, self._cancel)
        # One job per task; the thread exits once it is done
        executor.shutdown(wait=False)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask the job to stop at its next checkpoint."""
        self._cancel.set()

    def done(self) -> bool:
        return self._future.done()

    def drain_status(self) -> list[str]:
        """All status messages received since the last call, oldest first."""
        messages = []
        while True:
            try:
                messages.append(self._status.get_nowait())
            except queue.Empty:
                break
        if messages:
            self._last_status = messages[-1]
        return messages

    def latest_status(self) -> Optional[str]:
        """Most recent status message, coalescing anything older."""
        self.drain_status()
        return self._last_status

    def result(self, timeout: Optional[float] = None) -> T:
        """
        Wait for the job and return its result.

        Raises:
            TimeoutError: If the job does not finish within ``timeout``
            Exception: Whatever the job itself raised
        """
        return self._future.result(timeout=timeout)


def start_scan(config: ScanConfig) -> BackgroundTask[list[Candidate]]:
    """Start a cancellable scan on a worker thread."""

    def job(reporter: Reporter, cancel: CancelFlag) -> list[Candidate]:
        return scan_with_cancel(config, cancel, reporter)

    return BackgroundTask(job)


def cleanup_status(progress: CleanupProgress) -> str:
    return f"Cleaning {progress.position}/{progress.total}: {progress.candidate.display_name}"


def start_cleanup(
    candidates: Sequence[Candidate], dry_run: bool = False
) -> BackgroundTask[list[CleanupResult]]:
    """Start a cleanup on a worker thread; cancelling stops before the next item."""
    items = list(candidates)

    def job(reporter: Reporter, cancel: CancelFlag) -> list[CleanupResult]:
        return cleanup_with_callback(
            items,
            dry_run,
            progress_callback=lambda progress: reporter(cleanup_status(progress)),
            cancel=cancel,
        )

    return BackgroundTask(job)
