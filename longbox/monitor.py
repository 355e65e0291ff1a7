"""Filesystem monitoring for Longbox.

Uses Watchdog to detect new/modified/deleted comics and folders. Every
qualifying event is handed to a `RescanDispatcher`, which runs full rescans on
a single worker thread:
- at most one scan runs at a time
- events arriving while a scan runs schedule exactly one trailing scan
- a short debounce window lets bulk copies settle into one scan
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from threading import Thread
from typing import Callable, NamedTuple, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .archive import is_comic_file
from .config import LongboxConfig
from .errors import ScanError
from .logging_config import get_logger
from .service import ComicService

logger = get_logger(__name__)

SAMPLE_SIZE = 3


class MonitorTask(NamedTuple):
    action: str
    path: Path
    dest_path: Optional[Path] = None


def _describe(count: int, sample: list[MonitorTask]) -> str:
    shown = ", ".join(f"{task.action} {task.path.name}" for task in sample)
    if count > len(sample):
        shown += f", +{count - len(sample)} more"
    return shown


class RescanDispatcher:
    """Single-flight rescan worker with a pending-rerun flag."""

    def __init__(self, rescan: Callable[[], object], debounce_seconds: float = 0.0):
        self._rescan = rescan
        self.debounce_seconds = debounce_seconds
        self._cond = threading.Condition()
        # Only a count and the first few tasks are kept for the log line
        self._pending_count = 0
        self._sample: list[MonitorTask] = []
        self._running = False
        self._stopping = False
        self._thread: Optional[Thread] = None
        self.scans_completed = 0

    def start(self) -> None:
        self._thread = Thread(
            target=self._run,
            daemon=True,
            name="LongboxRescanWorker",
        )
        self._thread.start()

    def request(self, task: MonitorTask) -> None:
        """Record a change; the worker picks it up in its next batch."""
        with self._cond:
            self._pending_count += 1
            if len(self._sample) < SAMPLE_SIZE:
                self._sample.append(task)
            self._cond.notify_all()

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._pending_count > 0

    @property
    def pending_count(self) -> int:
        with self._cond:
            return self._pending_count

    @property
    def running(self) -> bool:
        with self._cond:
            return self._running

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no scan is running or pending. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._pending_count and not self._running, timeout
            )

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)

    def _next_batch(self) -> Optional[tuple[int, list[MonitorTask]]]:
        with self._cond:
            while not self._pending_count and not self._stopping:
                self._cond.wait()
            if self._stopping:
                return None

            # Let the burst settle; requests made meanwhile join this batch.
            deadline = time.monotonic() + self.debounce_seconds
            remaining = self.debounce_seconds
            while remaining > 0 and not self._stopping:
                self._cond.wait(remaining)
                remaining = deadline - time.monotonic()
            if self._stopping:
                return None

            batch = (self._pending_count, self._sample)
            self._pending_count, self._sample = 0, []
            self._running = True
            return batch

    def _run(self) -> None:
        while True:
            batch = self._next_batch()
            if batch is None:
                return

            count, sample = batch
            logger.info(f"[WATCH] {count} change(s): {_describe(count, sample)}")
            try:
                self._rescan()
            except ScanError as exc:
                logger.error(f"Rescan failed, keeping previous catalog: {exc}")
            except Exception:
                logger.exception("Unexpected error during rescan")
            finally:
                with self._cond:
                    self._running = False
                    self.scans_completed += 1
                    self._cond.notify_all()


class ComicLibraryHandler(FileSystemEventHandler):
    """Turn filesystem events into rescan requests."""

    def __init__(self, dispatcher: RescanDispatcher):
        super().__init__()
        self.dispatcher = dispatcher

    def on_created(self, event: FileSystemEvent) -> None:
        path = Path(event.src_path)
        if path.name.startswith("._"):
            return

        if event.is_directory or is_comic_file(path):
            self.dispatcher.request(MonitorTask("created", path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        path = Path(event.src_path)
        if path.name.startswith("._"):
            return

        self.dispatcher.request(MonitorTask("deleted", path))

    def on_moved(self, event: FileSystemEvent) -> None:
        src_path = Path(event.src_path)
        dest_path = Path(event.dest_path)

        if src_path.name.startswith("._") or dest_path.name.startswith("._"):
            return

        if event.is_directory or is_comic_file(src_path) or is_comic_file(dest_path):
            self.dispatcher.request(MonitorTask("moved", src_path, dest_path=dest_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        path = Path(event.src_path)
        if path.name.startswith("._") or not is_comic_file(path):
            return

        self.dispatcher.request(MonitorTask("modified", path))


class LibraryMonitor:
    """Watchdog observer plus the dispatcher it feeds."""

    def __init__(self, library_path: Path, dispatcher: RescanDispatcher):
        self.library_path = library_path
        self.dispatcher = dispatcher
        self.observer = Observer()
        self.observer.schedule(
            ComicLibraryHandler(dispatcher), str(library_path), recursive=True
        )

    def start(self) -> None:
        self.observer.start()
        self.dispatcher.start()

    def stop(self) -> None:
        self.observer.stop()
        self.dispatcher.stop()

    def join(self, timeout: Optional[float] = None) -> None:
        self.observer.join(timeout)


def start_file_monitoring(
    config: LongboxConfig, service: ComicService
) -> Optional[LibraryMonitor]:
    """Start filesystem monitoring if enabled in config."""
    if not config.monitoring.enabled:
        return None

    library_path = config.library_path
    if not library_path.exists():
        logger.error(f"Library path does not exist: {library_path}")
        return None

    dispatcher = RescanDispatcher(
        service.rescan, debounce_seconds=config.monitoring.debounce_seconds
    )
    monitor = LibraryMonitor(library_path, dispatcher)
    monitor.start()
    return monitor
