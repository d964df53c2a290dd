"""Concurrent scan orchestration.

Provides:
  - scan_file():          Worker body. Scans one task, never raises.
  - ResultAggregator:     Single owner of the per-file result map; renders output.
  - ScanOrchestrator:     Bounded ThreadPoolExecutor fan-out over discovered files.

Architecture:
  discover → dispatch (bounded) → worker → queue → aggregator → report

  - Admission is gated by a BoundedSemaphore of size ``thread_count``: ``run()``
    blocks before submitting the next file while the pool is full. Files are
    submitted in discovery order, one task per file.
  - Workers never touch shared mutable state. A worker with non-empty results puts
    ``(path, lines)`` on the aggregator queue; the aggregator thread is the only
    writer of the result map, the result file and stdout, so one file's block is
    never interleaved with another's.
  - Completion: executor shutdown(wait=True) joins every task, then a sentinel
    drains and stops the aggregator.
  - Per-file failures, in a worker or while aggregating, are logged and swallowed;
    nothing aborts the run. There is no cancellation and no per-task timeout.
"""

from __future__ import annotations

import queue
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, Optional, Sequence, TextIO

from leakscan.constants import DEFAULT_CONTEXT_LENGTH
from leakscan.models.scan import ScanTask
from leakscan.output.formatter import ResultFormatter
from leakscan.output.writer import ResultWriter
from leakscan.parsers import parse_file
from leakscan.utils.logger import clear_file_path, get_logger, set_file_path

logger = get_logger(__name__)

#: path → serialized result lines, in pass order.
FileResultSet = dict[str, list[str]]

_STOP = object()


def scan_file(task: ScanTask) -> list[str]:
    """Scan one file; on any failure log a warning and return no results."""
    set_file_path(task.path)
    try:
        return parse_file(task)
    except OSError as exc:
        logger.warning(
            "Cannot read file, skipping",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return []
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Failed to parse file, skipping",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return []
    finally:
        clear_file_path()


class ResultAggregator:
    """Consumes ``(path, lines)`` messages on a dedicated thread.

    For each message the aggregator stores the lines under the path, appends the
    formatted block to the result file (if a writer is set) and prints it to
    ``stream`` when verbose. Findings are numbered continuously across files in
    arrival order.
    """

    def __init__(
        self,
        formatter: Optional[ResultFormatter] = None,
        writer: Optional[ResultWriter] = None,
        verbose: bool = False,
        stream: Optional[TextIO] = None,
    ):
        self.formatter = formatter or ResultFormatter()
        self.writer = writer
        self.verbose = verbose
        self.stream = stream
        self.results: FileResultSet = {}
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._next_index = 1

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="leakscan-aggregator", daemon=True)
        self._thread.start()

    def submit(self, path: str, lines: Sequence[str]) -> None:
        self._queue.put((path, list(lines)))

    def close(self) -> FileResultSet:
        """Drain every pending message, stop the thread and return the results."""
        self._queue.put(_STOP)
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        return self.results

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            path, lines = item  # type: ignore[misc]
            try:
                self._handle(path, lines)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "Failed to aggregate results",
                    file_path=path,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    def _handle(self, path: str, lines: list[str]) -> None:
        self.results[path] = lines
        if self.writer is None and not self.verbose:
            return

        block = self.formatter.format_file_block(path, lines, start_index=self._next_index)
        self._next_index += len(lines)

        if self.verbose:
            out = self.stream or sys.stdout
            out.write(block)
            out.flush()

        if self.writer is not None:
            try:
                self.writer.write_block(block)
            except OSError as exc:
                logger.error(
                    "Failed to write results",
                    path=self.writer.path,
                    file_path=path,
                    error=str(exc),
                )


class ScanOrchestrator:
    """Bounded worker pool over a list of files."""

    def __init__(
        self,
        thread_count: int,
        keywords: Sequence[str] = (),
        context_length: int = DEFAULT_CONTEXT_LENGTH,
        aggregator: Optional[ResultAggregator] = None,
    ):
        self.thread_count = max(1, thread_count)
        self.keywords = tuple(keywords)
        self.context_length = context_length
        self.aggregator = aggregator or ResultAggregator()

    def make_task(self, path: str) -> ScanTask:
        return ScanTask(
            path=path,
            keywords=self.keywords,
            context_length=self.context_length,
            verbose=self.aggregator.verbose,
        )

    def _work(self, task: ScanTask) -> None:
        lines = scan_file(task)
        if lines:
            self.aggregator.submit(task.path, lines)

    def run(self, paths: Iterable[str]) -> FileResultSet:
        """Scan every path and return the aggregated per-file results."""
        gate = threading.BoundedSemaphore(self.thread_count)

        def release(future: Future) -> None:
            gate.release()
            exc = future.exception()
            if exc is not None:
                logger.error(
                    "Scan task failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        submitted = 0
        self.aggregator.start()
        try:
            with ThreadPoolExecutor(
                max_workers=self.thread_count,
                thread_name_prefix="leakscan-worker",
            ) as executor:
                for path in paths:
                    gate.acquire()
                    try:
                        future = executor.submit(self._work, self.make_task(path))
                    except BaseException:
                        gate.release()
                        raise
                    future.add_done_callback(release)
                    submitted += 1
        finally:
            results = self.aggregator.close()

        logger.info(
            "Scan finished",
            files=submitted,
            files_with_findings=len(results),
            threads=self.thread_count,
        )
        return results
