"""
Concurrent fan-out of line reading over many compressed files.

Each file is one independent job on a thread pool.  A job picks its
reader from the file name, runs it to completion or to its first fatal
error, and reports a :class:`FileResult`.  A failing job is logged and
recorded; it never stops the others.

Usage:
    from zstd_lines import process_files

    def handle(line, path):
        print(path, line)

    summary = process_files(["a.jsonl.zst", "b.jsonl.tar.zst"], handle)
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Iterable, Optional

from zstd_lines.config import config
from zstd_lines.errors import LinesError
from zstd_lines.logging import get_logger
from zstd_lines.protocols import LineHandler
from zstd_lines.readers import ArchiveLineReader, BaseLineReader, PlainLineReader
from zstd_lines.types import FileResult, ReadMode, RunSummary

logger = get_logger("dispatch")


def select_mode(path) -> ReadMode:
    """
    Pick the reader for *path* from its name.

    ``name.tar.zst`` -> ARCHIVE (the stem, i.e. the name without its last
    suffix, ends with the archive suffix); everything else -> PLAIN.
    """
    suffix = config.get("dispatch.archive_suffix")
    if Path(path).stem.endswith(suffix):
        return ReadMode.ARCHIVE
    return ReadMode.PLAIN


class LineDispatcher:
    """Routes each file to the reader for its mode and runs files in parallel."""

    def __init__(
        self,
        readers: Optional[Dict[ReadMode, BaseLineReader]] = None,
        max_workers: Optional[int] = None,
    ):
        # Caller readers replace the defaults mode by mode
        self.readers: Dict[ReadMode, BaseLineReader] = {
            ReadMode.PLAIN: PlainLineReader(),
            ReadMode.ARCHIVE: ArchiveLineReader(),
        }
        self.readers.update(readers or {})
        self.max_workers = max_workers or config.get("workers.max_workers") or os.cpu_count() or 1

    def reader_for(self, path) -> BaseLineReader:
        return self.readers[select_mode(path)]

    def process_file(self, path, handler: LineHandler) -> FileResult:
        """
        Run one file's job synchronously.

        Never raises for failures of the file itself; those are logged and
        stored in :attr:`FileResult.error`.
        """
        p = Path(path)
        result = FileResult(path=p, mode=select_mode(p))

        try:
            self.reader_for(p).read(p, handler, result)
        except LinesError as exc:
            result.error = str(exc)
            logger.error(
                "Failed to process %s file %s after %d lines: %s",
                result.mode.value, p, result.lines_emitted, exc,
            )
            return result
        except Exception as exc:
            # Readers outside this package may raise anything
            result.error = f"{type(exc).__name__}: {exc}"
            logger.error(
                "Reader for %s file %s failed after %d lines",
                result.mode.value, p, result.lines_emitted, exc_info=True,
            )
            return result

        if result.lines_dropped:
            logger.info(
                "Processed %s: %d lines, %d undecodable lines dropped",
                p, result.lines_emitted, result.lines_dropped,
            )
        return result

    def process_files(self, paths: Iterable, handler: LineHandler) -> RunSummary:
        """
        Process every file in *paths* concurrently.

        Lines reach *handler* in stream order per file; lines of different
        files interleave arbitrarily, and *handler* may run on several
        threads at once.

        Returns:
            :class:`RunSummary` with one :class:`FileResult` per path, in
            completion order.
        """
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")

        summary = RunSummary(start_time=time.time())
        path_list = [Path(p) for p in paths]
        if not path_list:
            summary.end_time = time.time()
            return summary

        workers = min(self.max_workers, len(path_list))
        logger.debug("Dispatching %d files to %d workers", len(path_list), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zstd_lines") as executor:
            futures = {
                executor.submit(self.process_file, p, handler): p
                for p in path_list
            }
            for future in as_completed(futures):
                summary.results.append(future.result())

        summary.end_time = time.time()
        failed = len(summary.failed)
        log = logger.warning if failed else logger.debug
        log(
            "Processed %d files in %.2fs: %d lines, %d dropped, %d failed",
            summary.files, summary.duration_seconds,
            summary.lines_emitted, summary.lines_dropped, failed,
        )
        return summary


def process_file(path, handler: LineHandler) -> FileResult:
    """Process a single file with the default readers."""
    return LineDispatcher(max_workers=1).process_file(path, handler)


def process_files(paths: Iterable, handler: LineHandler, *, max_workers: Optional[int] = None) -> RunSummary:
    """
    Process compressed files line by line, in parallel.

    ``.tar.<ext>`` files are read as one continuous text stream with the
    tar headers left out; everything else is read as plain text.

    Args:
        paths: Path-like values (``str``, ``Path``, ...).
        handler: Called as ``handler(line, path)`` for each line; must be
            safe to call from several threads.
        max_workers: Thread pool size (default: ``workers.max_workers``
            from config, else the CPU count).

    Returns:
        :class:`RunSummary` of the run.  Per-file failures are reported
        there and in the log, never raised.
    """
    return LineDispatcher(max_workers=max_workers).process_files(paths, handler)
