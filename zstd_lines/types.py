"""
Domain types for zstd_lines.

Dataclasses and enums shared by the readers and the dispatcher.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class ReadMode(str, Enum):
    """How a single input file is turned into lines."""
    PLAIN = "plain"
    ARCHIVE = "archive"


@dataclass
class FileResult:
    """Outcome of processing one input file."""
    path: Path
    mode: ReadMode
    lines_emitted: int = 0
    lines_dropped: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregated results for one :func:`process_files` call."""
    start_time: float
    end_time: Optional[float] = None
    results: List[FileResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    @property
    def files(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if not r.ok]

    @property
    def lines_emitted(self) -> int:
        return sum(r.lines_emitted for r in self.results)

    @property
    def lines_dropped(self) -> int:
        return sum(r.lines_dropped for r in self.results)
