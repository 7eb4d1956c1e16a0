"""
Protocol definitions for zstd_lines.

Uses typing.Protocol (PEP 544) for structural subtyping: a plain function
or lambda satisfies :class:`LineHandler`, and any file-like object with a
``read`` method satisfies :class:`ByteSource`.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class LineHandler(Protocol):
    """
    Receives every emitted logical line.

    Called concurrently from worker threads for different files, and in
    stream order for any one file.  Shared state is the handler's
    responsibility to protect.
    """

    def __call__(self, line: str, source: Path) -> None:
        ...


@runtime_checkable
class ByteSource(Protocol):
    """Sequential reader of decompressed bytes."""

    def read(self, size: int = -1) -> bytes:
        """
        Return up to *size* bytes; ``b""`` signals end of stream.

        Raises:
            StreamDecodeError: On corrupt compressed input.
        """
        ...
