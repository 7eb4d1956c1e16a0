"""
Line readers: one per :class:`ReadMode`.

Each reader turns one compressed file into logical lines and hands them
to a :class:`LineHandler`.  Concrete readers subclass
:class:`BaseLineReader` and implement :meth:`_read_lines`.  The base
class handles the shared concerns (opening the decoder, counting,
progress logging, error wrapping) so readers stay focused on splitting.
"""

import io
from abc import abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from zstd_lines.config import config
from zstd_lines.decoders import DecoderRegistry, decoder_registry
from zstd_lines.errors import LineDecodeError, LinesError, ReaderError
from zstd_lines.logging import get_logger
from zstd_lines.protocols import LineHandler
from zstd_lines.splitter import ArchiveLineSplitter
from zstd_lines.types import FileResult, ReadMode

logger = get_logger("readers")


class BaseLineReader:
    """
    Abstract base for all line readers.

    Subclasses must implement:
        * ``mode`` -- the :class:`ReadMode` this reader serves.
        * ``_read_lines(path, stream, result)`` -- yields decoded lines from
          the decompressed *stream* and counts drops on *result*.

    The public :meth:`read` method wraps ``_read_lines`` with decoder
    setup, delivery to the handler, and error wrapping.
    """

    def __init__(self, decoders: Optional[DecoderRegistry] = None):
        self.decoders = decoders or decoder_registry

    @property
    @abstractmethod
    def mode(self) -> ReadMode:
        ...

    @abstractmethod
    def _read_lines(self, path: Path, stream: io.BufferedReader, result: FileResult) -> Iterator[str]:
        """
        Yield lines from *stream* in order.

        Implementations should **not** catch broad exceptions -- let
        :meth:`read` wrap them in :class:`ReaderError`.
        """
        ...

    def read(self, path, handler: LineHandler, result: Optional[FileResult] = None) -> FileResult:
        """
        Deliver every line of *path* to *handler*.

        Args:
            path: Path-like pointing at a compressed file.
            handler: Called as ``handler(line, path)`` for each line.
            result: Counters to update in place; a fresh one is created
                when omitted.  Passing one in keeps partial counts
                available to the caller if this method raises.

        Returns:
            The updated :class:`FileResult`.

        Raises:
            SourceOpenError: The file or its decoder could not be opened.
            StreamDecodeError: The compressed stream is corrupt.
            ReaderError: Anything else, including handler failures.
        """
        p = Path(path)
        if result is None:
            result = FileResult(path=p, mode=self.mode)

        progress_every = config.get("reader.progress_every")
        logger.debug("[%s] Reading %s", self.mode.value, p)

        try:
            with self.decoders.open(p) as stream:
                lines = self._read_lines(p, stream, result)
                try:
                    for line in lines:
                        handler(line, p)
                        result.lines_emitted += 1
                        if progress_every and result.lines_emitted % progress_every == 0:
                            logger.debug("[%s] %s: %d lines", self.mode.value, p, result.lines_emitted)
                finally:
                    lines.close()
        except LinesError:
            raise
        except Exception as exc:
            raise ReaderError(self.mode.value, f"{p}: {exc}") from exc

        logger.debug(
            "[%s] Finished %s -- %d lines, %d dropped",
            self.mode.value, p, result.lines_emitted, result.lines_dropped,
        )
        return result


class PlainLineReader(BaseLineReader):
    """Reader for compressed plain text: one line per ``\\n``."""

    mode = ReadMode.PLAIN

    def _read_lines(self, path: Path, stream: io.BufferedReader, result: FileResult) -> Iterator[str]:
        for line_no, raw in enumerate(stream, 1):
            if raw.endswith(b"\n"):
                raw = raw[:-1]
            try:
                yield raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                result.lines_dropped += 1
                logger.warning("%s", LineDecodeError(str(path), line_no, str(exc)))


class ArchiveLineReader(BaseLineReader):
    """Reader for compressed tar archives of text members."""

    mode = ReadMode.ARCHIVE

    def __init__(self, decoders: Optional[DecoderRegistry] = None, strip_padding: Optional[bool] = None):
        super().__init__(decoders)
        if strip_padding is None:
            strip_padding = config.get("archive.strip_padding")
        self.strip_padding = strip_padding

    def _read_lines(self, path: Path, stream: io.BufferedReader, result: FileResult) -> Iterator[str]:
        splitter = ArchiveLineSplitter(path, strip_padding=self.strip_padding)
        try:
            yield from splitter.split_stream(stream)
        finally:
            result.lines_dropped += splitter.dropped
