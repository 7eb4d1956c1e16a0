"""
Archive-aware line splitter.

Turns the decompressed bytes of a ``.tar.<ext>`` file into the logical
lines of the text its members carry, as if the members had been
concatenated.  The stream is consumed in 512-byte blocks:

- A tar header block (see :func:`is_tar_header`) is never scanned.  It
  closes any pending partial line, so a line cannot run from one member
  into the next.
- Any other block is payload.  Bytes up to each ``\\n`` complete a line
  together with whatever was carried over from earlier blocks; bytes
  after the last ``\\n`` are carried over.
- At end of stream the carried-over bytes, if any, form the last line.

Lines that are not valid UTF-8 are dropped and counted.  The carried
bytes are cleared either way, so a dropped line never leaks into the
next one.

Zero-filled padding at the end of a member and the end-of-archive blocks
are payload too, and NUL bytes decode as UTF-8: by default the padding
reaches the caller as a line of NULs when the next header or the end of
stream flushes it.  With ``strip_padding`` set, trailing NULs are cut
from lines closed by a header or by end of stream, and a line that was
nothing but padding is not emitted at all.
"""

from pathlib import Path
from typing import Iterator, List, Optional

from zstd_lines.logging import get_logger
from zstd_lines.protocols import ByteSource
from zstd_lines.tar_blocks import TAR_BLOCK_SIZE, is_tar_header, read_block

logger = get_logger("splitter")

NEWLINE = 0x0A
TAR_PADDING = b"\x00"


class ArchiveLineSplitter:
    """
    Streaming block-to-line state machine for one archive file.

    Not thread-safe; one instance per file.
    """

    def __init__(self, source: Optional[Path] = None, *, strip_padding: bool = False):
        self.source = source
        self.strip_padding = strip_padding
        self.emitted = 0
        self.dropped = 0
        self.blocks = 0
        self.header_blocks = 0
        self._remainder = bytearray()

    @property
    def pending(self) -> int:
        """Number of carried-over bytes not yet closed into a line."""
        return len(self._remainder)

    def feed(self, block: bytes) -> List[str]:
        """
        Consume one block and return the lines it completes, in order.

        *block* must hold only valid bytes; a short block is accepted
        (normally the last one in the stream).
        """
        if not block:
            return []

        self.blocks += 1
        lines: List[str] = []

        if is_tar_header(block):
            self.header_blocks += 1
            self._flush(lines)
            return lines

        start = 0
        newline = block.find(NEWLINE)
        while newline != -1:
            self._emit(self._take(block[start:newline]), lines)
            start = newline + 1
            newline = block.find(NEWLINE, start)

        if start < len(block):
            self._remainder += block[start:]
        return lines

    def finish(self) -> List[str]:
        """Flush the carried-over bytes as the final line, if any."""
        lines: List[str] = []
        self._flush(lines)
        return lines

    def split_stream(self, stream: ByteSource, block_size: int = TAR_BLOCK_SIZE) -> Iterator[str]:
        """Yield every logical line of *stream*, then flush at end of stream."""
        while True:
            block = read_block(stream, block_size)
            if not block:
                break
            yield from self.feed(block)
        yield from self.finish()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _take(self, tail: bytes) -> bytes:
        """Join the carried-over bytes with *tail* and reset the carry."""
        if not self._remainder:
            return tail
        self._remainder += tail
        raw = bytes(self._remainder)
        self._remainder.clear()
        return raw

    def _flush(self, lines: List[str]) -> None:
        """Close the carried-over bytes into a line at a block boundary."""
        if not self._remainder:
            return
        raw = self._take(b"")
        if self.strip_padding:
            raw = raw.rstrip(TAR_PADDING)
            if not raw:
                return
        self._emit(raw, lines)

    def _emit(self, raw: bytes, lines: List[str]) -> None:
        try:
            lines.append(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            self.dropped += 1
            logger.debug("Dropped undecodable line in %s: %s", self.source, exc)
            return
        self.emitted += 1
