"""
Tar block classification.

A tar stream is a sequence of 512-byte blocks.  Header blocks of the
POSIX ustar family carry the magic ``ustar`` at offset 257; no other
header field (checksum, name, size, typeflag) is checked.

Known limitation: only the block bearing the magic is recognised.  pax
extended headers and GNU long-name records have a data block after the
header that does not carry the magic, and that block is treated as
payload.
"""

from zstd_lines.protocols import ByteSource

TAR_BLOCK_SIZE = 512
USTAR_MAGIC = b"ustar"
USTAR_MAGIC_OFFSET = 257
_MAGIC_END = USTAR_MAGIC_OFFSET + len(USTAR_MAGIC)


def is_tar_header(block: bytes) -> bool:
    """
    Return True if *block* is a tar header block.

    Only the bytes actually present in *block* are inspected; a block too
    short to reach the end of the magic field is never a header.
    """
    if len(block) < _MAGIC_END:
        return False
    return block[USTAR_MAGIC_OFFSET:_MAGIC_END] == USTAR_MAGIC


def read_block(stream: ByteSource, size: int = TAR_BLOCK_SIZE) -> bytes:
    """
    Read the next block of *size* bytes from *stream*.

    Keeps reading until the block is full or the stream ends, so a short
    block only ever comes back at end of stream.  Returns ``b""`` once the
    stream is exhausted.
    """
    chunk = stream.read(size)
    if len(chunk) == size or not chunk:
        return chunk

    parts = [chunk]
    filled = len(chunk)
    while filled < size:
        chunk = stream.read(size - filled)
        if not chunk:
            break
        parts.append(chunk)
        filled += len(chunk)
    return b"".join(parts)
