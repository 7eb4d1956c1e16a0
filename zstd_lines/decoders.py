"""
Streaming decompression adapters.

Every input is exposed to the readers as a buffered binary stream of
decompressed bytes.  The outer file suffix picks the decoder:

- ``.gz``               gzip (stdlib)
- ``.zst`` / ``.zstd``  zstandard
- anything else         zstandard

Decompression failures surface as :class:`StreamDecodeError` on the read
that hit them; failures opening the file or building the decoder surface
as :class:`SourceOpenError`.  A zstd file that ends inside a frame is a
decode error, not a short but complete stream.
"""

import gzip
import io
import zlib
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional

import zstandard as zstd

from zstd_lines.config import config
from zstd_lines.errors import SourceOpenError, StreamDecodeError
from zstd_lines.logging import get_logger

logger = get_logger("decoders")

DecoderFactory = Callable[[Path], BinaryIO]

# Errors a decoder may raise mid-stream on corrupt or truncated input
_DECODE_ERRORS = (zstd.ZstdError, OSError, EOFError, zlib.error)


# Raw bytes fed to the decompressor per read from the file
_ZSTD_READ_SIZE = zstd.DECOMPRESSION_RECOMMENDED_INPUT_SIZE


class ZstdFrameReader(io.RawIOBase):
    """
    Decompresses a sequence of zstd frames from *fh*, one
    ``decompressobj`` per frame.

    Running out of input while a frame is still open raises
    :class:`EOFError`, the same way a truncated gzip member does.
    """

    def __init__(self, fh: BinaryIO, dctx: "zstd.ZstdDecompressor"):
        super().__init__()
        self._fh = fh
        self._dctx = dctx
        self._dobj = None
        self._buffer = b""
        self._offset = 0
        self.frames = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while self._offset >= len(self._buffer):
            chunk = self._fh.read(_ZSTD_READ_SIZE)
            if not chunk:
                if self._dobj is not None:
                    raise EOFError(
                        f"incomplete frame: input ended inside zstd frame {self.frames + 1}"
                    )
                return 0
            self._buffer = self._decompress(chunk)
            self._offset = 0

        n = min(len(b), len(self._buffer) - self._offset)
        b[:n] = self._buffer[self._offset:self._offset + n]
        self._offset += n
        return n

    def _decompress(self, data: bytes) -> bytes:
        out = []
        while data:
            if self._dobj is None:
                self._dobj = self._dctx.decompressobj()
            out.append(self._dobj.decompress(data))
            if not self._dobj.eof:
                break
            # Frame complete; whatever follows starts the next frame
            data = self._dobj.unused_data
            self._dobj = None
            self.frames += 1
        return b"".join(out)

    def close(self) -> None:
        if not self.closed:
            try:
                self._fh.close()
            finally:
                super().close()


def _open_zstd(path: Path) -> BinaryIO:
    """Open *path* as a (possibly multi-frame) zstd stream."""
    fh = open(path, "rb")
    try:
        dctx = zstd.ZstdDecompressor(
            max_window_size=config.get("zstd.max_window_size"),
        )
        return ZstdFrameReader(fh, dctx)
    except Exception:
        fh.close()
        raise


def _open_gzip(path: Path) -> BinaryIO:
    return gzip.open(path, "rb")


class DecodedStream(io.RawIOBase):
    """
    Raw binary stream over a decoder that translates decoder failures
    into :class:`StreamDecodeError` naming the source file.
    """

    def __init__(self, inner: BinaryIO, path: Path):
        super().__init__()
        self._inner = inner
        self.path = path

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        try:
            data = self._inner.read(len(b))
        except _DECODE_ERRORS as exc:
            raise StreamDecodeError(str(self.path), str(exc)) from exc
        n = len(data)
        b[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._inner.close()
            finally:
                super().close()


class DecoderRegistry:
    """Maps lower-cased outer suffixes to decoder factories."""

    def __init__(self, default: DecoderFactory = _open_zstd):
        self._default = default
        self._decoders: Dict[str, DecoderFactory] = {
            ".zst": _open_zstd,
            ".zstd": _open_zstd,
            ".gz": _open_gzip,
        }

    def register(self, suffix: str, factory: DecoderFactory) -> None:
        """Register *factory* for files whose last suffix is *suffix*."""
        self._decoders[suffix.lower()] = factory

    def factory_for(self, path: Path) -> DecoderFactory:
        return self._decoders.get(path.suffix.lower(), self._default)

    def open(self, path: Path, buffer_size: int = io.DEFAULT_BUFFER_SIZE) -> io.BufferedReader:
        """
        Open *path* and return a buffered stream of decompressed bytes.

        The caller owns the returned stream and must close it.

        Raises:
            SourceOpenError: If the file cannot be opened or the decoder
                cannot be initialised.
        """
        factory = self.factory_for(path)
        try:
            inner = factory(path)
        except (OSError, zstd.ZstdError, ValueError) as exc:
            raise SourceOpenError(str(path), str(exc)) from exc

        logger.debug("Opened %s with %s", path, getattr(factory, "__name__", factory))
        return io.BufferedReader(DecodedStream(inner, path), buffer_size=buffer_size)


# Module-level singleton
decoder_registry = DecoderRegistry()


def open_decoded(path, registry: Optional[DecoderRegistry] = None) -> io.BufferedReader:
    """Convenience wrapper around :meth:`DecoderRegistry.open`."""
    return (registry or decoder_registry).open(Path(path))


def register_decoder(suffix: str, factory: DecoderFactory) -> None:
    """Register a decoder on the module-level registry (for extensions)."""
    decoder_registry.register(suffix, factory)
