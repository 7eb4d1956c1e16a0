"""
zstd_lines -- process compressed text files line by line, in parallel.

Hand it a list of files and a function that handles one line:

    from zstd_lines import process_files

    process_files(
        ["file.jsonl.zst", "file.jsonl.tar.zst"],
        lambda line, path: print(f"{path}: {line}"),
    )

Files named ``*.tar.<ext>`` are read as one continuous text stream with
the tar headers left out.  Every other file is read as plain compressed
text.  Files are processed concurrently on a thread pool; a file that
fails to open or decode is logged and skipped without affecting the rest.
"""

# Errors -- import first, no internal deps
from zstd_lines.errors import (
    ConfigError,
    LineDecodeError,
    LinesError,
    ReaderError,
    SourceOpenError,
    StreamDecodeError,
)

# Logging
from zstd_lines.logging import get_logger, set_log_dir

# Configuration
from zstd_lines.config import Config, config

# Domain types
from zstd_lines.types import FileResult, ReadMode, RunSummary

# Protocols
from zstd_lines.protocols import ByteSource, LineHandler

# Decoders
from zstd_lines.decoders import DecoderRegistry, open_decoded, register_decoder

# Tar blocks and splitting
from zstd_lines.tar_blocks import TAR_BLOCK_SIZE, is_tar_header, read_block
from zstd_lines.splitter import ArchiveLineSplitter

# Readers
from zstd_lines.readers import ArchiveLineReader, BaseLineReader, PlainLineReader

# Dispatch
from zstd_lines.dispatch import LineDispatcher, process_file, process_files, select_mode

__version__ = "0.1.0"

__all__ = [
    # Errors
    "LinesError",
    "ConfigError",
    "SourceOpenError",
    "StreamDecodeError",
    "LineDecodeError",
    "ReaderError",
    # Logging
    "get_logger",
    "set_log_dir",
    # Config
    "Config",
    "config",
    # Types
    "ReadMode",
    "FileResult",
    "RunSummary",
    # Protocols
    "LineHandler",
    "ByteSource",
    # Decoders
    "DecoderRegistry",
    "open_decoded",
    "register_decoder",
    # Tar blocks
    "TAR_BLOCK_SIZE",
    "is_tar_header",
    "read_block",
    "ArchiveLineSplitter",
    # Readers
    "BaseLineReader",
    "PlainLineReader",
    "ArchiveLineReader",
    # Dispatch
    "LineDispatcher",
    "select_mode",
    "process_file",
    "process_files",
]
