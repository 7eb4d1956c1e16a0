"""
Shared pytest fixtures for zstd_lines tests.

Fixtures write real compressed inputs into tmp_path: zstd via
``zstandard``, gzip via the stdlib, and tar archives via ``tarfile``.

The conftest resets the Config singleton to an empty configuration at
import time so a config.json in the working directory cannot change the
schema defaults the tests rely on.
"""

import gzip
import io
import sys
import tarfile
import threading
from collections import defaultdict
from pathlib import Path

# Ensure project root is on sys.path so imports work from tests/
sys.path.insert(0, str(Path(__file__).parent.parent))

from zstd_lines.config import Config

Config()._data = {}

import pytest
import zstandard as zstd

from zstd_lines.logging import get_logger
from zstd_lines.tar_blocks import TAR_BLOCK_SIZE, USTAR_MAGIC, USTAR_MAGIC_OFFSET


def header_block(name: bytes = b"member.txt") -> bytes:
    """A 512-byte block that carries the ustar magic (and nothing else valid)."""
    block = bytearray(TAR_BLOCK_SIZE)
    block[: len(name)] = name
    block[USTAR_MAGIC_OFFSET: USTAR_MAGIC_OFFSET + len(USTAR_MAGIC)] = USTAR_MAGIC
    return bytes(block)


def tar_bytes(members) -> bytes:
    """Build an uncompressed ustar archive from ``(name, bytes)`` pairs."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT) as tar:
        for name, data in members:
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class LineCollector:
    """Thread-safe handler that records ``(line, path)`` calls."""

    def __init__(self):
        self._lock = threading.Lock()
        self.calls = []

    def __call__(self, line, source):
        with self._lock:
            self.calls.append((line, source))

    @property
    def lines(self):
        return [line for line, _ in self.calls]

    def by_path(self):
        grouped = defaultdict(list)
        for line, source in self.calls:
            grouped[source].append(line)
        return dict(grouped)


@pytest.fixture
def write_zst(tmp_path):
    """Write zstd-compressed *data* to ``tmp_path / name``; returns the path."""
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(zstd.ZstdCompressor().compress(data))
        return path
    return _write


@pytest.fixture
def write_gz(tmp_path):
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(gzip.compress(data))
        return path
    return _write


@pytest.fixture
def collector():
    return LineCollector()


@pytest.fixture
def capture_logs(caplog):
    """Attach caplog to zstd_lines loggers (they do not propagate)."""
    attached = []

    def _attach(name: str):
        logger = get_logger(name)
        logger.addHandler(caplog.handler)
        attached.append(logger)
        return caplog

    yield _attach

    for logger in attached:
        logger.removeHandler(caplog.handler)


@pytest.fixture
def make_header():
    return header_block


@pytest.fixture
def make_tar():
    return tar_bytes
