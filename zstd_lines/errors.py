"""
Custom exception hierarchy for zstd_lines.

Per-file failures raise domain-specific subclasses of LinesError so the
dispatcher can record them against the file and keep going.  Nothing in
this hierarchy is ever passed to a line handler.
"""


class LinesError(Exception):
    """Base exception for all zstd_lines errors."""


class ConfigError(LinesError):
    """Raised when a required configuration key is missing or invalid."""

    def __init__(self, key: str, reason: str = "missing or None"):
        self.key = key
        super().__init__(f"Configuration error for '{key}': {reason}")


class SourceOpenError(LinesError):
    """Raised when an input file cannot be opened or its decoder initialised."""

    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(f"Open error [{path}]: {detail}")


class StreamDecodeError(LinesError):
    """Raised when the compressed stream is corrupt or truncated mid-read."""

    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(f"Decode error [{path}]: {detail}")


class LineDecodeError(LinesError):
    """Raised when a single line is not valid UTF-8."""

    def __init__(self, path: str, line_no: int, detail: str):
        self.path = path
        self.line_no = line_no
        super().__init__(f"Line decode error [{path}:{line_no}]: {detail}")


class ReaderError(LinesError):
    """Raised when a reader fails for any reason not covered above."""

    def __init__(self, reader: str, detail: str):
        self.reader = reader
        super().__init__(f"Reader error [{reader}]: {detail}")
