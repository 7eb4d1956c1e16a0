"""
Singleton configuration loader for zstd_lines.

Reads config.json once and provides dot-notation access.  Every key the
package reads is listed in CONFIG_SCHEMA with its type and default, so an
absent config.json is a valid configuration.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from zstd_lines.errors import ConfigError
from zstd_lines.logging import get_logger, set_log_dir

logger = get_logger("config")

# Each entry: (type, default_value)
# Types: str, int, float, bool, None (any)
CONFIG_SCHEMA: Dict[str, tuple] = {
    # Paths
    "paths.logs_dir":               (str,   "logs"),

    # Work distribution
    "workers.max_workers":          (int,   None),

    # Mode selection
    "dispatch.archive_suffix":      (str,   ".tar"),

    # Decoders
    "zstd.max_window_size":         (int,   0),

    # Archive mode
    "archive.strip_padding":        (bool,  False),

    # Readers
    "reader.progress_every":        (int,   1_000_000),
}


class Config:
    """Singleton configuration backed by config.json."""

    _instance: Optional["Config"] = None
    _data: Dict[str, Any]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            inst = super().__new__(cls)
            inst._data = {}
            inst._load()
            cls._instance = inst
        return cls._instance

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> None:
        config_path = Path("config.json")
        if not config_path.exists():
            self._data = {}
            return

        with open(config_path, "r") as fh:
            self._data = json.load(fh)

        set_log_dir(self.get("paths.logs_dir"))
        logger.info("Loaded configuration from config.json")

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value by dot-separated key (e.g. ``"workers.max_workers"``).

        Lookup order:
        1. Value from config.json (if present and not None).
        2. Caller-supplied *default* (if not None).
        3. Schema default from CONFIG_SCHEMA.
        4. None.
        """
        value = self._traverse(key)
        if value is not None:
            return value
        if default is not None:
            return default
        schema_entry = CONFIG_SCHEMA.get(key)
        if schema_entry is not None:
            return schema_entry[1]
        return None

    def require(self, key: str) -> Any:
        """
        Like :meth:`get` but raises :class:`ConfigError` when neither
        config.json nor the schema supplies a value.
        """
        value = self.get(key)
        if value is None:
            logger.error("Missing required config key: %s", key)
            raise ConfigError(key)
        return value

    def section(self, key: str) -> Dict[str, Any]:
        """
        Return an entire config section as a dict.

        Raises ConfigError if the section does not exist or is not a dict.
        """
        value = self._traverse(key)
        if not isinstance(value, dict):
            raise ConfigError(key, reason="section not found or not a dict")
        return value

    def validate(self) -> List[str]:
        """
        Validates the loaded config against CONFIG_SCHEMA.

        Returns a list of warning strings for type mismatches.
        Does NOT raise -- config.json values always take precedence.
        """
        warnings = []
        for key, (expected_type, _default) in CONFIG_SCHEMA.items():
            if expected_type is None:
                continue
            value = self._traverse(key)
            # bool is an int subclass; reject it where an int is expected
            mismatched = not isinstance(value, expected_type) or (
                expected_type is int and isinstance(value, bool)
            )
            if value is not None and mismatched:
                warnings.append(
                    f"Config '{key}': expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
        for w in warnings:
            logger.warning(w)
        return warnings

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _traverse(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict):
                node = node.get(part)
            else:
                return None
            if node is None:
                return None
        return node

    def __repr__(self) -> str:
        return f"<Config keys={list(self._data.keys())}>"


# Module-level singleton
config = Config()
