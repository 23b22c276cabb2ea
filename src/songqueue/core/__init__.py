"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Durable key-value storage (SQLite)
- Logging and console output (Loguru, Rich)
"""

from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_database_path,
    get_log_file_path,
    create_default_config,
)
from .output import get_console, log, setup_loguru
from .storage import (
    KeyValueStore,
    MemoryKeyValueStore,
    PersistenceFailure,
    SQLiteKeyValueStore,
)

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_database_path",
    "get_log_file_path",
    "create_default_config",
    # Output
    "get_console",
    "log",
    "setup_loguru",
    # Storage
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistenceFailure",
    "SQLiteKeyValueStore",
]
