"""
Configuration management for songqueue
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Upper bound for the transport status interval (milliseconds)
MAX_STATUS_INTERVAL_MS = 500


@dataclass
class CatalogConfig:
    """Configuration for the remote catalog API."""

    base_url: str = "https://saavn.sumit.co"
    page_size: int = 20
    timeout_seconds: float = 30.0
    preferred_stream_quality: str = "320kbps"
    preferred_image_quality: str = "500x500"


@dataclass
class PlayerConfig:
    """Configuration for playback and the mpv transport."""

    mpv_socket_path: Optional[str] = None
    volume: int = 80
    status_interval_ms: int = MAX_STATUS_INTERVAL_MS
    restart_threshold_ms: int = 3000  # play_previous restarts in place past this
    load_timeout_seconds: float = 10.0

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0 <= self.volume <= 100:
            raise ValueError(f"Invalid volume: {self.volume} (expected 0-100)")
        if self.status_interval_ms <= 0:
            raise ValueError(
                f"Invalid status_interval_ms: {self.status_interval_ms}"
            )
        if self.load_timeout_seconds <= 0:
            raise ValueError(
                f"Invalid load_timeout_seconds: {self.load_timeout_seconds}"
            )


@dataclass
class StorageConfig:
    """Configuration for durable queue storage."""

    database_path: Optional[str] = None  # default: <data dir>/songqueue.db


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: ~/.local/share/songqueue/songqueue.log
    console_output: bool = False  # Also log to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "songqueue"
    return Path.home() / ".config" / "songqueue"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in the project root (marked by pyproject.toml).

    Used during development so a checkout's config.toml wins over the user one.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/songqueue (or ~/.config/songqueue)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "songqueue"
    return Path.home() / ".local" / "share" / "songqueue"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# songqueue configuration

[catalog]
# Base URL of the catalog search API
base_url = "https://saavn.sumit.co"

# Results per search page
page_size = 20

# HTTP timeout in seconds
timeout_seconds = 30.0

# Preferred stream / artwork variants (fallback: last listed variant)
preferred_stream_quality = "320kbps"
preferred_image_quality = "500x500"

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/songqueue-mpv"

# Volume (0-100)
volume = 80

# Status update interval in milliseconds (max 500)
status_interval_ms = 500

# "Previous" restarts the current track when past this position (ms)
restart_threshold_ms = 3000

# Seconds to wait for a stream to start before giving up
load_timeout_seconds = 10.0

[storage]
# SQLite file holding the persisted queue (default: ~/.local/share/songqueue/songqueue.db)
# database_path = "/path/to/songqueue.db"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/songqueue/songqueue.log)
# log_file = "/path/to/songqueue.log"

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per key."""
    config = Config()

    if "catalog" in toml_data:
        catalog_data = toml_data["catalog"]
        config.catalog = CatalogConfig(
            base_url=catalog_data.get("base_url", config.catalog.base_url).rstrip("/"),
            page_size=catalog_data.get("page_size", config.catalog.page_size),
            timeout_seconds=catalog_data.get(
                "timeout_seconds", config.catalog.timeout_seconds
            ),
            preferred_stream_quality=catalog_data.get(
                "preferred_stream_quality", config.catalog.preferred_stream_quality
            ),
            preferred_image_quality=catalog_data.get(
                "preferred_image_quality", config.catalog.preferred_image_quality
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
            status_interval_ms=min(
                player_data.get("status_interval_ms", config.player.status_interval_ms),
                MAX_STATUS_INTERVAL_MS,
            ),
            restart_threshold_ms=player_data.get(
                "restart_threshold_ms", config.player.restart_threshold_ms
            ),
            load_timeout_seconds=player_data.get(
                "load_timeout_seconds", config.player.load_timeout_seconds
            ),
        )
        try:
            config.player.validate()
        except ValueError as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "storage" in toml_data:
        database_path = toml_data["storage"].get("database_path")
        if database_path:
            database_path = str(Path(database_path).expanduser())
        config.storage = StorageConfig(database_path=database_path)

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - SONGQUEUE_CATALOG_URL
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    catalog_url = os.environ.get("SONGQUEUE_CATALOG_URL")
    if catalog_url:
        config.catalog.base_url = catalog_url.rstrip("/")

    return config


def get_database_path(config: Config) -> Path:
    """Resolve the SQLite path used for persisted playback state."""
    if config.storage.database_path:
        return Path(config.storage.database_path)
    return get_data_dir() / "songqueue.db"


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file path."""
    if config.logging.log_file:
        return Path(config.logging.log_file)
    return get_data_dir() / "songqueue.log"

