"""Application context for explicit state passing.

This module provides the AppContext dataclass that wires the catalog client,
durable store, audio transport and playback coordinator together once per
process, so nothing reaches for module-level singletons.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from songqueue.core.config import Config, get_database_path
from songqueue.core.storage import KeyValueStore, SQLiteKeyValueStore
from songqueue.domain.catalog import CatalogClient
from songqueue.domain.playback import AudioBackend, PlayerCoordinator, Transport
from songqueue.domain.playback.mpv import MpvBackend


@dataclass
class AppContext:
    """Application services for one process.

    Attributes:
        config: Application configuration
        catalog: Configured catalog API client
        store: Durable key-value store for queue persistence
        backend: Audio backend driven by the transport
        transport: Single-handle audio transport
        coordinator: Owner of queue and playback state
        console: Rich Console for formatted output
    """

    config: Config
    catalog: CatalogClient
    store: KeyValueStore
    backend: AudioBackend
    transport: Transport
    coordinator: PlayerCoordinator
    console: Optional[Console] = None

    @classmethod
    def create(
        cls,
        config: Config,
        console: Optional[Console] = None,
        store: Optional[KeyValueStore] = None,
        backend: Optional[AudioBackend] = None,
    ) -> "AppContext":
        """Create the application context.

        Args:
            config: Application configuration
            console: Optional Rich Console instance
            store: Store override (defaults to SQLite in the data dir)
            backend: Audio backend override (defaults to mpv)

        Returns:
            New AppContext with an empty, not yet started coordinator
        """
        config.player.validate()
        store = store or SQLiteKeyValueStore(get_database_path(config))
        backend = backend or MpvBackend(config.player)
        transport = Transport(
            backend,
            status_interval=config.player.status_interval_ms / 1000,
            preferred_quality=config.catalog.preferred_stream_quality,
        )
        coordinator = PlayerCoordinator(
            transport,
            store,
            restart_threshold_ms=config.player.restart_threshold_ms,
        )
        return cls(
            config=config,
            catalog=CatalogClient(config.catalog),
            store=store,
            backend=backend,
            transport=transport,
            coordinator=coordinator,
            console=console,
        )

    async def start(self) -> None:
        """Restore persisted state and start the status pump."""
        await self.coordinator.load_persisted_data()
        self.coordinator.start()

    async def close(self) -> None:
        """Stop playback, flush writes and shut the backend down."""
        await self.coordinator.close()
        shutdown = getattr(self.backend, "shutdown", None)
        if shutdown is not None:
            await shutdown()
