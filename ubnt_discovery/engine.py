"""
Discovery Engine - Main Controller

Wires the components together:
- RecordCodec and per-version parsers
- DiscoveryServer channels
- EventBus with the ServiceRegistry as first subscriber
- QueryScheduler per scan (only one scan runs at a time)
"""

import logging
import threading
from typing import List, Optional

from .config import Config
from .discovery import DiscoveryServer, EventBus, QueryScheduler, ServiceRegistry
from .discovery.events import ServiceCallback
from .discovery.scheduler import TickListener
from .protocol import ModelCatalog, ParserRegistry, RecordCodec, Service

logger = logging.getLogger(__name__)


class DiscoveryEngine:
    """
    A complete discovery engine.

    - setup(): bind channels on local addresses
    - scan(): start a background scan
    - run_scan(): scan and wait for the result
    - services(): de-duplicated results so far
    """

    def __init__(self, config: Config = None, **server_options):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
            server_options: Extra DiscoveryServer arguments, e.g. an
                interface_lister or channel_factory
        """
        self.config = config or Config()

        self.codec = RecordCodec.default_codec()
        self.parsers = ParserRegistry.default_registry(self.codec)

        self.bus = EventBus()
        self.registry = ServiceRegistry()
        self.bus.subscribe(self.registry)

        self.models = ModelCatalog()
        if self.config.models_file:
            try:
                self.models.load(self.config.models_file)
            except OSError as e:
                logger.warning(f"Could not load models from {self.config.models_file}: {e}")

        self.server = DiscoveryServer(
            self.parsers,
            self.bus,
            ipv6_enabled=self.config.ipv6_enabled,
            port=self.config.port,
            receive_timeout=self.config.receive_timeout,
            receive_buffer=self.config.receive_buffer,
            **server_options,
        )

        self._scheduler: Optional[QueryScheduler] = None
        self._scan_lock = threading.Lock()
        self._setup_done = False

    @property
    def servers(self) -> List[DiscoveryServer]:
        return [self.server]

    def setup(self) -> int:
        """Bind channels (once). Returns the channel count."""
        if not self._setup_done:
            self.server.setup()
            self._setup_done = True
        return len(self.server.channels)

    def subscribe(self, callback: ServiceCallback):
        self.bus.subscribe(callback)

    def unsubscribe(self, callback: ServiceCallback) -> bool:
        return self.bus.unsubscribe(callback)

    def is_scanning(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and scheduler.is_active()

    def scan(self, on_tick: Optional[TickListener] = None,
             duration_ms: Optional[int] = None,
             ticks: Optional[int] = None) -> Optional[QueryScheduler]:
        """
        Start a scan in the background.

        Returns:
            The scheduler driving the scan, or None if one is already running
        """
        with self._scan_lock:
            if self.is_scanning():
                logger.info("Scan already running, ignoring request")
                return None

            self.setup()
            self._scheduler = QueryScheduler(
                self.servers,
                duration_ms=self.config.scan_duration_ms if duration_ms is None else duration_ms,
                ticks=self.config.scan_ticks if ticks is None else ticks,
                listener=on_tick,
            )
            self._scheduler.start()
            return self._scheduler

    def run_scan(self, on_tick: Optional[TickListener] = None,
                 duration_ms: Optional[int] = None,
                 ticks: Optional[int] = None) -> List[Service]:
        """Scan and block until it finishes; returns the registry contents."""
        scheduler = self.scan(on_tick, duration_ms, ticks) or self._scheduler
        if scheduler is not None:
            scheduler.join()
        self.server.wait()
        return self.services()

    def cancel(self):
        scheduler = self._scheduler
        if scheduler is not None:
            scheduler.cancel()

    def services(self) -> List[Service]:
        return self.registry.services()

    def clear(self):
        self.registry.clear()

    def close(self):
        """Cancel any scan and release every socket."""
        self.cancel()
        scheduler = self._scheduler
        if scheduler is not None:
            scheduler.join()
        self.server.close()
        self._setup_done = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
