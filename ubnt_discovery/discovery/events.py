"""
Event Bus

Fans "service discovered" notifications out to subscribers. Delivery is
synchronous, in subscription order, on the thread that publishes (one of
the channel receive workers).
"""

import logging
import threading
from typing import Callable, List

from ..protocol.service import Service

logger = logging.getLogger(__name__)

# Callback type for discovery events
ServiceCallback = Callable[[Service], None]


class EventBus:
    """Ordered list of subscribers invoked on every publish."""

    def __init__(self):
        self._subscribers: List[ServiceCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ServiceCallback):
        """Register a callback for discovered services."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: ServiceCallback) -> bool:
        with self._lock:
            try:
                self._subscribers.remove(callback)
                return True
            except ValueError:
                return False

    def publish(self, service: Service):
        """Call every subscriber with the service."""
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(service)
            except Exception as e:
                logger.error(f"Callback error: {e}", exc_info=True)

    def __len__(self):
        return len(self._subscribers)
