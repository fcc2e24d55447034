"""
Service Registry

Design Decision: Replace In Place
=================================

Devices answer every query burst, so the same MAC shows up many times per
scan. Options:
1. Remove the old entry and append the new one
   - Rows jump to the bottom on every refresh
2. Overwrite the old entry at its position
   - Stable ordering for tables and exports

Decision: Overwrite in place, append only unseen devices.
Services without an IPINFO record have no key and are always appended.
"""

import logging
import threading
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from ..protocol.service import Service

logger = logging.getLogger(__name__)

NO_INTERFACE = "<no interface>"


def dedup_key(service: Service) -> Optional[str]:
    """MAC address from the IPINFO record, or None."""
    return service.mac


class ServiceRegistry:
    """
    Most recent Service per device, in first-seen order.

    Thread-safe: the event bus delivers from every channel worker.
    """

    def __init__(self):
        self._services: List[Service] = []
        self._lock = threading.Lock()

    def merge(self, service: Service) -> Tuple[int, bool]:
        """
        Add a service, replacing an earlier one with the same MAC.

        Returns:
            (index, replaced) - position in the list and whether an
            existing entry was superseded
        """
        key = dedup_key(service)
        with self._lock:
            if key is not None:
                for index, cached in enumerate(self._services):
                    if dedup_key(cached) == key:
                        self._services[index] = service
                        logger.info(f"Replaced service {key} from {service.source_ip} with newer response")
                        return index, True

            self._services.append(service)
            index = len(self._services) - 1

        logger.info(f"Added new service with MAC/address: {key or service.source_ip}")
        return index, False

    # Subscribing the registry itself to the event bus
    __call__ = merge

    def services(self) -> List[Service]:
        with self._lock:
            return list(self._services)

    def get(self, mac: str) -> Optional[Service]:
        with self._lock:
            for service in self._services:
                if dedup_key(service) == mac:
                    return service
        return None

    def filter(self, interfaces: Iterable[str]) -> List[Service]:
        """Services received on one of the given interfaces (all if empty)."""
        wanted = set(interfaces or ())
        services = self.services()
        if not wanted:
            return services
        return [s for s in services if s.interface in wanted]

    def grouped(self, services: Optional[List[Service]] = None) -> Dict[str, List[Service]]:
        """Group by receiving interface, keeping first-seen order."""
        groups: Dict[str, List[Service]] = OrderedDict()
        for service in (self.services() if services is None else services):
            groups.setdefault(service.interface or NO_INTERFACE, []).append(service)
        return groups

    def clear(self):
        with self._lock:
            self._services.clear()

    def __len__(self):
        with self._lock:
            return len(self._services)
