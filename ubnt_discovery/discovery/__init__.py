"""
Discovery Module - Finding Devices on the LAN

- Interface enumeration (netifaces)
- Per-address channels and receive workers
- Query scheduling and progress ticks
- De-duplicating service registry and event fan-out
"""

from .interfaces import InterfaceAddress, list_interface_addresses
from .channel import Channel, open_channel
from .events import EventBus
from .registry import ServiceRegistry, dedup_key
from .server import DiscoveryServer, QueryServer
from .scheduler import QueryScheduler

__all__ = [
    'InterfaceAddress',
    'list_interface_addresses',
    'Channel',
    'open_channel',
    'EventBus',
    'ServiceRegistry',
    'dedup_key',
    'DiscoveryServer',
    'QueryServer',
    'QueryScheduler',
]
