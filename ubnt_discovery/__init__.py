"""
UBNT Device Discovery

Finds devices answering the UDP discovery protocol (wire versions 1 and 2)
on every local network address and decodes their replies.
"""

from .config import Config, load_config
from .engine import DiscoveryEngine
from .protocol import IpInfo, MalformedPacket, ParserRegistry, Record, RecordCodec, Service
from .discovery import DiscoveryServer, EventBus, QueryScheduler, ServiceRegistry

__version__ = "1.0.0"

__all__ = [
    'Config',
    'load_config',
    'DiscoveryEngine',
    'IpInfo',
    'MalformedPacket',
    'ParserRegistry',
    'Record',
    'RecordCodec',
    'Service',
    'DiscoveryServer',
    'EventBus',
    'QueryScheduler',
    'ServiceRegistry',
]
