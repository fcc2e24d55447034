"""
Protocol Module - Discovery Wire Format

Record decoders, Service/Record structures and the per-version packet
parsers.
"""

from .records import IpInfo, RecordCodec, RecordDecodeError
from .service import Record, Service
from .parser import MalformedPacket, UnknownWireVersion, PacketParser, ParserRegistry, build_packet
from .models import ModelCatalog

__all__ = [
    'IpInfo',
    'RecordCodec',
    'RecordDecodeError',
    'Record',
    'Service',
    'MalformedPacket',
    'UnknownWireVersion',
    'PacketParser',
    'ParserRegistry',
    'build_packet',
    'ModelCatalog',
]
