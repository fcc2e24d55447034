"""
Packet Parser

Design Decision: Strict Single-Pass Decoding
============================================

Options Considered:
1. Best-effort - keep every record decoded before an error
   - Surfaces half-decoded devices to listeners
2. Strict - any inconsistency discards the whole datagram
   - Listeners only ever see complete Services

Decision: Strict
- The declared length must match the datagram length exactly
- A record whose length runs past the end aborts the packet
- Failures are logged and the datagram is dropped; the engine carries on

One PacketParser is registered per wire version in a ParserRegistry, which
dispatches on the version byte.
"""

import logging
import struct
from typing import Dict, Iterable, Optional, Tuple

from . import constants as c
from .records import RecordCodec, RecordDecodeError
from .service import Record, Service

logger = logging.getLogger(__name__)

_HEADER = struct.Struct('>BBH')
_RECORD_HEADER = struct.Struct('>BH')


class MalformedPacket(ValueError):
    """Datagram length mismatch or out-of-bounds record."""


class UnknownWireVersion(MalformedPacket):
    """No parser is registered for the datagram's version byte."""


class PacketParser:
    """Decodes reply datagrams into Services using a RecordCodec."""

    def __init__(self, codec: RecordCodec):
        self.codec = codec

    def decode(self, data: bytes, length: Optional[int] = None) -> Service:
        """
        Decode a datagram.

        Args:
            data: Raw datagram buffer
            length: Number of valid bytes in ``data`` (defaults to all)

        Returns:
            The decoded Service

        Raises:
            MalformedPacket: if the datagram is inconsistent
        """
        if length is None:
            length = len(data)
        if length < c.HEADER_SIZE or length > len(data):
            raise MalformedPacket(f"Invalid datagram length {length}")

        version, command, data_length = _HEADER.unpack_from(data, 0)
        logger.debug(f"Parsing packet v{version} cmd={command} dataLength={data_length}")

        end = data_length + c.HEADER_SIZE
        if end != length:
            raise MalformedPacket(
                f"Declared length {end} does not match datagram length {length}"
            )

        buffer = bytes(data[:length])
        service = Service(version=version, command=command)
        index = c.HEADER_SIZE
        while index < end:
            if index + _RECORD_HEADER.size > end:
                raise MalformedPacket(f"Truncated record header at offset {index}")
            record_type, size = _RECORD_HEADER.unpack_from(buffer, index)
            index += _RECORD_HEADER.size
            if index + size > end:
                raise MalformedPacket(f"Invalid record length {size} (type={record_type})")

            try:
                payload = self.codec.decode(record_type, buffer, index, size)
            except RecordDecodeError as e:
                raise MalformedPacket(f"Record type {record_type}: {e}") from e

            service.add(Record(
                type=record_type,
                offset=index,
                length=size,
                payload=payload,
                buffer=buffer,
            ))
            index += size

        if command != c.CMD_NONE:
            self.handle_command_completion(command, service)

        return service

    def parse(self, data: bytes, length: Optional[int] = None) -> Optional[Service]:
        """Decode a datagram, returning None (and logging) if it is malformed."""
        try:
            return self.decode(data, length)
        except MalformedPacket as e:
            logger.warning(f"Discarding packet: {e}")
            return None

    def handle_command_completion(self, command: int, service: Service):
        """
        Hook for replies carrying a command byte.

        Version 2 uses 6 (normalise timestamp) and 11 (invoke SSH). Base
        discovery needs neither.
        """


class ParserRegistry:
    """Wire version -> PacketParser."""

    def __init__(self):
        self._parsers: Dict[int, PacketParser] = {}

    @classmethod
    def default_registry(cls, codec: RecordCodec) -> 'ParserRegistry':
        registry = cls()
        registry.register(1, PacketParser(codec))
        registry.register(2, PacketParser(codec))
        return registry

    def register(self, version: int, parser: PacketParser) -> bool:
        if parser is None or version in self._parsers:
            return False
        self._parsers[version] = parser
        return True

    def unregister(self, version: int) -> Optional[PacketParser]:
        return self._parsers.pop(version, None)

    def get(self, version: int) -> Optional[PacketParser]:
        return self._parsers.get(version)

    @property
    def versions(self):
        return sorted(self._parsers)

    def decode(self, data: bytes, length: Optional[int] = None) -> Service:
        """
        Decode with the parser registered for the version byte.

        Raises:
            MalformedPacket: including UnknownWireVersion
        """
        if not data:
            raise MalformedPacket("Empty datagram")
        parser = self._parsers.get(data[0])
        if parser is None:
            raise UnknownWireVersion(f"Unknown wire version {data[0]}")
        return parser.decode(data, length)

    def parse(self, data: bytes, length: Optional[int] = None) -> Optional[Service]:
        try:
            return self.decode(data, length)
        except MalformedPacket as e:
            logger.warning(f"Discarding packet: {e}")
            return None


def build_packet(version: int, command: int, records: Iterable[Tuple[int, bytes]]) -> bytes:
    """Encode a reply datagram from ``(type, value)`` pairs."""
    body = b''.join(
        _RECORD_HEADER.pack(record_type, len(value)) + value
        for record_type, value in records
    )
    return _HEADER.pack(version, command, len(body)) + body
