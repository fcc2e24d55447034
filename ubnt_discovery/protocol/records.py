"""
Record Codec

Design Decision: Decoder Registry
=================================

Options Considered:
1. Module-level dict shared by every parser
   - Simple, but hidden global state
   - Tests leak registrations into each other

2. Registry object passed to each parser
   - Explicit, one instance per engine
   - Tests build isolated registries

Decision: RecordCodec instance
- Built once at engine startup, shared by the v1 and v2 parsers
- First registration for a type code wins
- Unregistered types fall back to an uppercase hex string so every record
  has a readable payload

Decoders all take ``(data, offset, length)`` and return the payload.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from . import constants as c

logger = logging.getLogger(__name__)

UINT64_MASK = 0xFFFFFFFFFFFFFFFF
MAC_SIZE = 6
IPV4_SIZE = 4

# (data, offset, length) -> payload
Decoder = Callable[[bytes, int, int], Any]


class RecordDecodeError(ValueError):
    """A record is too short for the decoder registered for its type."""


@dataclass(frozen=True)
class IpInfo:
    """MAC/IP pair carried by the IPINFO record."""
    mac: str
    ip: str

    def __str__(self):
        return f"{self.mac} / {self.ip}"


def _require(length: int, width: int, what: str):
    if length < width:
        raise RecordDecodeError(f"{what} needs {width} bytes, record has {length}")


# === Decoders ===

def decode_string(data: bytes, offset: int, length: int) -> str:
    return bytes(data[offset:offset + length]).decode('utf-8', errors='replace')


def decode_hex(data: bytes, offset: int, length: int) -> str:
    return bytes(data[offset:offset + length]).hex().upper()


def decode_uint(data: bytes, offset: int, length: int) -> int:
    """Big-endian unsigned integer, widened to 64 bits."""
    return int.from_bytes(bytes(data[offset:offset + length]), 'big') & UINT64_MASK


def decode_bool(data: bytes, offset: int, length: int) -> bool:
    if length < 1:
        return False
    return data[offset] == 1


def decode_mac(data: bytes, offset: int, length: int) -> str:
    _require(length, MAC_SIZE, "MAC address")
    return ":".join(f"{b:02X}" for b in data[offset:offset + MAC_SIZE])


def decode_ipv4(data: bytes, offset: int, length: int) -> str:
    _require(length, IPV4_SIZE, "IPv4 address")
    return ".".join(str(b) for b in data[offset:offset + IPV4_SIZE])


def decode_ip_info(data: bytes, offset: int, length: int) -> IpInfo:
    _require(length, MAC_SIZE + IPV4_SIZE, "IP info")
    return IpInfo(
        mac=decode_mac(data, offset, MAC_SIZE),
        ip=decode_ipv4(data, offset + MAC_SIZE, IPV4_SIZE),
    )


# === Encoders ===

def encode_string(value: str) -> bytes:
    return value.encode('utf-8')


def encode_uint(value: int, width: int = 4) -> bytes:
    return int(value).to_bytes(width, 'big')


def encode_bool(value: bool) -> bytes:
    return b'\x01' if value else b'\x00'


def encode_mac(mac: str) -> bytes:
    parts = mac.replace('-', ':').split(':')
    if len(parts) != MAC_SIZE:
        raise ValueError(f"Invalid MAC address: {mac}")
    return bytes(int(p, 16) for p in parts)


def encode_ipv4(ip: str) -> bytes:
    parts = ip.split('.')
    if len(parts) != IPV4_SIZE:
        raise ValueError(f"Invalid IPv4 address: {ip}")
    return bytes(int(p) for p in parts)


def encode_ip_info(info: IpInfo) -> bytes:
    return encode_mac(info.mac) + encode_ipv4(info.ip)


class RecordCodec:
    """
    Registry of per-type record decoders.

    One decoder per type code; the first registration wins. Lookups for an
    unregistered type return the default hex decoder.
    """

    def __init__(self, default: Decoder = decode_hex):
        self._decoders: Dict[int, Decoder] = {}
        self.default = default

    @classmethod
    def default_codec(cls) -> 'RecordCodec':
        """Codec with every version 1 and version 2 decoder registered."""
        codec = cls()
        codec.register_v2()
        return codec

    def register(self, code: int, decoder: Decoder) -> bool:
        """
        Register a decoder for a record type.

        Returns:
            True if stored, False if the type already had a decoder
        """
        if code in self._decoders:
            logger.debug(f"Decoder for type {code} already registered, keeping it")
            return False
        self._decoders[code] = decoder
        return True

    def unregister(self, code: int) -> Optional[Decoder]:
        return self._decoders.pop(code, None)

    def decoder_for(self, code: int) -> Decoder:
        return self._decoders.get(code, self.default)

    def decode(self, code: int, data: bytes, offset: int, length: int) -> Any:
        return self.decoder_for(code)(data, offset, length)

    def __contains__(self, code: int) -> bool:
        return code in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)

    def register_v1(self):
        """Register decoders for the record types shared by both versions."""
        self.register(c.HW_ADDRESS, decode_ipv4)
        self.register(c.IPINFO, decode_ip_info)
        self.register(c.FW_VERSION, decode_string)
        self.register(c.ADDRESS_ENTRY, decode_ipv4)
        self.register(c.MAC_ENTRY, decode_mac)
        self.register(c.USERNAME, decode_string)
        self.register(c.SALT, decode_hex)
        self.register(c.RND_CHALLENGE, decode_hex)
        self.register(c.CHALLENGE, decode_hex)
        self.register(c.UPTIME, decode_uint)
        self.register(c.HOSTNAME, decode_string)
        self.register(c.PLATFORM, decode_string)
        self.register(c.ESSID, decode_string)
        self.register(c.WIFI_MODE, decode_uint)
        self.register(c.WEB_UI, decode_uint)
        self.register(c.MODEL, decode_string)

    def register_v2(self):
        """Register version 2 decoders, pulling in version 1 if missing."""
        if c.HW_ADDRESS not in self:
            self.register_v1()
        self.register(c.SEQ, decode_uint)
        self.register(c.SOURCE_MAC, decode_mac)
        self.register(c.MODEL_V2, decode_string)
        self.register(c.SHORT_VERSION, decode_string)
        self.register(c.REQ_W, decode_string)
        self.register(c.DEFAULT, decode_bool)
        self.register(c.LOCATING, decode_bool)
        self.register(c.DHCPC, decode_bool)
        self.register(c.DHCPC_BOUND, decode_bool)
        self.register(c.SSHD_PORT, decode_uint)
