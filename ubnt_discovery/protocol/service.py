"""
Service and Record Data Structures

A Service is one decoded discovery reply. It holds its records in wire
order; lookups by type return the first match since a type may repeat.

The envelope (receiving interface and sender address) is stamped once by
the channel that received the datagram, before anyone else sees the
Service. After that a Service is never changed: a newer reply from the
same device produces a new Service that supersedes it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import constants as c
from .records import IpInfo

UNKNOWN = "unknown"


@dataclass
class Record:
    """
    One TLV entry of a Service.

    ``offset``/``length`` locate the raw value inside ``buffer``, the
    datagram the record was decoded from.
    """
    type: int
    offset: int
    length: int
    payload: Any = None
    buffer: bytes = field(default=b'', repr=False, compare=False)

    @property
    def data(self) -> bytes:
        """Raw value bytes."""
        return bytes(self.buffer[self.offset:self.offset + self.length])

    @property
    def type_name(self) -> str:
        return c.type_name(self.type)

    @property
    def is_known(self) -> bool:
        return c.is_known_type(self.type)


@dataclass
class Service:
    """A discovered device."""
    version: int
    command: int = c.CMD_NONE
    records: List[Record] = field(default_factory=list)
    interface: Optional[str] = None
    source_address: Optional[Tuple] = None
    _stamped: bool = field(default=False, init=False, repr=False, compare=False)

    def add(self, record: Record):
        """Append a record (only done while decoding)."""
        if record is not None:
            self.records.append(record)

    def stamp(self, interface: Optional[str], source_address: Tuple):
        """
        Set the receiving interface and sender address.

        Raises:
            RuntimeError: if the Service was already stamped
        """
        if self._stamped:
            raise RuntimeError("Service envelope already set")
        self.interface = interface
        self.source_address = source_address
        self._stamped = True

    @property
    def is_stamped(self) -> bool:
        return self._stamped

    def get(self, code: int) -> Optional[Record]:
        """Return the first record of the given type, or None."""
        for record in self.records:
            if record.type == code:
                return record
        return None

    def payload(self, code: int, default: Any = None) -> Any:
        record = self.get(code)
        return record.payload if record is not None else default

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    # === Derived fields ===

    @property
    def source_ip(self) -> Optional[str]:
        return self.source_address[0] if self.source_address else None

    @property
    def ip_info(self) -> Optional[IpInfo]:
        payload = self.payload(c.IPINFO)
        return payload if isinstance(payload, IpInfo) else None

    @property
    def mac(self) -> Optional[str]:
        info = self.ip_info
        return info.mac if info else None

    @property
    def ip(self) -> Optional[str]:
        info = self.ip_info
        return info.ip if info else self.source_ip

    @property
    def hostname(self) -> Optional[str]:
        return self.payload(c.HOSTNAME)

    @property
    def firmware(self) -> Optional[str]:
        return self.payload(c.FW_VERSION)

    @property
    def model_name(self) -> Optional[str]:
        record = self.get(c.MODEL) or self.get(c.MODEL_V2)
        return record.payload if record is not None else None

    @property
    def uptime_seconds(self) -> Optional[int]:
        value = self.payload(c.UPTIME)
        return value if isinstance(value, int) else None

    def format_uptime(self) -> str:
        """Uptime as ``N day(s) HH:MM:SS``, empty if not reported."""
        value = self.uptime_seconds
        if value is None:
            return ""
        days, rest = divmod(value, 86400)
        hours, rest = divmod(rest, 3600)
        minutes, seconds = divmod(rest, 60)
        unit = "day" if days == 1 else "days"
        return f"{days} {unit} {hours:02d}:{minutes:02d}:{seconds:02d}"

    @property
    def has_web_ui(self) -> bool:
        return self.get(c.WEB_UI) is not None

    @property
    def web_ui_port(self) -> int:
        """Web UI port; version 1 packs it low, version 2 in the second byte."""
        value = self.payload(c.WEB_UI)
        if not isinstance(value, int):
            return 0
        if self.version == 1:
            return value & 0xFFFF
        return (value >> 8) & 0xFF

    @property
    def web_ui_protocol(self) -> str:
        value = self.payload(c.WEB_UI)
        if not isinstance(value, int):
            return UNKNOWN
        if self.version == 1:
            secure = (value >> 16) > 0
        else:
            secure = (value & 0xFF) > 0
        return "https" if secure else "http"

    @property
    def status(self) -> str:
        record = self.get(c.DEFAULT)
        if record is None:
            return "Unknown"
        if isinstance(record.payload, str):
            return record.payload
        return "Pending" if record.payload else "Managed/Adopted"

    @property
    def wireless_mode(self) -> str:
        mode = self.payload(c.WIFI_MODE)
        if not isinstance(mode, int) or mode >= len(c.WIRELESS_MODES):
            return UNKNOWN
        return c.WIRELESS_MODES[mode]

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for exporters and JSON output."""
        return {
            'version': self.version,
            'interface': self.interface,
            'source': self.source_ip,
            'mac': self.mac,
            'ip': self.ip,
            'model': self.model_name,
            'hostname': self.hostname,
            'firmware': self.firmware,
            'status': self.status,
            'records': [
                {
                    'type': r.type,
                    'name': r.type_name,
                    'known': r.is_known,
                    'value': str(r.payload),
                }
                for r in self.records
            ],
        }
