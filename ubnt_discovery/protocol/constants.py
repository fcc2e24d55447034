"""
Discovery Protocol Constants

Wire Format
===========

All multi-byte integers are big-endian.

```
+---------+---------+-----------------+---------------------------+
| Ver (1) | Cmd (1) | Length (2)      | Records (Length bytes)    |
+---------+---------+-----------------+---------------------------+

Record:
+----------+------------+-------------------+
| Type (1) | Length (2) | Value (Length)    |
+----------+------------+-------------------+
```

Two wire versions exist. Version 1 devices answer the 4-byte query
``01 00 00 00``; version 2 devices answer ``02 08 00 00``. Both reply to
UDP port 10001. Record type codes are shared between versions, version 2
adds a few of its own.
"""

from typing import Dict


# Record types (both versions)
HW_ADDRESS = 1
IPINFO = 2
FW_VERSION = 3
ADDRESS_ENTRY = 4
MAC_ENTRY = 5
USERNAME = 6
SALT = 7
RND_CHALLENGE = 8
CHALLENGE = 9
UPTIME = 10
HOSTNAME = 11
PLATFORM = 12
ESSID = 13
WIFI_MODE = 14
WEB_UI = 16
MODEL = 20

# Record types (version 2 only)
SEQ = 18
SOURCE_MAC = 19
MODEL_V2 = 21
SHORT_VERSION = 22
DEFAULT = 23
LOCATING = 24
DHCPC = 25
DHCPC_BOUND = 26
REQ_W = 27
SSHD_PORT = 28

TYPE_NAMES: Dict[int, str] = {
    HW_ADDRESS: "HW_ADDRESS",
    IPINFO: "IPINFO",
    FW_VERSION: "FW_VERSION",
    ADDRESS_ENTRY: "ADDRESS_ENTRY",
    MAC_ENTRY: "MAC_ENTRY",
    USERNAME: "USERNAME",
    SALT: "SALT",
    RND_CHALLENGE: "RND_CHALLENGE",
    CHALLENGE: "CHALLENGE",
    UPTIME: "UPTIME",
    HOSTNAME: "HOSTNAME",
    PLATFORM: "PLATFORM",
    ESSID: "ESSID",
    WIFI_MODE: "WIFI_MODE",
    WEB_UI: "WEB_UI",
    SEQ: "SEQ",
    SOURCE_MAC: "SOURCE_MAC",
    MODEL: "MODEL",
    MODEL_V2: "MODEL_V2",
    SHORT_VERSION: "SHORT_VERSION",
    DEFAULT: "DEFAULT",
    LOCATING: "LOCATING",
    DHCPC: "DHCPC",
    DHCPC_BOUND: "DHCPC_BOUND",
    REQ_W: "REQ_W",
    SSHD_PORT: "SSHD_PORT",
}

# Command byte values seen in version 2 replies
CMD_NONE = 0
CMD_TIMESTAMP = 6
CMD_SSH = 11

# Query datagrams
QUERY_V1 = bytes([0x01, 0x00, 0x00, 0x00])
QUERY_V2 = bytes([0x02, 0x08, 0x00, 0x00])

HEADER_SIZE = 4
QUERY_SIZE = 4

# Network
BROADCAST_V4 = "255.255.255.255"
BROADCAST_V6 = "ff02::1"
MULTICAST_V4 = "233.89.188.1"
ANY_ADDRESS_V4 = "0.0.0.0"
DISCOVERY_PORT = 10001

WIRELESS_MODES = ("auto", "adhoc", "station", "ap", "repeater", "secondary", "monitor")


def type_name(code: int) -> str:
    """Return the symbolic name of a record type, or the code as text."""
    return TYPE_NAMES.get(code, str(code))


def is_known_type(code: int) -> bool:
    return code in TYPE_NAMES
