"""
Discovery Channels

A channel is one UDP socket bound to a single local address (port 0, the
kernel picks). Replies to a query come back to the sending socket, so each
channel both sends and receives.
"""

import ipaddress
import itertools
import logging
import socket
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..protocol import constants as c

logger = logging.getLogger(__name__)

DEFAULT_RECEIVE_BUFFER = 4096 * 2

_channel_ids = itertools.count(1)


@dataclass(eq=False)
class Channel:
    """An open socket bound to one (interface, address) pair."""
    sock: socket.socket
    interface: Optional[str]
    address: str
    family: int = socket.AF_INET
    scope_id: int = 0
    id: int = field(default_factory=lambda: next(_channel_ids))

    @property
    def is_ipv6(self) -> bool:
        return self.family == socket.AF_INET6

    @property
    def local_address(self) -> Tuple:
        return self.sock.getsockname()

    def matches(self, interface: Optional[str], address: str) -> bool:
        return self.interface == interface and self.address == address

    def destination(self, host: str, port: int) -> Tuple:
        """Socket address for sendto() in this channel's family."""
        if self.is_ipv6:
            return (host, port, 0, self.scope_id)
        return (host, port)

    def close(self):
        try:
            self.sock.close()
        except OSError as e:
            logger.error(f"Error closing channel {self}: {e}")

    def __str__(self):
        return f"#{self.id} {self.interface or '*'}/{self.address}"


def _join_multicast(sock: socket.socket, group: str, address: str):
    mreq = socket.inet_aton(group) + socket.inet_aton(address)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)


def open_channel(interface: Optional[str], address: str, family: int = socket.AF_INET,
                 scope_id: int = 0, receive_timeout: float = 0.3,
                 receive_buffer: int = DEFAULT_RECEIVE_BUFFER,
                 multicast_group: Optional[str] = c.MULTICAST_V4) -> Channel:
    """
    Create and bind a channel socket.

    IPv4 channels also join the discovery multicast group on their address.

    Raises:
        ValueError: if receive_timeout is not a positive number of seconds
        OSError: if the socket cannot be created or bound
    """
    if receive_timeout is None or receive_timeout <= 0:
        raise ValueError(f"receive_timeout must be positive, got {receive_timeout}")

    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, receive_buffer)

        if family == socket.AF_INET6:
            bind_scope = scope_id if ipaddress.ip_address(address).is_link_local else 0
            sock.bind((address, 0, 0, bind_scope))
        else:
            sock.bind((address, 0))

        if family == socket.AF_INET and multicast_group:
            try:
                _join_multicast(sock, multicast_group, address)
            except OSError as e:
                logger.debug(f"Could not join {multicast_group} on {address}: {e}")

        sock.settimeout(receive_timeout)
    except OSError:
        sock.close()
        raise

    return Channel(sock=sock, interface=interface, address=address,
                   family=family, scope_id=scope_id)
