"""
Discovery Server (Channel Manager)

Design Decision: Worker Per Channel
===================================

Options Considered:
1. One asyncio event loop for every socket
   - Single thread, but every socket must be non-blocking
2. One blocking receive worker per channel
   - Each bound address is listened on independently
   - Simple sequential loop per socket

Decision: ThreadPoolExecutor sized to the channel count
- A slow or silent interface never delays another
- Receives carry a short socket timeout so every worker re-checks the
  shared finished flag a few times per second and exits promptly

Channel set rules:
- Built during setup(), at most one channel per (interface, address)
- Mutated only under the channel lock
- A channel whose send fails is closed and dropped after the send pass,
  matched by identity
"""

import ipaddress
import logging
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol, Tuple

from ..protocol import constants as c
from ..protocol.parser import ParserRegistry
from .channel import Channel, DEFAULT_RECEIVE_BUFFER, open_channel
from .events import EventBus
from .interfaces import InterfaceAddress, list_interface_addresses

logger = logging.getLogger(__name__)

RECEIVE_SIZE = 2048
DEFAULT_RECEIVE_TIMEOUT = 0.3

InterfaceLister = Callable[[bool], List[InterfaceAddress]]
ChannelFactory = Callable[..., Channel]


class QueryServer(Protocol):
    """What the scheduler needs from a discovery server."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def is_finished(self) -> bool: ...

    def send_queries(self) -> None: ...


def address_family(host: str) -> int:
    return socket.AF_INET6 if ipaddress.ip_address(host).version == 6 else socket.AF_INET


class DiscoveryServer:
    """
    Owns the discovery channels: binds them, sends queries on them and runs
    one receive worker per channel that publishes decoded Services.
    """

    def __init__(self, parsers: ParserRegistry, bus: EventBus, *,
                 ipv6_enabled: bool = False,
                 port: int = c.DISCOVERY_PORT,
                 receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT,
                 receive_buffer: int = DEFAULT_RECEIVE_BUFFER,
                 interface_lister: InterfaceLister = list_interface_addresses,
                 channel_factory: ChannelFactory = open_channel,
                 name: str = "DiscoveryServer"):
        """
        Initialize the server. No sockets are opened until setup().

        Args:
            parsers: Version -> parser registry used to decode replies
            bus: Event bus decoded services are published on
            ipv6_enabled: Also bind IPv6 addresses
            port: Destination port for queries
            receive_timeout: Socket receive timeout in seconds, must be positive
            receive_buffer: SO_RCVBUF for each channel
            interface_lister: Returns the addresses to bind
            channel_factory: Opens a Channel (see open_channel)
            name: Name used in log messages and worker threads
        """
        if receive_timeout is None or receive_timeout <= 0:
            raise ValueError(f"receive_timeout must be positive, got {receive_timeout}")

        self.parsers = parsers
        self.bus = bus
        self.ipv6_enabled = ipv6_enabled
        self.port = port
        self.receive_timeout = receive_timeout
        self.receive_buffer = receive_buffer
        self.name = name

        self._list_interfaces = interface_lister
        self._open_channel = channel_factory

        self._channels: List[Channel] = []
        self._channel_lock = threading.Lock()

        self._finished = threading.Event()
        self._finished.set()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._workers: List[Future] = []

    @property
    def channels(self) -> List[Channel]:
        with self._channel_lock:
            return list(self._channels)

    # === Setup ===

    def setup(self) -> int:
        """
        Bind a channel on every usable local address plus one on 0.0.0.0.

        Returns:
            Number of live channels
        """
        for entry in self._list_interfaces(self.ipv6_enabled):
            if entry.is_ipv6 and not self.ipv6_enabled:
                continue
            self.bind(entry.name, entry.address, entry.family, entry.scope_id)

        self.bind(None, c.ANY_ADDRESS_V4, socket.AF_INET)

        count = len(self.channels)
        logger.info(f"{self.name}: {count} channel(s) bound")
        return count

    def bind(self, interface: Optional[str], address: str,
             family: int = socket.AF_INET, scope_id: int = 0) -> bool:
        """Open a channel on one address; failures are logged and skipped."""
        with self._channel_lock:
            if any(ch.matches(interface, address) for ch in self._channels):
                logger.debug(f"{self.name}: already bound to {interface}/{address}")
                return False

            try:
                channel = self._open_channel(
                    interface, address, family,
                    scope_id=scope_id,
                    receive_timeout=self.receive_timeout,
                    receive_buffer=self.receive_buffer,
                )
            except OSError as e:
                logger.warning(f"{self.name}: bind to {interface}/{address} failed: {e}")
                return False

            self._channels.append(channel)

        logger.info(f"{self.name}: bound channel {channel}")
        return True

    # === Sending ===

    def query_datagrams(self) -> List[Tuple[bytes, Tuple[str, int]]]:
        """(payload, destination) pairs sent for one query burst."""
        return [
            (c.QUERY_V1, (c.BROADCAST_V4, self.port)),
            (c.QUERY_V2, (c.BROADCAST_V4, self.port)),
            (c.QUERY_V1, (c.BROADCAST_V6, self.port)),
            (c.QUERY_V2, (c.BROADCAST_V6, self.port)),
        ]

    def send(self, payload: bytes, destination: Tuple[str, int]) -> int:
        """
        Send one datagram on every channel of the destination's family.

        Channels whose send fails are closed and removed afterwards.

        Returns:
            Number of channels the datagram was sent on
        """
        host, port = destination[0], destination[1]
        family = address_family(host)
        failed: List[Channel] = []
        sent = 0

        with self._channel_lock:
            for channel in self._channels:
                if channel.family != family:
                    continue
                try:
                    logger.debug(f"{self.name}: send from {channel} to {host}:{port}")
                    channel.sock.sendto(payload, channel.destination(host, port))
                    sent += 1
                except OSError as e:
                    logger.warning(f"{self.name}: send on {channel} failed: {e}")
                    failed.append(channel)

            for channel in failed:
                channel.close()
                self._channels.remove(channel)

        if failed:
            logger.info(f"{self.name}: dropped {len(failed)} channel(s) after send failures")
        return sent

    def send_queries(self):
        for payload, destination in self.query_datagrams():
            self.send(payload, destination)

    # === Receiving ===

    def start(self):
        """Start one receive worker per channel."""
        self._shutdown_workers()
        self._finished.clear()

        channels = self.channels
        if not channels:
            logger.warning(f"{self.name}: no channels to listen on")
            return

        self._executor = ThreadPoolExecutor(
            max_workers=len(channels),
            thread_name_prefix=self.name,
        )
        self._workers = [self._executor.submit(self._listen, ch) for ch in channels]
        logger.info(f"{self.name}: listening on {len(channels)} channel(s)")

    def _listen(self, channel: Channel):
        """Receive loop for one channel; returns when finished."""
        sock = channel.sock
        while not self._finished.is_set():
            try:
                data, addr = sock.recvfrom(RECEIVE_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if not self._finished.is_set():
                    logger.warning(f"{self.name}: receive on {channel} failed: {e}")
                break

            if len(data) == 0:
                break
            if len(data) == c.QUERY_SIZE:
                # Our own query, or another instance's
                continue

            logger.debug(f"{self.name}: {len(data)} bytes from {addr[0]} on {channel}")
            service = self.parsers.parse(data)
            if service is None:
                continue

            service.stamp(channel.interface, addr)
            self.bus.publish(service)

        logger.debug(f"{self.name}: receive loop for {channel} ended")

    def stop(self):
        """Ask every receive loop to end."""
        self._finished.set()

    def is_finished(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: Optional[float] = None):
        """Block until every receive worker has returned."""
        for worker in list(self._workers):
            worker.result(timeout=timeout)

    def _shutdown_workers(self):
        if self._executor is not None:
            self._finished.set()
            self._executor.shutdown(wait=True)
            self._executor = None
            self._workers = []

    def close(self):
        """Stop receiving and close every channel."""
        self._shutdown_workers()
        with self._channel_lock:
            for channel in self._channels:
                channel.close()
            self._channels.clear()
        logger.info(f"{self.name}: closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
