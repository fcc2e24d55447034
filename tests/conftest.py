"""Shared fixtures: in-memory sockets and channels, no real network access."""

import queue
import socket
import threading

import pytest

from ubnt_discovery.discovery.channel import Channel
from ubnt_discovery.discovery.events import EventBus
from ubnt_discovery.protocol import ParserRegistry, RecordCodec
from ubnt_discovery.protocol import constants as c
from ubnt_discovery.protocol.parser import build_packet
from ubnt_discovery.protocol.records import encode_ip_info, encode_string, IpInfo


class FakeSocket:
    """Datagram socket stand-in fed from a queue."""

    def __init__(self, address=("0.0.0.0", 40000), timeout=0.01):
        self.address = address
        self.timeout = timeout
        self.inbox = queue.Queue()
        self.sent = []
        self.closed = False
        self.fail_send = False
        self._lock = threading.Lock()

    def feed(self, data, addr=("192.168.1.20", c.DISCOVERY_PORT)):
        self.inbox.put((data, addr))

    def recvfrom(self, size):
        if self.closed:
            raise OSError("socket closed")
        try:
            return self.inbox.get(timeout=self.timeout)
        except queue.Empty:
            raise socket.timeout("timed out")

    def sendto(self, data, destination):
        if self.closed:
            raise OSError("socket closed")
        if self.fail_send:
            raise OSError("network unreachable")
        with self._lock:
            self.sent.append((data, destination))
        return len(data)

    def getsockname(self):
        return self.address

    def close(self):
        self.closed = True


def make_channel(interface="eth0", address="192.168.1.10", family=socket.AF_INET):
    return Channel(sock=FakeSocket(address=(address, 40000)), interface=interface,
                   address=address, family=family)


class ChannelFactory:
    """Records every channel it opens; addresses in ``fail`` raise OSError."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.opened = []

    def __call__(self, interface, address, family=socket.AF_INET, **kwargs):
        if address in self.fail:
            raise OSError(f"cannot bind {address}")
        channel = make_channel(interface, address, family)
        self.opened.append(channel)
        return channel


def device_reply(mac="24:5A:4C:11:22:33", ip="192.168.1.20", model="U7PG2", version=2):
    """A well-formed reply datagram."""
    model_type = c.MODEL_V2 if version == 2 else c.MODEL
    return build_packet(version, 0, [
        (c.IPINFO, encode_ip_info(IpInfo(mac, ip))),
        (model_type, encode_string(model)),
        (c.HOSTNAME, encode_string("ap-lobby")),
    ])


@pytest.fixture
def codec():
    return RecordCodec.default_codec()


@pytest.fixture
def parsers(codec):
    return ParserRegistry.default_registry(codec)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def channel_factory():
    return ChannelFactory()
