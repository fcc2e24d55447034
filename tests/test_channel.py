"""
Tests for Channel and open_channel (loopback only).
"""

import socket

import pytest

from ubnt_discovery.discovery.channel import Channel, open_channel

from conftest import FakeSocket


class TestChannel:

    def test_destination_by_family(self):
        v4 = Channel(sock=FakeSocket(), interface="eth0", address="192.168.1.10")
        v6 = Channel(sock=FakeSocket(), interface="eth0", address="fe80::1",
                     family=socket.AF_INET6, scope_id=3)

        assert v4.destination("255.255.255.255", 10001) == ("255.255.255.255", 10001)
        assert v6.destination("ff02::1", 10001) == ("ff02::1", 10001, 0, 3)

    def test_ids_are_unique(self):
        first = Channel(sock=FakeSocket(), interface=None, address="0.0.0.0")
        second = Channel(sock=FakeSocket(), interface=None, address="0.0.0.0")
        assert first.id != second.id
        assert first != second
        assert str(first).endswith("*/0.0.0.0")

    def test_matches(self):
        channel = Channel(sock=FakeSocket(), interface="eth0", address="192.168.1.10")
        assert channel.matches("eth0", "192.168.1.10")
        assert not channel.matches(None, "192.168.1.10")


class TestOpenChannel:

    def test_binds_ephemeral_port_with_timeout(self):
        channel = open_channel("lo", "127.0.0.1", receive_timeout=0.05)
        try:
            assert channel.local_address[0] == "127.0.0.1"
            assert channel.local_address[1] != 0
            assert channel.sock.gettimeout() == 0.05
            with pytest.raises(socket.timeout):
                channel.sock.recvfrom(2048)
        finally:
            channel.close()

    def test_blocking_socket_rejected(self):
        with pytest.raises(ValueError):
            open_channel("lo", "127.0.0.1", receive_timeout=None)

    def test_bind_failure_raises(self):
        # TEST-NET-3 address is never assigned to a local interface
        with pytest.raises(OSError):
            open_channel("eth9", "203.0.113.77")
