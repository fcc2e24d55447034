"""
Tests for interface enumeration with netifaces patched out.
"""

import socket
from unittest.mock import MagicMock, patch

import pytest

from ubnt_discovery.discovery.interfaces import (
    InterfaceAddress,
    is_non_loopback,
    list_interface_addresses,
)

AF_INET = 2
AF_INET6 = 10


@pytest.fixture
def fake_netifaces(monkeypatch):
    monkeypatch.setattr(socket, "if_nametoindex", lambda name: {"eth0": 2}.get(name, 0))

    fake = MagicMock()
    fake.AF_INET = AF_INET
    fake.AF_INET6 = AF_INET6
    addresses = {
        "lo": {
            AF_INET: [{'addr': "127.0.0.1"}],
            AF_INET6: [{'addr': "::1"}],
        },
        "eth0": {
            AF_INET: [{'addr': "192.168.1.10"}, {'addr': "192.168.1.10"}],
            AF_INET6: [{'addr': "fe80::1%eth0"}],
        },
        "wlan0": {
            AF_INET: [{'addr': "10.0.0.5"}, {'netmask': "255.0.0.0"}],
        },
    }
    fake.interfaces.return_value = list(addresses)
    fake.ifaddresses.side_effect = lambda name: addresses[name]

    with patch("ubnt_discovery.discovery.interfaces.netifaces", fake):
        yield fake


class TestListInterfaceAddresses:

    def test_ipv4_only(self, fake_netifaces):
        result = list_interface_addresses()

        assert result == [
            InterfaceAddress("eth0", "192.168.1.10", socket.AF_INET),
            InterfaceAddress("wlan0", "10.0.0.5", socket.AF_INET),
        ]

    def test_with_ipv6(self, fake_netifaces):
        result = list_interface_addresses(ipv6_enabled=True)

        v6 = [entry for entry in result if entry.is_ipv6]
        assert v6 == [InterfaceAddress("eth0", "fe80::1", socket.AF_INET6, 2)]
        assert len(result) == 3

    def test_vanished_interface_skipped(self, fake_netifaces):
        fake_netifaces.interfaces.return_value = ["gone", "wlan0"]
        original = fake_netifaces.ifaddresses.side_effect

        def ifaddresses(name):
            if name == "gone":
                raise ValueError("You must specify a valid interface name.")
            return original(name)

        fake_netifaces.ifaddresses.side_effect = ifaddresses

        result = list_interface_addresses()

        assert [entry.name for entry in result] == ["wlan0"]


class TestLoopback:

    def test_is_non_loopback(self):
        assert is_non_loopback("192.168.1.1")
        assert not is_non_loopback("127.0.0.1")
        assert not is_non_loopback("::1")
        assert not is_non_loopback("not-an-ip")
