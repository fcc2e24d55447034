"""
Tests for ServiceRegistry deduplication and grouping.
"""

import threading

from ubnt_discovery.discovery.registry import NO_INTERFACE, ServiceRegistry
from ubnt_discovery.protocol.service import Service

from conftest import device_reply


def received(parsers, interface="eth0", **kwargs):
    service = parsers.decode(device_reply(**kwargs))
    service.stamp(interface, (kwargs.get('ip', "192.168.1.20"), 10001))
    return service


class TestMerge:
    """Replace in place by MAC"""

    def test_new_devices_appended(self, parsers):
        registry = ServiceRegistry()

        assert registry.merge(received(parsers, mac="00:00:00:00:00:01")) == (0, False)
        assert registry.merge(received(parsers, mac="00:00:00:00:00:02")) == (1, False)
        assert len(registry) == 2

    def test_same_mac_replaced_at_same_position(self, parsers):
        registry = ServiceRegistry()
        registry.merge(received(parsers, mac="00:00:00:00:00:01"))
        registry.merge(received(parsers, mac="00:00:00:00:00:02"))
        newer = received(parsers, mac="00:00:00:00:00:01", model="U6-LR")

        assert registry.merge(newer) == (0, True)
        services = registry.services()
        assert len(services) == 2
        assert services[0] is newer
        assert registry.get("00:00:00:00:00:01").model_name == "U6-LR"

    def test_services_without_mac_always_appended(self, parsers):
        registry = ServiceRegistry()
        registry.merge(Service(version=1))
        registry.merge(Service(version=1))
        assert len(registry) == 2

    def test_callable_as_subscriber(self, parsers, bus):
        registry = ServiceRegistry()
        bus.subscribe(registry)
        bus.publish(received(parsers))
        assert len(registry) == 1

    def test_concurrent_merges(self, parsers):
        registry = ServiceRegistry()
        services = [received(parsers, mac=f"00:00:00:00:00:{i % 10:02X}") for i in range(100)]

        threads = [threading.Thread(target=registry.merge, args=(s,)) for s in services]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 10

    def test_clear(self, parsers):
        registry = ServiceRegistry()
        registry.merge(received(parsers))
        registry.clear()
        assert registry.services() == []


class TestQueries:
    """Filtering and grouping by interface"""

    def test_filter_by_interface(self, parsers):
        registry = ServiceRegistry()
        registry.merge(received(parsers, "eth0", mac="00:00:00:00:00:01"))
        registry.merge(received(parsers, "wlan0", mac="00:00:00:00:00:02"))

        assert [s.interface for s in registry.filter(["wlan0"])] == ["wlan0"]
        assert len(registry.filter([])) == 2

    def test_grouped(self, parsers):
        registry = ServiceRegistry()
        registry.merge(received(parsers, "eth0", mac="00:00:00:00:00:01"))
        registry.merge(received(parsers, None, mac="00:00:00:00:00:02"))
        registry.merge(received(parsers, "eth0", mac="00:00:00:00:00:03"))

        groups = registry.grouped()

        assert list(groups) == ["eth0", NO_INTERFACE]
        assert len(groups["eth0"]) == 2
