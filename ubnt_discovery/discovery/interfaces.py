"""
Interface Enumerator

Lists the local addresses discovery traffic is sent from. Loopback
addresses are never used; IPv6 addresses only when enabled.
"""

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import List, Set, Tuple

import netifaces

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterfaceAddress:
    """One bindable address on a local interface."""
    name: str
    address: str
    family: int
    scope_id: int = 0

    @property
    def is_ipv6(self) -> bool:
        return self.family == socket.AF_INET6


def _split_scope(address: str) -> Tuple[str, str]:
    # netifaces reports link-local IPv6 addresses as "fe80::1%eth0"
    address, _, scope = address.partition('%')
    return address, scope


def _scope_id(name: str, scope: str) -> int:
    try:
        return socket.if_nametoindex(scope or name)
    except OSError:
        return 0


def is_non_loopback(address: str) -> bool:
    try:
        return not ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


def list_interface_addresses(ipv6_enabled: bool = False) -> List[InterfaceAddress]:
    """
    Enumerate usable (interface, address) pairs.

    Args:
        ipv6_enabled: Include IPv6 addresses

    Returns:
        Addresses in interface order, without duplicates
    """
    families = [netifaces.AF_INET]
    if ipv6_enabled:
        families.append(netifaces.AF_INET6)

    result: List[InterfaceAddress] = []
    seen: Set[Tuple[str, str]] = set()

    for name in netifaces.interfaces():
        try:
            addrs = netifaces.ifaddresses(name)
        except ValueError as e:
            logger.warning(f"Skipping interface {name}: {e}")
            continue

        for family in families:
            for addr_info in addrs.get(family, []):
                raw = addr_info.get('addr')
                if not raw:
                    continue
                address, scope = _split_scope(raw)
                if not is_non_loopback(address):
                    continue
                if (name, address) in seen:
                    continue
                seen.add((name, address))

                if family == netifaces.AF_INET6:
                    entry = InterfaceAddress(name, address, socket.AF_INET6, _scope_id(name, scope))
                else:
                    entry = InterfaceAddress(name, address, socket.AF_INET)
                result.append(entry)

    logger.debug(f"Found {len(result)} usable interface addresses")
    return result
