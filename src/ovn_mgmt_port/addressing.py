"""Address and name derivation for a node's management port."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Union

from .exceptions import InvalidSubnet

LOG = logging.getLogger(__name__)

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

ROUTER_OFFSET = 1
MANAGEMENT_OFFSET = 2

ROUTER_PORT_PREFIX = "rtos-"
SWITCH_ROUTER_PORT_PREFIX = "stor-"
MANAGEMENT_PORT_PREFIX = "k8s-"


@dataclass(frozen=True)
class NodeAddresses:
    """Addresses derived from a node's local subnet."""

    subnet: IPNetwork
    router_ip: IPAddress
    management_ip: IPAddress

    @property
    def prefixlen(self) -> int:
        return self.subnet.prefixlen

    @property
    def router_cidr(self) -> str:
        return f"{self.router_ip}/{self.prefixlen}"

    @property
    def management_cidr(self) -> str:
        return f"{self.management_ip}/{self.prefixlen}"


def parse_subnet(value: str) -> IPNetwork:
    """Parse ``value`` as a CIDR block.

    Host bits are masked off, so ``10.1.2.7/24`` is read as ``10.1.2.0/24``.
    A bare address without a prefix length is rejected.
    """

    if not isinstance(value, str) or "/" not in value:
        raise InvalidSubnet(str(value), "expected <address>/<prefixlen>")
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError as exc:
        raise InvalidSubnet(value, str(exc)) from exc


def host_address(subnet: IPNetwork, offset: int) -> IPAddress:
    """Return the address ``offset`` positions after the network address."""

    if offset <= 0:
        raise ValueError("offset must be positive")
    last = subnet.num_addresses - 1
    # IPv4 reserves the top address for broadcast.
    if subnet.version == 4:
        last -= 1
    if offset > last:
        raise InvalidSubnet(
            str(subnet), f"no usable host address at offset {offset}"
        )
    return subnet.network_address + offset


def derive_addresses(local_subnet: str) -> NodeAddresses:
    """Derive the router and management addresses of ``local_subnet``.

    >>> derive_addresses("10.1.2.0/24").router_cidr
    '10.1.2.1/24'
    >>> derive_addresses("10.1.2.0/24").management_cidr
    '10.1.2.2/24'
    """

    subnet = parse_subnet(local_subnet)
    return NodeAddresses(
        subnet=subnet,
        router_ip=host_address(subnet, ROUTER_OFFSET),
        management_ip=host_address(subnet, MANAGEMENT_OFFSET),
    )


def normalize_node_name(node_name: str) -> str:
    """Lower-case ``node_name`` for Northbound lookups.

    Cluster pod events carry the lower-cased hostname even when the node
    agent was registered with a mixed-case one.  Northbound lookups are
    case-sensitive, so every object this package names uses the lower-cased
    form to match what the rest of the cluster will ask for.
    """

    if not node_name or not node_name.strip():
        raise ValueError("node name must not be empty")
    normalized = node_name.strip().lower()
    if normalized != node_name:
        LOG.info("Normalized node name %r to %r", node_name, normalized)
    return normalized


def router_port_name(node_name: str) -> str:
    return ROUTER_PORT_PREFIX + node_name


def switch_router_port_name(node_name: str) -> str:
    return SWITCH_ROUTER_PORT_PREFIX + node_name


def management_port_name(node_name: str) -> str:
    """Logical switch port name, also used as the interface ``iface-id``."""

    return MANAGEMENT_PORT_PREFIX + node_name


def interface_name(node_name: str, prefix: str = "k8s-", max_node_chars: int = 11) -> str:
    """Return the bounded host interface name for ``node_name``.

    Only the first ``max_node_chars`` characters of the node name are kept so
    the prefixed name fits the kernel's interface name limit.
    """

    return prefix + node_name[:max_node_chars]
