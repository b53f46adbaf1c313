"""Configuration data structures for management port provisioning.

These dataclasses describe the cluster-wide knobs the provisioner consumes.
They are populated either by the standalone agent's YAML loader
(:mod:`ovn_mgmt_agent.config`) or from oslo.config when embedded in a larger
agent (:mod:`ovn_mgmt_port.opts`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Linux IFNAMSIZ is 16 including the trailing NUL.
MAX_INTERFACE_NAME_LENGTH = 15


class HostBackend(Enum):
    """How host kernel networking is programmed."""

    PYROUTE2 = "pyroute2"
    IPROUTE2 = "iproute2"


@dataclass(frozen=True)
class ProvisionerConfig:
    """Cluster-wide settings shared by every node provisioning run.

    Attributes
    ----------
    mtu:
        MTU requested for the OVS internal interface.
    integration_bridge:
        OVS bridge every node interface is attached to.
    interface_prefix:
        Fixed prefix of the host interface name.
    node_name_length:
        Number of node-name characters kept after the prefix.  The default
        of 11 together with ``k8s-`` fills the 15 characters Linux allows.
    cluster_router_tag, lb_tcp_tag, lb_udp_tag:
        ``external_ids`` keys (with value ``yes``) used to discover the
        distributed router and the cluster load balancers.
    """

    mtu: int = 1400
    integration_bridge: str = "br-int"
    interface_prefix: str = "k8s-"
    node_name_length: int = 11
    cluster_router_tag: str = "k8s-cluster-router"
    lb_tcp_tag: str = "k8s-cluster-lb-tcp"
    lb_udp_tag: str = "k8s-cluster-lb-udp"

    def __post_init__(self) -> None:
        if self.mtu <= 0:
            raise ValueError(f"mtu must be positive, got {self.mtu}")
        if self.node_name_length <= 0:
            raise ValueError("node_name_length must be positive")
        if len(self.interface_prefix) + self.node_name_length > MAX_INTERFACE_NAME_LENGTH:
            raise ValueError(
                f"interface prefix {self.interface_prefix!r} plus "
                f"{self.node_name_length} node-name characters exceeds "
                f"{MAX_INTERFACE_NAME_LENGTH} characters"
            )


@dataclass(frozen=True)
class NorthboundConfig:
    """How to reach the OVN Northbound database."""

    connection: Optional[str] = None
    timeout: Optional[int] = 15


@dataclass(frozen=True)
class HostConfig:
    backend: HostBackend = HostBackend.PYROUTE2
