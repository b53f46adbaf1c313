"""Node management port provisioning.

The :class:`TopologyProvisioner` converges everything a node needs to join
the overlay: its logical switch and router port in the OVN Northbound
database, an OVS internal interface on the integration bridge, the host
address and route for that interface, and the bindings to the cluster load
balancers.  Every command it issues is an upsert, so re-running
:meth:`TopologyProvisioner.provision` after a partial failure is safe and is
the intended recovery.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from . import addressing
from .clients import HostNetwork, NorthboundClient, VSwitchClient
from .config import HostBackend, HostConfig, NorthboundConfig, ProvisionerConfig
from .exceptions import InterfaceNotReady, LoadBalancerNotFound, ManagementPortError
from .host import HostInterfaceConfigurator
from .netlink import IPRoute2Host, PyRoute2Host
from .northbound import OvnNbIdl
from .ovsdb import OvsVsctl
from .utils import generate_mac, get_cluster_router, is_usable_mac

LOG = logging.getLogger(__name__)

RouterResolver = Callable[[NorthboundClient, str], str]


@dataclass(frozen=True)
class ProvisionResult:
    """What a successful provisioning run converged to."""

    node_name: str
    addresses: addressing.NodeAddresses
    router_mac: str
    router_port_reused: bool
    interface_name: str
    interface_mac: str
    lb_tcp: str
    lb_udp: str


@contextmanager
def _operation(description: str) -> Iterator[None]:
    """Tag any provisioning error raised inside the block with ``description``."""

    try:
        yield
    except ManagementPortError as exc:
        if exc.operation is None:
            exc.operation = description
        LOG.error("Failed to %s: %s", description, exc.message)
        raise


class TopologyProvisioner:
    """Create or converge the management port of a single node."""

    def __init__(
        self,
        nb: NorthboundClient,
        vswitch: VSwitchClient,
        host: HostInterfaceConfigurator,
        config: Optional[ProvisionerConfig] = None,
        *,
        mac_generator: Callable[[], str] = generate_mac,
        router_resolver: RouterResolver = get_cluster_router,
    ) -> None:
        self._nb = nb
        self._vswitch = vswitch
        self._host = host
        self._config = config or ProvisionerConfig()
        self._mac_generator = mac_generator
        self._router_resolver = router_resolver

    def provision(self, node_name: str, local_subnet: str, cluster_subnet: str) -> ProvisionResult:
        """Provision ``node_name`` and return the converged state.

        Raises the first :class:`~ovn_mgmt_port.exceptions.ManagementPortError`
        encountered; nothing is rolled back.
        """

        with _operation(f"derive addresses from {local_subnet}"):
            addresses = addressing.derive_addresses(local_subnet)
        with _operation(f"parse cluster subnet {cluster_subnet}"):
            cluster = addressing.parse_subnet(cluster_subnet)
        node = addressing.normalize_node_name(node_name)

        LOG.info(
            "Provisioning management port for node %s (subnet=%s router=%s)",
            node,
            addresses.subnet,
            addresses.router_cidr,
        )

        router_mac, reused = self._ensure_router_port(node, addresses)
        self._ensure_switch(node, addresses, router_mac)
        iface, iface_mac = self._ensure_interface(node)
        self._ensure_management_port(node, iface_mac, addresses)

        with _operation(f"configure host interface {iface}"):
            self._host.configure(
                node,
                str(cluster),
                str(addresses.router_ip),
                iface,
                addresses.management_cidr,
            )

        lb_tcp = self._bind_load_balancer(node, "tcp", self._config.lb_tcp_tag, additive=False)
        lb_udp = self._bind_load_balancer(node, "udp", self._config.lb_udp_tag, additive=True)

        LOG.info("Node %s management port ready on %s", node, iface)
        return ProvisionResult(
            node_name=node,
            addresses=addresses,
            router_mac=router_mac,
            router_port_reused=reused,
            interface_name=iface,
            interface_mac=iface_mac,
            lb_tcp=lb_tcp,
            lb_udp=lb_udp,
        )

    # ------------------------------------------------------------------
    # Northbound objects
    # ------------------------------------------------------------------
    def _ensure_router_port(self, node: str, addresses: addressing.NodeAddresses):
        port = addressing.router_port_name(node)
        with _operation(f"look up logical router port {port}"):
            mac = self._nb.get("logical_router_port", port, "mac")
        if is_usable_mac(mac):
            LOG.debug("Reusing router port %s with MAC %s", port, mac)
            return mac, True

        mac = self._mac_generator()
        with _operation("resolve cluster router"):
            router = self._router_resolver(self._nb, self._config.cluster_router_tag)
        with _operation(f"add logical router port {port}"):
            self._nb.upsert_router_port(router, port, mac, [addresses.router_cidr])
        LOG.info("Created router port %s (mac=%s, network=%s)", port, mac, addresses.router_cidr)
        return mac, False

    def _ensure_switch(self, node: str, addresses: addressing.NodeAddresses, router_mac: str) -> None:
        with _operation(f"create logical switch {node}"):
            self._nb.upsert_switch(
                node,
                {
                    "other_config": {"subnet": str(addresses.subnet)},
                    "external_ids": {"gateway_ip": addresses.router_cidr},
                },
            )

        port = addressing.switch_router_port_name(node)
        with _operation(f"connect logical switch {node} to the cluster router"):
            self._nb.upsert_switch_port(
                node,
                port,
                addresses=[router_mac],
                columns={
                    "type": "router",
                    "options": {"router-port": addressing.router_port_name(node)},
                },
            )

    def _ensure_management_port(
        self, node: str, iface_mac: str, addresses: addressing.NodeAddresses
    ) -> None:
        port = addressing.management_port_name(node)
        with _operation(f"add logical switch port {port}"):
            self._nb.upsert_switch_port(
                node, port, addresses=[f"{iface_mac} {addresses.management_ip}"]
            )

    # ------------------------------------------------------------------
    # Open vSwitch interface
    # ------------------------------------------------------------------
    def _ensure_interface(self, node: str):
        bridge = self._config.integration_bridge
        with _operation(f"create bridge {bridge}"):
            self._vswitch.ensure_bridge(bridge)

        iface = addressing.interface_name(
            node, self._config.interface_prefix, self._config.node_name_length
        )
        with _operation(f"add internal interface {iface} to {bridge}"):
            self._vswitch.upsert_port(
                bridge,
                iface,
                {
                    "type": "internal",
                    "mtu_request": self._config.mtu,
                    "external_ids": {"iface-id": addressing.management_port_name(node)},
                },
            )

        with _operation(f"read MAC address of {iface}"):
            mac = self._vswitch.get("interface", iface, "mac_in_use")
            if not is_usable_mac(mac):
                raise InterfaceNotReady(iface, mac)
        return iface, mac

    # ------------------------------------------------------------------
    # Load balancers
    # ------------------------------------------------------------------
    def _bind_load_balancer(self, node: str, protocol: str, tag: str, *, additive: bool) -> str:
        with _operation(f"bind cluster {protocol.upper()} load balancer to {node}"):
            found = self._nb.find("load_balancer", {f"external_ids:{tag}": "yes"})
            if not found:
                raise LoadBalancerNotFound(protocol, tag)
            if len(found) > 1:
                LOG.warning(
                    "Found %d load balancers tagged %s, using %s", len(found), tag, found[0]
                )
            lb_uuid = found[0]
            if additive:
                self._nb.add_to_set("logical_switch", node, "load_balancer", lb_uuid)
            else:
                self._nb.set("logical_switch", node, {"load_balancer": lb_uuid})
        LOG.debug("Bound %s load balancer %s to logical switch %s", protocol, lb_uuid, node)
        return lb_uuid


def build_host_network(config: Optional[HostConfig] = None) -> HostNetwork:
    config = config or HostConfig()
    if config.backend is HostBackend.IPROUTE2:
        return IPRoute2Host()
    return PyRoute2Host()


def build_provisioner(
    config: Optional[ProvisionerConfig] = None,
    northbound: Optional[NorthboundConfig] = None,
    host: Optional[HostConfig] = None,
) -> TopologyProvisioner:
    """Wire a provisioner to the OVN Northbound database, ``ovs-vsctl`` and the host."""

    northbound = northbound or NorthboundConfig()
    return TopologyProvisioner(
        OvnNbIdl(northbound.connection, northbound.timeout),
        OvsVsctl(),
        HostInterfaceConfigurator(build_host_network(host)),
        config,
    )
