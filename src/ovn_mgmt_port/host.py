"""Host side configuration of the management interface."""

from __future__ import annotations

import logging

from .clients import HostNetwork

LOG = logging.getLogger(__name__)


class HostInterfaceConfigurator:
    """Converge the management interface's link, address and route state.

    Each step is a single host networking operation.  Steps run strictly in
    order and the first failure propagates unchanged, leaving later steps
    unexecuted.
    """

    def __init__(self, host: HostNetwork) -> None:
        self._host = host

    def configure(
        self,
        node_name: str,
        cluster_subnet: str,
        router_ip: str,
        interface_name: str,
        interface_cidr: str,
    ) -> None:
        LOG.debug("Configuring management interface %s for node %s", interface_name, node_name)

        self._host.link_up(interface_name)

        # The interface may be left over from an earlier run.
        self._host.flush_addresses(interface_name)
        self._host.add_address(interface_name, interface_cidr)

        self._host.flush_route(cluster_subnet)
        self._host.add_route(cluster_subnet, router_ip)

        LOG.info(
            "Management interface %s configured with %s, route %s via %s",
            interface_name,
            interface_cidr,
            cluster_subnet,
            router_ip,
        )
