"""OVN node management port provisioning.

This package creates the attachment point through which a cluster node
reaches the OVN overlay:

* a logical switch per node, connected to the cluster's distributed router
  through a ``stor-``/``rtos-`` port pair;
* an OVS internal interface on the integration bridge, bound to a logical
  switch port via its ``iface-id``;
* the host address and route that send cluster subnet traffic through that
  interface; and
* the bindings of the node switch to the cluster TCP and UDP load balancers.

Addresses are derived from the node's local subnet: the first host address
belongs to the router port, the second to the management interface.

External systems are reached through the interfaces in
:mod:`ovn_mgmt_port.clients`.  :mod:`ovn_mgmt_port.fakes` provides in-memory
versions so the whole sequence can be unit tested without OVN, OVS or root.
"""

from .exceptions import ManagementPortError  # noqa: F401
from .provisioner import ProvisionResult, TopologyProvisioner, build_provisioner  # noqa: F401

__all__ = [
    "ManagementPortError",
    "ProvisionResult",
    "TopologyProvisioner",
    "build_provisioner",
]
