"""oslo.config options for agents that embed the provisioner.

Agents built on oslo.config register these under the ``[ovn_mgmt_port]``
group and turn the parsed values into the package's configuration
dataclasses with :func:`config_from_conf`.
"""

from oslo_config import cfg

from .config import HostBackend, HostConfig, NorthboundConfig, ProvisionerConfig

GROUP = "ovn_mgmt_port"

mgmt_port_opts = [
    cfg.IntOpt('mtu',
               default=1400,
               min=68,
               help='MTU requested for the management port OVS interface.'),
    cfg.StrOpt('integration_bridge',
               default='br-int',
               help='OVS bridge the management interface is attached to.'),
    cfg.StrOpt('interface_prefix',
               default='k8s-',
               help='Prefix of the host management interface name.'),
    cfg.IntOpt('node_name_length',
               default=11,
               min=1,
               help='Node name characters kept in the interface name.'),
    cfg.StrOpt('cluster_router_tag',
               default='k8s-cluster-router',
               help='external_ids key identifying the cluster logical router.'),
    cfg.StrOpt('lb_tcp_tag',
               default='k8s-cluster-lb-tcp',
               help='external_ids key identifying the cluster TCP load balancer.'),
    cfg.StrOpt('lb_udp_tag',
               default='k8s-cluster-lb-udp',
               help='external_ids key identifying the cluster UDP load balancer.'),
    cfg.StrOpt('ovn_nb_connection',
               default=None,
               help='OVN Northbound OVSDB connection, e.g. tcp:192.0.2.10:6641. '
                    'If not set, the local unix:/var/run/ovn/ovnnb_db.sock is used.'),
    cfg.IntOpt('ovn_nb_timeout',
               default=15,
               min=0,
               help='Seconds to wait for Northbound transactions (0 uses the '
                    'ovsdbapp default of 180).'),
    cfg.StrOpt('host_backend',
               default=HostBackend.PYROUTE2.value,
               choices=[backend.value for backend in HostBackend],
               help='How host links, addresses and routes are programmed.'),
]


def register_opts(conf=cfg.CONF):
    """Register the management port options in ``conf``."""
    conf.register_opts(mgmt_port_opts, group=GROUP)


def list_opts():
    return [(GROUP, mgmt_port_opts)]


def config_from_conf(conf=cfg.CONF):
    """Build ``(ProvisionerConfig, NorthboundConfig, HostConfig)`` from ``conf``.

    Options must already be registered and parsed.
    """
    group = conf[GROUP]
    provisioner = ProvisionerConfig(
        mtu=group.mtu,
        integration_bridge=group.integration_bridge,
        interface_prefix=group.interface_prefix,
        node_name_length=group.node_name_length,
        cluster_router_tag=group.cluster_router_tag,
        lb_tcp_tag=group.lb_tcp_tag,
        lb_udp_tag=group.lb_udp_tag,
    )
    northbound = NorthboundConfig(
        connection=group.ovn_nb_connection,
        timeout=group.ovn_nb_timeout or None,
    )
    host = HostConfig(backend=HostBackend(group.host_backend))
    return provisioner, northbound, host
