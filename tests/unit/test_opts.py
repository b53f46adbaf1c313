from oslo_config import cfg

from ovn_mgmt_port import opts
from ovn_mgmt_port.config import HostBackend


def build_conf(args=None) -> cfg.ConfigOpts:
    conf = cfg.ConfigOpts()
    opts.register_opts(conf)
    conf(args=args or [], project="ovn-mgmt-port", default_config_files=[])
    return conf


def test_defaults():
    provisioner, northbound, host = opts.config_from_conf(build_conf())

    assert provisioner.mtu == 1400
    assert provisioner.integration_bridge == "br-int"
    assert northbound.connection is None
    assert northbound.timeout == 15
    assert host.backend is HostBackend.PYROUTE2


def test_overrides():
    conf = build_conf()
    conf.set_override("mtu", 9000, group=opts.GROUP)
    conf.set_override("ovn_nb_connection", "tcp:192.0.2.10:6641", group=opts.GROUP)
    conf.set_override("ovn_nb_timeout", 0, group=opts.GROUP)
    conf.set_override("host_backend", "iproute2", group=opts.GROUP)

    provisioner, northbound, host = opts.config_from_conf(conf)

    assert provisioner.mtu == 9000
    assert northbound.connection == "tcp:192.0.2.10:6641"
    assert northbound.timeout is None
    assert host.backend is HostBackend.IPROUTE2


def test_config_file(tmp_path):
    config_file = tmp_path / "agent.conf"
    config_file.write_text(
        "[ovn_mgmt_port]\n"
        "integration_bridge = br-mgmt\n"
        "lb_udp_tag = cluster-lb-udp\n"
    )

    provisioner, _, _ = opts.config_from_conf(
        build_conf(["--config-file", str(config_file)])
    )

    assert provisioner.integration_bridge == "br-mgmt"
    assert provisioner.lb_udp_tag == "cluster-lb-udp"


def test_list_opts():
    [(group, options)] = opts.list_opts()

    assert group == "ovn_mgmt_port"
    assert {opt.name for opt in options} >= {"mtu", "integration_bridge", "host_backend"}
