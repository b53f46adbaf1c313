from pathlib import Path

import pytest

from ovn_mgmt_agent.config import load_config
from ovn_mgmt_port.config import HostBackend


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
provisioner:
  mtu: 1450
  integration_bridge: br-int
  lb_tcp_tag: cluster-lb-tcp
northbound:
  connection: ssl:192.0.2.10:6641
  timeout: 30
host:
  backend: iproute2
"""
    )

    cfg = load_config(config_path)

    assert cfg.provisioner.mtu == 1450
    assert cfg.provisioner.integration_bridge == "br-int"
    assert cfg.provisioner.lb_tcp_tag == "cluster-lb-tcp"
    assert cfg.provisioner.lb_udp_tag == "k8s-cluster-lb-udp"
    assert cfg.northbound.connection == "ssl:192.0.2.10:6641"
    assert cfg.northbound.timeout == 30
    assert cfg.host.backend is HostBackend.IPROUTE2


def test_load_config_defaults(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("")

    cfg = load_config(config_path)

    assert cfg.provisioner.mtu == 1400
    assert cfg.provisioner.interface_prefix == "k8s-"
    assert cfg.northbound.connection is None
    assert cfg.northbound.timeout == 15
    assert cfg.host.backend is HostBackend.PYROUTE2


def test_load_config_rejects_non_mapping(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="must be a mapping"):
        load_config(config_path)


def test_load_config_rejects_unknown_backend(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("host:\n  backend: netplan\n")

    with pytest.raises(ValueError, match="Unsupported host backend"):
        load_config(config_path)


def test_load_config_rejects_oversized_interface_name(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("provisioner:\n  interface_prefix: ovn-mgmt-\n")

    with pytest.raises(ValueError, match="exceeds 15 characters"):
        load_config(config_path)
