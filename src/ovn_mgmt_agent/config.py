"""YAML configuration loader for the management port agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ovn_mgmt_port.config import HostBackend, HostConfig, NorthboundConfig, ProvisionerConfig


@dataclass
class AgentConfig:
    provisioner: ProvisionerConfig = field(default_factory=ProvisionerConfig)
    northbound: NorthboundConfig = field(default_factory=NorthboundConfig)
    host: HostConfig = field(default_factory=HostConfig)


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_provisioner(section: dict) -> ProvisionerConfig:
    defaults = ProvisionerConfig()
    return ProvisionerConfig(
        mtu=int(section.get("mtu", defaults.mtu)),
        integration_bridge=str(section.get("integration_bridge", defaults.integration_bridge)),
        interface_prefix=str(section.get("interface_prefix", defaults.interface_prefix)),
        node_name_length=int(section.get("node_name_length", defaults.node_name_length)),
        cluster_router_tag=str(section.get("cluster_router_tag", defaults.cluster_router_tag)),
        lb_tcp_tag=str(section.get("lb_tcp_tag", defaults.lb_tcp_tag)),
        lb_udp_tag=str(section.get("lb_udp_tag", defaults.lb_udp_tag)),
    )


def _parse_northbound(section: dict) -> NorthboundConfig:
    timeout = section.get("timeout", NorthboundConfig.timeout)
    connection = section.get("connection")
    return NorthboundConfig(
        connection=str(connection) if connection else None,
        timeout=int(timeout) if timeout else None,
    )


def _parse_host(section: dict) -> HostConfig:
    backend = str(section.get("backend", HostBackend.PYROUTE2.value)).lower()
    try:
        return HostConfig(backend=HostBackend(backend))
    except ValueError:
        choices = ", ".join(b.value for b in HostBackend)
        raise ValueError(f"Unsupported host backend '{backend}' (expected one of: {choices})")


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    return AgentConfig(
        provisioner=_parse_provisioner(_section(data, "provisioner")),
        northbound=_parse_northbound(_section(data, "northbound")),
        host=_parse_host(_section(data, "host")),
    )
