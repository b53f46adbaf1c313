#!/usr/bin/env python3
"""Validate a node's management port after ``ovn-mgmt-port`` has run."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Iterable

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from ovn_mgmt_port import addressing  # noqa: E402
from ovn_mgmt_port.config import ProvisionerConfig  # noqa: E402
from ovn_mgmt_port.ovsdb import parse_value  # noqa: E402


class ValidationError(RuntimeError):
    pass


def run(cmd: Iterable[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(cmd), capture_output=True, text=True, check=False)


def output_of(*cmd: str) -> str:
    result = run(cmd)
    if result.returncode != 0:
        raise ValidationError(f"{' '.join(cmd)} failed: {result.stderr.strip()}")
    return result.stdout.strip()


def check_northbound(node: str, addresses: addressing.NodeAddresses) -> None:
    router_port = addressing.router_port_name(node)
    networks = output_of("ovn-nbctl", "--if-exists", "get", "logical_router_port",
                         router_port, "networks")
    if addresses.router_cidr not in networks:
        raise ValidationError(
            f"router port {router_port} networks {networks!r} lack {addresses.router_cidr}"
        )

    ports = output_of("ovn-nbctl", "lsp-list", node)
    for port in (addressing.switch_router_port_name(node),
                 addressing.management_port_name(node)):
        if port not in ports:
            raise ValidationError(f"logical switch {node} has no port {port}")

    lbs = output_of("ovn-nbctl", "get", "logical_switch", node, "load_balancer")
    bound = [lb.strip() for lb in lbs.strip("[]").split(",") if lb.strip()]
    if len(bound) < 2:
        raise ValidationError(f"logical switch {node} is missing load balancers: {lbs!r}")


def check_interface(iface: str, addresses: addressing.NodeAddresses) -> None:
    mac = parse_value(output_of("ovs-vsctl", "--if-exists", "get", "interface",
                                iface, "mac_in_use"))
    if not mac:
        raise ValidationError(f"interface {iface} has no MAC in use")

    addr = output_of("ip", "-o", "addr", "show", "dev", iface)
    if addresses.management_cidr not in addr:
        raise ValidationError(
            f"interface {iface} lacks address {addresses.management_cidr}"
        )


def check_route(cluster_subnet: str, addresses: addressing.NodeAddresses) -> None:
    route = output_of("ip", "route", "show", cluster_subnet)
    if f"via {addresses.router_ip}" not in route:
        raise ValidationError(
            f"route to {cluster_subnet} does not use {addresses.router_ip}: {route!r}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--node", required=True)
    parser.add_argument("--local-subnet", required=True)
    parser.add_argument("--cluster-subnet", required=True)
    args = parser.parse_args()

    config = ProvisionerConfig()
    node = addressing.normalize_node_name(args.node)
    addresses = addressing.derive_addresses(args.local_subnet)
    iface = addressing.interface_name(node, config.interface_prefix, config.node_name_length)

    check_northbound(node, addresses)
    check_interface(iface, addresses)
    check_route(args.cluster_subnet, addresses)

    print(f"management port validation succeeded for {node} ({iface})")


if __name__ == "__main__":
    try:
        main()
    except ValidationError as exc:
        print(f"[validate_mgmt_port] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
