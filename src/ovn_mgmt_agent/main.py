"""Entry point for one-shot node management port provisioning."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from ovn_mgmt_port.exceptions import ManagementPortError
from ovn_mgmt_port.provisioner import build_provisioner

from .config import AgentConfig, load_config

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _load_config(path: Path) -> AgentConfig:
    if path.exists():
        return load_config(path)
    LOG.warning("config file %s not found, using defaults", path)
    return AgentConfig()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create or converge the OVN management port of a node"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/ovn-mgmt-port/agent.yaml"),
        help="Path to the agent configuration file (defaults apply if missing)",
    )
    parser.add_argument("--node", required=True, help="Node name")
    parser.add_argument(
        "--local-subnet", required=True, help="Subnet assigned to this node (CIDR)"
    )
    parser.add_argument(
        "--cluster-subnet", required=True, help="Cluster-wide pod subnet (CIDR)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = _load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        LOG.error("invalid configuration %s: %s", args.config, exc)
        return 1

    provisioner = build_provisioner(config.provisioner, config.northbound, config.host)
    try:
        result = provisioner.provision(args.node, args.local_subnet, args.cluster_subnet)
    except ManagementPortError as exc:
        # Already logged by the provisioner.
        LOG.debug("management port provisioning failed for %s: %s", args.node, exc)
        return 1
    except ValueError as exc:
        LOG.error("management port provisioning failed for %s: %s", args.node, exc)
        return 1

    LOG.info(
        "node %s: interface %s (%s) address %s, router %s",
        result.node_name,
        result.interface_name,
        result.interface_mac,
        result.addresses.management_cidr,
        result.addresses.router_cidr,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
