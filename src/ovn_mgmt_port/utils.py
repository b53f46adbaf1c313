"""Helpers shared by the provisioner: MAC generation and router lookup."""

from __future__ import annotations

import logging
import uuid

from .clients import NorthboundClient
from .exceptions import ClusterRouterNotFound

LOG = logging.getLogger(__name__)

MAC_PREFIX = "00:00:00"
ZERO_MAC = "00:00:00:00:00:00"


def generate_mac() -> str:
    """Return a fresh MAC address with three random trailing octets."""

    octets = uuid.uuid4().bytes[:3]
    return MAC_PREFIX + "".join(f":{octet:02x}" for octet in octets)


def is_usable_mac(mac: str) -> bool:
    """``False`` for empty or all-zero MACs reported by a half-created port."""

    mac = mac.strip().lower()
    return bool(mac) and mac != ZERO_MAC


def get_cluster_router(nb: NorthboundClient, tag: str = "k8s-cluster-router") -> str:
    """Return the UUID of the cluster's distributed logical router."""

    routers = nb.find("logical_router", {f"external_ids:{tag}": "yes"})
    if not routers:
        raise ClusterRouterNotFound(tag)
    if len(routers) > 1:
        LOG.warning(
            "Found %d logical routers tagged %s, using %s", len(routers), tag, routers[0]
        )
    return routers[0]
