"""Host kernel networking backends.

:class:`PyRoute2Host` programs links, addresses and routes over netlink with
pyroute2.  :class:`IPRoute2Host` runs the equivalent ``ip`` commands and is
kept for hosts where netlink access from Python is not wanted.
"""

from __future__ import annotations

import errno
import ipaddress
import logging
from typing import Callable, List, Optional

import pyroute2
from pyroute2.netlink.exceptions import NetlinkError

from .clients import HostNetwork
from .exceptions import HostConfigError
from .processutils import Runner, execute

LOG = logging.getLogger(__name__)

# Upper bound on routes removed for a single destination.
MAX_ROUTE_FLUSH = 64


class IPRoute2Host(HostNetwork):
    """Host backend that shells out to ``ip``."""

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner or execute

    def _ip(self, *args: str) -> None:
        cmd = ["ip", *args]
        result = self._runner(cmd)
        if not result.succeeded:
            raise HostConfigError(cmd, result.returncode, result.stdout, result.stderr)

    def link_up(self, interface: str) -> None:
        self._ip("link", "set", interface, "up")

    def flush_addresses(self, interface: str) -> None:
        self._ip("addr", "flush", "dev", interface)

    def add_address(self, interface: str, cidr: str) -> None:
        self._ip("addr", "add", cidr, "dev", interface)

    def flush_route(self, subnet: str) -> None:
        self._ip("route", "flush", subnet)

    def add_route(self, subnet: str, via: str) -> None:
        self._ip("route", "add", subnet, "via", via)


class PyRoute2Host(HostNetwork):
    """Host backend using a pyroute2 ``IPRoute`` netlink socket.

    A socket is opened per operation so no handle outlives a call.
    """

    def __init__(self, ipr_factory: Optional[Callable[[], pyroute2.IPRoute]] = None) -> None:
        self._ipr_factory = ipr_factory or pyroute2.IPRoute

    def _fail(self, operation: List[str], exc: Exception) -> HostConfigError:
        code = getattr(exc, "code", None)
        return HostConfigError(operation, code, "", str(exc))

    def _lookup(self, ipr, interface: str) -> int:
        indexes = ipr.link_lookup(ifname=interface)
        if not indexes:
            raise HostConfigError(
                ["link", "lookup", interface],
                message=f"interface {interface} does not exist",
            )
        return indexes[0]

    def link_up(self, interface: str) -> None:
        operation = ["link", "set", interface, "up"]
        try:
            with self._ipr_factory() as ipr:
                index = self._lookup(ipr, interface)
                ipr.link("set", index=index, state="up")
        except NetlinkError as exc:
            raise self._fail(operation, exc) from exc

    def flush_addresses(self, interface: str) -> None:
        operation = ["addr", "flush", "dev", interface]
        try:
            with self._ipr_factory() as ipr:
                index = self._lookup(ipr, interface)
                for addr in ipr.get_addr(index=index):
                    address = addr.get_attr("IFA_ADDRESS")
                    prefixlen = addr["prefixlen"]
                    LOG.debug("Removing %s/%s from %s", address, prefixlen, interface)
                    try:
                        ipr.addr("del", index=index, address=address, prefixlen=prefixlen)
                    except NetlinkError as exc:
                        # Secondaries go away with their primary.
                        if exc.code != errno.EADDRNOTAVAIL:
                            raise
                        LOG.debug("%s/%s already removed from %s", address, prefixlen, interface)
        except NetlinkError as exc:
            raise self._fail(operation, exc) from exc

    def add_address(self, interface: str, cidr: str) -> None:
        operation = ["addr", "add", cidr, "dev", interface]
        iface = ipaddress.ip_interface(cidr)
        try:
            with self._ipr_factory() as ipr:
                index = self._lookup(ipr, interface)
                ipr.addr(
                    "add",
                    index=index,
                    address=str(iface.ip),
                    prefixlen=iface.network.prefixlen,
                )
        except NetlinkError as exc:
            raise self._fail(operation, exc) from exc

    def flush_route(self, subnet: str) -> None:
        operation = ["route", "flush", subnet]
        try:
            with self._ipr_factory() as ipr:
                for _ in range(MAX_ROUTE_FLUSH):
                    try:
                        ipr.route("del", dst=subnet)
                    except NetlinkError as exc:
                        if exc.code == errno.ESRCH:
                            return
                        raise
                LOG.warning("Stopped flushing routes to %s after %d deletions",
                            subnet, MAX_ROUTE_FLUSH)
        except NetlinkError as exc:
            raise self._fail(operation, exc) from exc

    def add_route(self, subnet: str, via: str) -> None:
        operation = ["route", "add", subnet, "via", via]
        try:
            with self._ipr_factory() as ipr:
                ipr.route("add", dst=subnet, gateway=via)
        except NetlinkError as exc:
            raise self._fail(operation, exc) from exc
