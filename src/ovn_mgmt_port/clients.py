"""Abstract client interfaces consumed by the provisioner.

Every mutating method is an *upsert*: calling it again with the same
arguments must leave external state unchanged and succeed.  Implementations
raise the matching :mod:`ovn_mgmt_port.exceptions` subclass on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence


class NorthboundClient(ABC):
    """Operations against the OVN Northbound database."""

    @abstractmethod
    def get(self, table: str, record: str, column: str) -> str:
        """Return ``column`` of ``record`` or ``""`` if the record is absent."""

    @abstractmethod
    def find(self, table: str, conditions: Mapping[str, str]) -> Sequence[str]:
        """Return UUIDs of records in ``table`` matching every condition.

        Condition keys use the ``column`` or ``column:key`` syntax, e.g.
        ``{"external_ids:k8s-cluster-lb-tcp": "yes"}``.
        """

    @abstractmethod
    def set(self, table: str, record: str, columns: Mapping[str, Any]) -> None:
        """Overwrite ``columns`` of an existing record."""

    @abstractmethod
    def add_to_set(self, table: str, record: str, column: str, value: str) -> None:
        """Add ``value`` to a set column, keeping existing members."""

    @abstractmethod
    def upsert_router_port(
        self, router: str, port: str, mac: str, networks: Sequence[str]
    ) -> None:
        """Create ``port`` on ``router`` unless it already exists."""

    @abstractmethod
    def upsert_switch(
        self, switch: str, columns: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Create ``switch`` if missing and refresh ``columns`` on it."""

    @abstractmethod
    def upsert_switch_port(
        self,
        switch: str,
        port: str,
        *,
        addresses: Optional[Sequence[str]] = None,
        columns: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Create ``port`` on ``switch`` if missing and refresh its settings."""


class VSwitchClient(ABC):
    """Operations against the local Open vSwitch database."""

    @abstractmethod
    def ensure_bridge(self, bridge: str) -> None:
        """Create ``bridge`` unless it already exists."""

    @abstractmethod
    def upsert_port(
        self,
        bridge: str,
        port: str,
        interface_columns: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Add ``port`` (and its same-named interface) to ``bridge``."""

    @abstractmethod
    def get(self, table: str, record: str, column: str) -> str:
        """Return ``column`` of ``record`` or ``""`` if unset or absent."""


class HostNetwork(ABC):
    """Host kernel link, address and route configuration."""

    @abstractmethod
    def link_up(self, interface: str) -> None:
        ...

    @abstractmethod
    def flush_addresses(self, interface: str) -> None:
        ...

    @abstractmethod
    def add_address(self, interface: str, cidr: str) -> None:
        ...

    @abstractmethod
    def flush_route(self, subnet: str) -> None:
        """Remove every route whose destination is exactly ``subnet``."""

    @abstractmethod
    def add_route(self, subnet: str, via: str) -> None:
        ...
