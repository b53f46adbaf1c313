"""In-memory fakes of the client interfaces.

They keep just enough state to make provisioning observable and honour the
same upsert contract as the real clients, so a full provisioning run can be
exercised (and repeated) without OVN, OVS or root privileges.  Any method can
be made to fail by listing its name in ``fail_on``.
"""

from __future__ import annotations

import copy
import itertools
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .clients import HostNetwork, NorthboundClient, VSwitchClient
from .exceptions import ControlPlaneError, HostConfigError, SwitchError

Call = Tuple[str, Tuple[Any, ...]]


def _merge_columns(record: Dict[str, Any], columns: Mapping[str, Any]) -> None:
    for column, value in columns.items():
        if isinstance(value, Mapping):
            record.setdefault(column, {}).update(value)
        else:
            record[column] = value


class _Recorder:
    error_class = ControlPlaneError

    def __init__(self, fail_on: Iterable[str] = ()) -> None:
        self.fail_on = set(fail_on)
        self.calls: List[Call] = []

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.fail_on:
            raise self.error_class(
                [method, *map(str, args)], 1, "", f"injected failure in {method}"
            )

    def called(self, method: str) -> bool:
        return any(name == method for name, _ in self.calls)


class FakeNorthbound(_Recorder, NorthboundClient):
    """Tables are ``{table: {name_or_uuid: {column: value}}}``."""

    error_class = ControlPlaneError

    def __init__(self, fail_on: Iterable[str] = ()) -> None:
        super().__init__(fail_on)
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._ids = itertools.count(1)

    # seeding helpers --------------------------------------------------
    def _new_uuid(self) -> str:
        return f"{next(self._ids):08x}-0000-4000-8000-000000000000"

    def add_record(self, table: str, columns: Optional[Mapping[str, Any]] = None,
                   name: Optional[str] = None) -> str:
        key = name or self._new_uuid()
        record: Dict[str, Any] = {}
        _merge_columns(record, copy.deepcopy(dict(columns or {})))
        self.tables.setdefault(table, {})[key] = record
        return key

    def add_cluster_router(self, tag: str = "k8s-cluster-router") -> str:
        return self.add_record("logical_router", {"external_ids": {tag: "yes"}, "ports": []})

    def add_load_balancer(self, tag: str) -> str:
        return self.add_record("load_balancer", {"external_ids": {tag: "yes"}})

    def record(self, table: str, name: str) -> Optional[Dict[str, Any]]:
        return self.tables.get(table, {}).get(name)

    def snapshot(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return copy.deepcopy(self.tables)

    # NorthboundClient -------------------------------------------------
    def _require(self, table: str, name: str) -> Dict[str, Any]:
        record = self.record(table, name)
        if record is None:
            raise ControlPlaneError(
                ["db_get", table, name], message=f"Cannot find {table} with name={name}"
            )
        return record

    def get(self, table: str, record: str, column: str) -> str:
        self._record("get", table, record, column)
        row = self.record(table, record)
        if row is None:
            return ""
        value = row.get(column, "")
        return "" if value in (None, [], {}) else str(value)

    def find(self, table: str, conditions: Mapping[str, str]) -> Sequence[str]:
        self._record("find", table, dict(conditions))
        matches = []
        for key, row in self.tables.get(table, {}).items():
            if all(self._match(row, cond, value) for cond, value in conditions.items()):
                matches.append(key)
        return matches

    @staticmethod
    def _match(row: Mapping[str, Any], condition: str, value: str) -> bool:
        column, _, key = condition.partition(":")
        current = row.get(column)
        if key:
            return isinstance(current, Mapping) and current.get(key) == value
        return current == value

    def set(self, table: str, record: str, columns: Mapping[str, Any]) -> None:
        self._record("set", table, record, dict(columns))
        row = self._require(table, record)
        for column, value in columns.items():
            if column == "load_balancer":
                row[column] = [value]
            else:
                _merge_columns(row, {column: value})

    def add_to_set(self, table: str, record: str, column: str, value: str) -> None:
        self._record("add_to_set", table, record, column, value)
        row = self._require(table, record)
        members = row.setdefault(column, [])
        if value not in members:
            members.append(value)

    def upsert_router_port(self, router: str, port: str, mac: str,
                           networks: Sequence[str]) -> None:
        self._record("upsert_router_port", router, port, mac, tuple(networks))
        router_row = self._require("logical_router", router)
        if self.record("logical_router_port", port) is not None:
            return
        self.add_record("logical_router_port", {"mac": mac, "networks": list(networks)}, name=port)
        router_row.setdefault("ports", []).append(port)

    def upsert_switch(self, switch: str, columns: Optional[Mapping[str, Any]] = None) -> None:
        self._record("upsert_switch", switch, dict(columns or {}))
        row = self.record("logical_switch", switch)
        if row is None:
            self.add_record("logical_switch", {"ports": []}, name=switch)
            row = self._require("logical_switch", switch)
        _merge_columns(row, copy.deepcopy(dict(columns or {})))

    def upsert_switch_port(self, switch: str, port: str, *,
                           addresses: Optional[Sequence[str]] = None,
                           columns: Optional[Mapping[str, Any]] = None) -> None:
        self._record("upsert_switch_port", switch, port, tuple(addresses or ()),
                     dict(columns or {}))
        switch_row = self._require("logical_switch", switch)
        row = self.record("logical_switch_port", port)
        if row is None:
            self.add_record("logical_switch_port", name=port)
            row = self._require("logical_switch_port", port)
            switch_row.setdefault("ports", []).append(port)
        _merge_columns(row, copy.deepcopy(dict(columns or {})))
        if addresses:
            row["addresses"] = list(addresses)


class FakeVSwitch(_Recorder, VSwitchClient):
    """Every interface created reports ``interface_mac`` as ``mac_in_use``."""

    error_class = SwitchError

    def __init__(self, interface_mac: str = "0e:11:22:33:44:55",
                 fail_on: Iterable[str] = ()) -> None:
        super().__init__(fail_on)
        self.interface_mac = interface_mac
        self.bridges: Dict[str, List[str]] = {}
        self.interfaces: Dict[str, Dict[str, Any]] = {}

    def ensure_bridge(self, bridge: str) -> None:
        self._record("ensure_bridge", bridge)
        self.bridges.setdefault(bridge, [])

    def upsert_port(self, bridge: str, port: str,
                    interface_columns: Optional[Mapping[str, Any]] = None) -> None:
        self._record("upsert_port", bridge, port, dict(interface_columns or {}))
        if bridge not in self.bridges:
            raise SwitchError(["ovs-vsctl", "add-port", bridge, port], 1, "",
                              f"no bridge named {bridge}")
        if port not in self.bridges[bridge]:
            self.bridges[bridge].append(port)
        iface = self.interfaces.setdefault(port, {"mac_in_use": self.interface_mac})
        _merge_columns(iface, copy.deepcopy(dict(interface_columns or {})))

    def get(self, table: str, record: str, column: str) -> str:
        self._record("get", table, record, column)
        if table != "interface" or record not in self.interfaces:
            return ""
        return str(self.interfaces[record].get(column, ""))

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({"bridges": self.bridges, "interfaces": self.interfaces})


class FakeHostNetwork(_Recorder, HostNetwork):
    """Links come into existence on first use."""

    error_class = HostConfigError

    def __init__(self, fail_on: Iterable[str] = ()) -> None:
        super().__init__(fail_on)
        self.links: Dict[str, Dict[str, Any]] = {}
        self.routes: Dict[str, List[str]] = {}

    def _link(self, interface: str) -> Dict[str, Any]:
        return self.links.setdefault(interface, {"up": False, "addresses": []})

    def link_up(self, interface: str) -> None:
        self._record("link_up", interface)
        self._link(interface)["up"] = True

    def flush_addresses(self, interface: str) -> None:
        self._record("flush_addresses", interface)
        self._link(interface)["addresses"] = []

    def add_address(self, interface: str, cidr: str) -> None:
        self._record("add_address", interface, cidr)
        addresses = self._link(interface)["addresses"]
        if cidr in addresses:
            raise HostConfigError(["ip", "addr", "add", cidr, "dev", interface], 2, "",
                                  "RTNETLINK answers: File exists")
        addresses.append(cidr)

    def flush_route(self, subnet: str) -> None:
        self._record("flush_route", subnet)
        self.routes.pop(subnet, None)

    def add_route(self, subnet: str, via: str) -> None:
        self._record("add_route", subnet, via)
        if subnet in self.routes:
            raise HostConfigError(["ip", "route", "add", subnet, "via", via], 2, "",
                                  "RTNETLINK answers: File exists")
        self.routes[subnet] = [via]

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({"links": self.links, "routes": self.routes})
