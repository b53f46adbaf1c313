import types
import uuid

import pytest
from ovsdbapp.backend.ovs_idl import idlutils

from ovn_mgmt_port import northbound
from ovn_mgmt_port.exceptions import ControlPlaneError
from ovn_mgmt_port.northbound import OvnNbIdl

LB_UUID = "6d7c5a8e-2f0b-4b8e-9a43-1f2e3d4c5b6a"


class RecordedCommand:
    def __init__(self, api, call, result=None, error=None):
        self.api = api
        self.call = call
        self.result = result
        self.error = error

    def execute(self, check_error=False, log_errors=True):
        self.api.executed.append(self.call)
        if self.error is not None:
            raise self.error
        return self.result


class RecordedTransaction:
    def __init__(self, api):
        self.api = api
        self.commands = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        if exc[0] is None:
            self.api.transactions.append([cmd.call for cmd in self.commands])

    def add(self, command):
        self.commands.append(command)
        return command


class RecordingNbApi:
    """Records the ovsdbapp commands built and executed by the client."""

    def __init__(self, results=None, errors=None):
        self.results = dict(results or {})
        self.errors = dict(errors or {})
        self.executed = []
        self.transactions = []

    def transaction(self, check_error=False):
        return RecordedTransaction(self)

    def __getattr__(self, name):
        def build(*args, **kwargs):
            return RecordedCommand(
                self, (name, args, kwargs), self.results.get(name), self.errors.get(name)
            )

        return build


def build_client(**kwargs):
    api = RecordingNbApi(**kwargs)
    return OvnNbIdl(api=api), api


@pytest.mark.parametrize(
    "name, expected",
    [("logical_router_port", "Logical_Router_Port"), ("load_balancer", "Load_Balancer"),
     ("Logical_Switch", "Logical_Switch")],
)
def test_table_name(name, expected):
    assert northbound.table_name(name) == expected


def test_get_router_port_mac():
    nb, api = build_client(results={"db_get": "00:00:00:aa:bb:cc"})

    assert nb.get("logical_router_port", "rtos-node-a", "mac") == "00:00:00:aa:bb:cc"
    assert api.executed == [("db_get", ("Logical_Router_Port", "rtos-node-a", "mac"), {})]


def test_get_missing_record_reads_empty():
    missing = idlutils.RowNotFound(table="Logical_Router_Port", col="name", match="rtos-node-a")
    nb, _ = build_client(errors={"db_get": missing})

    assert nb.get("logical_router_port", "rtos-node-a", "mac") == ""


def test_get_flattens_optional_columns():
    nb, _ = build_client(results={"db_get": []})

    assert nb.get("logical_router_port", "rtos-node-a", "mac") == ""


def test_find_matches_external_ids_key():
    rows = [types.SimpleNamespace(uuid=uuid.UUID(LB_UUID))]
    nb, api = build_client(results={"db_find_rows": rows})

    found = nb.find("load_balancer", {"external_ids:k8s-cluster-lb-tcp": "yes"})

    assert found == [LB_UUID]
    assert api.executed == [
        ("db_find_rows",
         ("Load_Balancer", ("external_ids", "=", {"k8s-cluster-lb-tcp": "yes"})), {})
    ]


def test_set_and_add_bind_references_as_uuids():
    nb, api = build_client()

    nb.set("logical_switch", "node-a", {"load_balancer": LB_UUID})
    nb.add_to_set("logical_switch", "node-a", "load_balancer", LB_UUID)

    assert api.executed == [
        ("db_set", ("Logical_Switch", "node-a", ("load_balancer", uuid.UUID(LB_UUID))), {}),
        ("db_add", ("Logical_Switch", "node-a", "load_balancer", uuid.UUID(LB_UUID)), {}),
    ]


def test_upsert_router_port_uses_may_exist():
    nb, api = build_client()

    nb.upsert_router_port("router-uuid", "rtos-node-a", "00:00:00:aa:bb:cc", ["10.1.2.1/24"])

    assert api.executed == [
        ("lrp_add", ("router-uuid", "rtos-node-a", "00:00:00:aa:bb:cc", ["10.1.2.1/24"]),
         {"may_exist": True}),
    ]


def test_upsert_switch_refreshes_columns():
    nb, api = build_client()

    nb.upsert_switch(
        "node-a",
        {"other_config": {"subnet": "10.1.2.0/24"}, "external_ids": {"gateway_ip": "10.1.2.1/24"}},
    )

    assert api.executed == [
        ("ls_add", ("node-a",), {"may_exist": True}),
        ("db_set", ("Logical_Switch", "node-a",
                    ("other_config", {"subnet": "10.1.2.0/24"}),
                    ("external_ids", {"gateway_ip": "10.1.2.1/24"})), {}),
    ]


def test_upsert_switch_port_sets_columns_and_addresses_together():
    nb, api = build_client()

    nb.upsert_switch_port(
        "node-a",
        "stor-node-a",
        addresses=["00:00:00:aa:bb:cc"],
        columns={"type": "router", "options": {"router-port": "rtos-node-a"}},
    )

    assert api.executed == [("lsp_add", ("node-a", "stor-node-a"), {"may_exist": True})]
    assert api.transactions == [
        [
            ("db_set", ("Logical_Switch_Port", "stor-node-a", ("type", "router"),
                        ("options", {"router-port": "rtos-node-a"})), {}),
            ("lsp_set_addresses", ("stor-node-a", ["00:00:00:aa:bb:cc"]), {}),
        ]
    ]


def test_upsert_switch_port_without_settings_skips_transaction():
    nb, api = build_client()

    nb.upsert_switch_port("node-a", "k8s-node-a")

    assert api.transactions == []


def test_command_failure_raises_control_plane_error():
    nb, _ = build_client(errors={"lrp_add": RuntimeError("Logical Router Port rtos-node-a exists")})

    with pytest.raises(ControlPlaneError, match="lrp_add router-uuid rtos-node-a failed") as excinfo:
        nb.upsert_router_port("router-uuid", "rtos-node-a", "00:00:00:aa:bb:cc", ["10.1.2.1/24"])

    assert excinfo.value.command == ["lrp_add", "router-uuid", "rtos-node-a"]


def test_unreachable_database_raises_control_plane_error(monkeypatch):
    def unreachable(remote, schema):
        raise Exception(f"Could not retrieve schema from {remote}")

    monkeypatch.setattr(northbound.idlutils, "get_schema_helper", unreachable)
    nb = OvnNbIdl("tcp:192.0.2.10:6641")

    with pytest.raises(ControlPlaneError, match="cannot connect to OVN Northbound"):
        nb.find("logical_router", {"external_ids:k8s-cluster-router": "yes"})
