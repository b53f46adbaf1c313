"""OVN Northbound client backed by ovsdbapp.

:class:`OvnNbIdl` connects to the Northbound database lazily, on the first
call, and maps ovsdbapp failures onto
:class:`~ovn_mgmt_port.exceptions.ControlPlaneError`.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from ovsdbapp import exceptions as ovsdbapp_exc
from ovsdbapp.backend.ovs_idl import connection
from ovsdbapp.backend.ovs_idl import idlutils
from ovsdbapp.schema.ovn_northbound import impl_idl

from .clients import NorthboundClient
from .exceptions import ControlPlaneError

LOG = logging.getLogger(__name__)

NB_SCHEMA = "OVN_Northbound"
DEFAULT_NB_CONNECTION = "unix:/var/run/ovn/ovnnb_db.sock"
DEFAULT_NB_TIMEOUT = 180


def table_name(name: str) -> str:
    """``logical_router_port`` -> ``Logical_Router_Port``."""

    return "_".join(part.capitalize() for part in name.split("_"))


def to_atom(value: Any) -> Any:
    """Turn UUID strings into :class:`uuid.UUID` so they bind as references."""

    if isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError:
            return value
    return value


def to_scalar(value: Any) -> str:
    """Flatten a ``db_get`` result; optional columns come back as lists."""

    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    if value is None:
        return ""
    return str(value)


def to_condition(key: str, value: str) -> Tuple[str, str, Any]:
    """``external_ids:tag`` -> ``("external_ids", "=", {"tag": value})``."""

    if ":" in key:
        column, item = key.split(":", 1)
        return column, "=", {item: value}
    return key, "=", to_atom(value)


def to_columns(columns: Mapping[str, Any]) -> List[Tuple[str, Any]]:
    return [
        (column, dict(value) if isinstance(value, Mapping) else to_atom(value))
        for column, value in columns.items()
    ]


@contextmanager
def _nb_errors(*command: str) -> Iterator[None]:
    try:
        yield
    except (ovsdbapp_exc.OvsdbAppException, RuntimeError) as exc:
        raise ControlPlaneError(
            list(command), message=f"{' '.join(command)} failed: {exc}"
        ) from exc


class OvnNbIdl(NorthboundClient):
    """Northbound client using ovsdbapp's ``OvnNbApiIdlImpl``."""

    def __init__(
        self,
        remote: Optional[str] = None,
        timeout: Optional[int] = None,
        api: Optional[Any] = None,
    ) -> None:
        self._remote = remote or DEFAULT_NB_CONNECTION
        self._timeout = timeout or DEFAULT_NB_TIMEOUT
        self._api = api

    @property
    def api(self):
        if self._api is None:
            self._api = self._connect()
        return self._api

    def _connect(self):
        LOG.info("Connecting to OVN Northbound at %s", self._remote)
        try:
            helper = idlutils.get_schema_helper(self._remote, NB_SCHEMA)
            helper.register_all()
            idl = connection.OvsdbIdl(self._remote, helper)
            conn = connection.Connection(idl=idl, timeout=self._timeout)
            return impl_idl.OvnNbApiIdlImpl(conn)
        except Exception as exc:
            # get_schema_helper raises a bare Exception when the remote is unreachable.
            raise ControlPlaneError(
                ["connect", self._remote],
                message=f"cannot connect to OVN Northbound at {self._remote}: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Generic record access
    # ------------------------------------------------------------------
    def get(self, table: str, record: str, column: str) -> str:
        with _nb_errors("db_get", table, record, column):
            try:
                value = self.api.db_get(table_name(table), record, column).execute(
                    check_error=True, log_errors=False
                )
            except idlutils.RowNotFound:
                return ""
        return to_scalar(value)

    def find(self, table: str, conditions: Mapping[str, str]) -> Sequence[str]:
        clauses = [to_condition(key, value) for key, value in conditions.items()]
        with _nb_errors("db_find_rows", table):
            rows = self.api.db_find_rows(table_name(table), *clauses).execute(
                check_error=True
            )
        return [str(row.uuid) for row in rows]

    def set(self, table: str, record: str, columns: Mapping[str, Any]) -> None:
        with _nb_errors("db_set", table, record):
            self.api.db_set(table_name(table), record, *to_columns(columns)).execute(
                check_error=True
            )

    def add_to_set(self, table: str, record: str, column: str, value: str) -> None:
        with _nb_errors("db_add", table, record, column):
            self.api.db_add(table_name(table), record, column, to_atom(value)).execute(
                check_error=True
            )

    # ------------------------------------------------------------------
    # Logical topology
    # ------------------------------------------------------------------
    def upsert_router_port(
        self, router: str, port: str, mac: str, networks: Sequence[str]
    ) -> None:
        with _nb_errors("lrp_add", router, port):
            self.api.lrp_add(router, port, mac, list(networks), may_exist=True).execute(
                check_error=True
            )

    def upsert_switch(
        self, switch: str, columns: Optional[Mapping[str, Any]] = None
    ) -> None:
        with _nb_errors("ls_add", switch):
            self.api.ls_add(switch, may_exist=True).execute(check_error=True)
            if columns:
                self.api.db_set("Logical_Switch", switch, *to_columns(columns)).execute(
                    check_error=True
                )

    def upsert_switch_port(
        self,
        switch: str,
        port: str,
        *,
        addresses: Optional[Sequence[str]] = None,
        columns: Optional[Mapping[str, Any]] = None,
    ) -> None:
        with _nb_errors("lsp_add", switch, port):
            self.api.lsp_add(switch, port, may_exist=True).execute(check_error=True)
            if not columns and not addresses:
                return
            with self.api.transaction(check_error=True) as txn:
                if columns:
                    txn.add(self.api.db_set("Logical_Switch_Port", port, *to_columns(columns)))
                if addresses:
                    txn.add(self.api.lsp_set_addresses(port, list(addresses)))
