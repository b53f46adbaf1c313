"""``ovs-vsctl`` backed Open vSwitch client."""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Optional

from .clients import VSwitchClient
from .exceptions import SwitchError
from .processutils import Runner, execute


_BARE_VALUE = re.compile(r"^[A-Za-z0-9_.\-/]+$")


def format_value(value: Any) -> str:
    """Render ``value`` as an OVSDB atom accepted on the ctl command line."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    text = str(value)
    if _BARE_VALUE.match(text):
        return text
    return json.dumps(text)


def format_columns(columns: Mapping[str, Any]) -> List[str]:
    """Turn ``{"options": {"router-port": "x"}, "type": "router"}`` into
    ``["options:router-port=x", "type=router"]``."""

    args: List[str] = []
    for column, value in columns.items():
        if isinstance(value, Mapping):
            for key, item in value.items():
                args.append(f"{column}:{key}={format_value(item)}")
        else:
            args.append(f"{column}={format_value(value)}")
    return args


def parse_value(output: str) -> str:
    """Decode a scalar printed by ``get``; empty sets read as ``""``."""

    text = output.strip()
    if text in ("", "[]"):
        return ""
    if text.startswith('"'):
        try:
            return json.loads(text)
        except ValueError:
            return text.strip('"')
    return text


class OvsVsctl(VSwitchClient):
    """Open vSwitch client that shells out to ``ovs-vsctl``."""

    binary = "ovs-vsctl"

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner or execute

    def run(self, *args: str) -> str:
        cmd = [self.binary, *args]
        result = self._runner(cmd)
        if not result.succeeded:
            raise SwitchError(cmd, result.returncode, result.stdout, result.stderr)
        return result.stdout.strip()

    def ensure_bridge(self, bridge: str) -> None:
        self.run("--", "--may-exist", "add-br", bridge)

    def upsert_port(
        self,
        bridge: str,
        port: str,
        interface_columns: Optional[Mapping[str, Any]] = None,
    ) -> None:
        args = ["--", "--may-exist", "add-port", bridge, port]
        if interface_columns:
            args += ["--", "set", "interface", port, *format_columns(interface_columns)]
        self.run(*args)

    def get(self, table: str, record: str, column: str) -> str:
        return parse_value(self.run("--if-exists", "get", table, record, column))
