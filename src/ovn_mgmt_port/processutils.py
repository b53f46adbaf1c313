"""Blocking execution of external networking tools."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


Runner = Callable[[Sequence[str]], CommandResult]


def execute(cmd: Sequence[str]) -> CommandResult:
    """Run ``cmd`` to completion and capture its output.

    There is no timeout: a hung tool blocks the caller.  A missing binary is
    reported as a failed command (status 127) rather than an ``OSError`` so
    callers only have to classify exit status.
    """

    LOG.debug("Executing: %s", " ".join(cmd))
    try:
        proc = subprocess.run(list(cmd), check=False, text=True, capture_output=True)
    except FileNotFoundError as exc:
        return CommandResult(command=list(cmd), returncode=127, stdout="", stderr=str(exc))
    if proc.returncode != 0:
        LOG.debug(
            "Command %s exited %d: %s", cmd[0], proc.returncode, proc.stderr.strip()
        )
    return CommandResult(
        command=list(cmd),
        returncode=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
    )
