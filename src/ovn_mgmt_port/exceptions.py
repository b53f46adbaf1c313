"""Error taxonomy for management port provisioning.

Every error raised by the provisioner derives from
:class:`ManagementPortError`.  None of them are retried internally; callers
are expected to retry the whole (idempotent) provisioning sequence.
"""

from __future__ import annotations

from typing import Optional, Sequence


class ManagementPortError(Exception):
    """Base exception for management port provisioning.

    ``operation`` names the provisioning step that failed.  It is filled in
    by the provisioner when the error crosses a step boundary so the caller
    can diagnose a failure without re-running the sequence.
    """

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class InvalidSubnet(ManagementPortError, ValueError):
    """A subnet string could not be used for address derivation."""

    def __init__(self, subnet: str, reason: str) -> None:
        self.subnet = subnet
        super().__init__(f"invalid subnet {subnet!r}: {reason}")


class CommandError(ManagementPortError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        *,
        message: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if message is None:
            message = f"command {' '.join(self.command)!r} failed"
            if returncode is not None:
                message += f" with status {returncode}"
            if stderr.strip():
                message += f": {stderr.strip()}"
        super().__init__(message)


class ControlPlaneError(CommandError):
    """An OVN Northbound database command failed."""


class ClusterRouterNotFound(ControlPlaneError):
    """No logical router carries the cluster router tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(
            [], message=f"no logical router found with external_ids:{tag}=yes"
        )
        self.tag = tag


class SwitchError(CommandError):
    """An Open vSwitch command failed."""


class HostConfigError(CommandError):
    """A host kernel networking operation failed."""


class InterfaceNotReady(ManagementPortError):
    """The OVS internal interface exists but has no usable MAC address."""

    def __init__(self, interface: str, mac: str = "") -> None:
        self.interface = interface
        self.mac = mac
        detail = f"reported {mac!r}" if mac else "no MAC reported"
        super().__init__(f"interface {interface} has no usable MAC address ({detail})")


class LoadBalancerNotFound(ManagementPortError):
    """A cluster load balancer expected to be pre-provisioned is missing."""

    def __init__(self, protocol: str, tag: str) -> None:
        self.protocol = protocol
        self.tag = tag
        super().__init__(
            f"cluster {protocol.upper()} load balancer not found "
            f"(external_ids:{tag}=yes)"
        )
