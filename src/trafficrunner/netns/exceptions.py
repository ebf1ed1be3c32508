"""Exception classes for planning, provisioning, dispatch and reclamation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from trafficrunner.models.enums import ProvisionStep
    from trafficrunner.models.hosts import HostDescriptor


class TrafficRunnerError(Exception):
    """Base exception for traffic runner operations."""

    pass


# =============================================================================
# Planning
# =============================================================================


class InvalidRangeError(TrafficRunnerError):
    """End address precedes base address."""

    def __init__(self, base_address, end_address):
        self.base_address = base_address
        self.end_address = end_address
        super().__init__(
            f"Invalid address range: end address {end_address} "
            f"precedes base address {base_address}"
        )


class NamingError(TrafficRunnerError):
    """A derived namespace or interface name is not usable."""

    pass


class InterfaceNameTooLongError(NamingError):
    """Interface name does not fit in IFNAMSIZ."""

    def __init__(self, name: str, index: int, limit: int):
        self.name = name
        self.index = index
        self.limit = limit
        super().__init__(
            f"Interface name '{name}' for host {index} is {len(name)} characters, "
            f"kernel limit is {limit}"
        )


class NamespaceNameError(NamingError):
    """Namespace name is empty, too long, or contains forbidden characters."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid namespace name '{name}': {reason}")


# =============================================================================
# External commands
# =============================================================================


class CommandError(TrafficRunnerError):
    """An external command did not complete successfully."""

    def __init__(self, message: str, argv: Sequence[str]):
        self.argv = list(argv)
        super().__init__(message)


class CommandSpawnError(CommandError):
    """The process could not be started."""

    def __init__(self, argv: Sequence[str], cause: OSError):
        self.cause = cause
        super().__init__(f"Could not start '{argv[0]}': {cause}", argv)


class CommandTimeoutError(CommandError):
    """The process exceeded its timeout and was killed."""

    def __init__(self, argv: Sequence[str], timeout: float):
        self.timeout = timeout
        super().__init__(f"'{' '.join(argv)}' timed out after {timeout}s", argv)


class CommandFailedError(CommandError):
    """The process exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(
            f"'{' '.join(argv)}' exited with status {returncode}{detail}", argv
        )


# =============================================================================
# Lifecycle phases
# =============================================================================


class ProvisionError(TrafficRunnerError):
    """Provisioning stopped before every namespace was ready."""

    def __init__(
        self,
        message: str,
        index: int,
        provisioned: Sequence[HostDescriptor] = (),
    ):
        self.index = index
        self.provisioned = list(provisioned)
        super().__init__(message)


class ProvisionFailedError(ProvisionError):
    """One of the per-host provisioning steps failed."""

    def __init__(
        self,
        index: int,
        step: ProvisionStep,
        cause: Exception,
        provisioned: Sequence[HostDescriptor] = (),
    ):
        self.step = step
        self.cause = cause
        super().__init__(
            f"Provisioning host {index} failed at step '{step.value}': {cause}",
            index,
            provisioned,
        )


class NameCollisionError(ProvisionError):
    """A planned namespace or interface name already exists on the host."""

    def __init__(self, index: int, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(
            f"{kind.capitalize()} '{name}' for host {index} already exists", index
        )


class SpawnFailedError(TrafficRunnerError):
    """A session worker could not start its client process."""

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Session for host {index} could not start: {cause}")


class DeleteFailedError(TrafficRunnerError):
    """Deleting one namespace failed."""

    def __init__(self, index: int, namespace: str, cause: Exception):
        self.index = index
        self.namespace = namespace
        self.cause = cause
        super().__init__(
            f"Deleting namespace '{namespace}' (host {index}) failed: {cause}"
        )
