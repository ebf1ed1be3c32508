"""
Environment provisioning.

Creates one network namespace per host, each holding a bridge-mode macvlan
on the shared parent interface with the host's address and a default route.

Hosts are provisioned strictly one after another, and each step is awaited
before the next starts: macvlan creation and the namespace move both touch
the shared parent link, and a single in-flight step makes a failure
attributable to exactly one host and step.

Provisioning is fail-fast. The first failing step raises ProvisionFailedError
and nothing further is attempted. Namespaces created before the failure are
left in place for the reclaimer.
"""

from __future__ import annotations

from typing import Sequence

from trafficrunner.config import config
from trafficrunner.models.hosts import HostDescriptor
from trafficrunner.netns.commands import provision_commands
from trafficrunner.netns.exceptions import (
    CommandError,
    NameCollisionError,
    ProvisionFailedError,
)
from trafficrunner.netns.inspector import HostInspector
from trafficrunner.runner.command_runner import CommandRunner
from trafficrunner.utils.logger import get_logger

logger = get_logger(__name__)


class EnvironmentProvisioner:
    """
    Provisions isolated network environments for a host plan.

    Args:
        runner: Command runner used for every ip(8) invocation.
        parent_interface: Physical interface the macvlans attach to.
        inspector: Optional host inspector. When given, every planned name is
            checked for collisions before anything is created.
        timeout: Per-command timeout in seconds (None = config default,
            0 = no limit).
        ip_binary: ip(8) executable, defaults to config.IP_BINARY.
    """

    def __init__(
        self,
        runner: CommandRunner,
        parent_interface: str,
        inspector: HostInspector | None = None,
        timeout: float | None = None,
        ip_binary: str | None = None,
    ):
        self.runner = runner
        self.parent_interface = parent_interface
        self.inspector = inspector
        self.timeout = timeout if timeout is not None else config.COMMAND_TIMEOUT_SECONDS
        self.ip_binary = ip_binary

    async def provision(self, hosts: Sequence[HostDescriptor]) -> list[HostDescriptor]:
        """
        Provision every host in ascending index order.

        Returns:
            The provisioned hosts (all of them, on success).

        Raises:
            NameCollisionError: A planned name already exists (nothing created).
            ProvisionFailedError: A step failed; carries the hosts completed
                before the failure in its ``provisioned`` attribute.
        """
        hosts = sorted(hosts, key=lambda h: h.index)
        if self.inspector is not None:
            await self.check_names(hosts)

        provisioned: list[HostDescriptor] = []
        for host in hosts:
            await self._provision_host(host, provisioned)
            provisioned.append(host)

        logger.info(f"Provisioned {len(provisioned)} namespaces")
        return provisioned

    async def check_names(self, hosts: Sequence[HostDescriptor]) -> None:
        """Raise NameCollisionError if any planned name is already taken."""
        namespaces = await self.inspector.existing_namespaces()
        links = await self.inspector.existing_links()

        for host in hosts:
            if host.namespace_name in namespaces:
                raise NameCollisionError(host.index, host.namespace_name, "namespace")
            if host.interface_name in links:
                raise NameCollisionError(host.index, host.interface_name, "interface")

    async def _provision_host(
        self, host: HostDescriptor, provisioned: list[HostDescriptor]
    ) -> None:
        logger.info(
            f"[Host {host.index}] Creating {host.namespace_name} "
            f"with {host.interface_name} ({host.cidr})"
        )

        steps = provision_commands(host, self.parent_interface, self.ip_binary)
        for step, argv in steps:
            try:
                result = await self.runner.run(argv, timeout=self.timeout)
                result.check()
            except CommandError as e:
                logger.error(f"[Host {host.index}] Step '{step.value}' failed: {e}")
                raise ProvisionFailedError(host.index, step, e, provisioned) from e

            logger.debug(f"[Host {host.index}] Step '{step.value}' done")
