"""
Environment reclamation.

Deletes every planned namespace in ascending index order. Deleting a
namespace also destroys the macvlan inside it. Unlike provisioning this is
best-effort: a failed deletion is recorded and the next host is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from trafficrunner.config import config
from trafficrunner.models.hosts import HostDescriptor
from trafficrunner.netns.commands import delete_namespace_command
from trafficrunner.netns.exceptions import CommandError, DeleteFailedError
from trafficrunner.runner.command_runner import CommandRunner
from trafficrunner.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReclaimReport:
    """Result of one reclamation pass."""

    deleted: list[HostDescriptor] = field(default_factory=list)
    failures: list[DeleteFailedError] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.deleted) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


class EnvironmentReclaimer:
    """
    Deletes the namespaces of a host plan.

    Args:
        runner: Command runner used for every ip(8) invocation.
        timeout: Per-command timeout in seconds (None = config default,
            0 = no limit).
        ip_binary: ip(8) executable, defaults to config.IP_BINARY.
    """

    def __init__(
        self,
        runner: CommandRunner,
        timeout: float | None = None,
        ip_binary: str | None = None,
    ):
        self.runner = runner
        self.timeout = timeout if timeout is not None else config.COMMAND_TIMEOUT_SECONDS
        self.ip_binary = ip_binary

    async def reclaim(self, hosts: Sequence[HostDescriptor]) -> ReclaimReport:
        """Delete every host's namespace, continuing past failures."""
        report = ReclaimReport()

        for host in sorted(hosts, key=lambda h: h.index):
            logger.info(
                f"Deleting namespace {host.namespace_name} "
                f"(interface {host.interface_name})"
            )
            argv = delete_namespace_command(host, self.ip_binary)
            try:
                result = await self.runner.run(argv, timeout=self.timeout)
                result.check()
            except CommandError as e:
                error = DeleteFailedError(host.index, host.namespace_name, e)
                logger.warning(str(error))
                report.failures.append(error)
                continue

            report.deleted.append(host)

        if report.failures:
            logger.warning(
                f"Reclaimed {len(report.deleted)}/{report.attempted} namespaces, "
                f"{len(report.failures)} deletions failed"
            )
        else:
            logger.info(f"Reclaimed {len(report.deleted)} namespaces")
        return report
