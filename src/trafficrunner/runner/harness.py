"""
Traffic harness.

Drives the full lifecycle for one RunConfiguration:

    plan -> provision -> settle -> dispatch -> settle -> reclaim

The phases never overlap. Provisioning and reclamation walk the plan in
index order one command at a time; only the dispatch phase runs work
concurrently. The settle delays give the kernel time to converge its
network state before it is exercised and before it is torn down.

When provisioning fails part way through, the failure policy decides what
happens to the dispatch phase (see FailurePolicy). Reclamation always covers
the full plan, including hosts that were never provisioned, and also runs
when the run is cancelled part way through. The one exception is a
name collision: then nothing was created and the colliding names belong to
someone else.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from trafficrunner.config import config
from trafficrunner.models.enums import FailurePolicy
from trafficrunner.models.hosts import HostDescriptor, RunConfiguration
from trafficrunner.netns.exceptions import NameCollisionError, ProvisionError
from trafficrunner.netns.inspector import HostInspector
from trafficrunner.runner.command_runner import CommandRunner, SubprocessRunner
from trafficrunner.runner.dispatcher import DispatchReport, SessionDispatcher
from trafficrunner.runner.provisioner import EnvironmentProvisioner
from trafficrunner.runner.reclaimer import EnvironmentReclaimer, ReclaimReport
from trafficrunner.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RunReport:
    """Everything that happened during one run."""

    hosts: list[HostDescriptor] = field(default_factory=list)
    provisioned: list[HostDescriptor] = field(default_factory=list)
    provision_error: ProvisionError | None = None
    dispatch: DispatchReport | None = None
    reclaim: ReclaimReport | None = None

    @property
    def count(self) -> int:
        return len(self.hosts)

    @property
    def ok(self) -> bool:
        return (
            self.provision_error is None
            and self.dispatch is not None
            and self.dispatch.ok
            and self.reclaim is not None
            and self.reclaim.ok
        )


class TrafficHarness:
    """
    Provision, exercise and reclaim one set of isolated client environments.

    Args:
        configuration: Validated run inputs.
        runner: Command runner (defaults to SubprocessRunner).
        inspector: Optional host inspector for the name collision preflight.
        settle_delay: Seconds to wait between phases (defaults to config).
        failure_policy: What to do with the dispatch phase after a
            provisioning failure.
        queue_capacity: Dispatcher fan-in queue size (defaults to config).
        command_timeout: Timeout for each ip(8) call (defaults to config).
        session_timeout: Timeout for each smbclient session (defaults to config).
        ip_binary: ip(8) executable (defaults to config).
    """

    def __init__(
        self,
        configuration: RunConfiguration,
        runner: CommandRunner | None = None,
        inspector: HostInspector | None = None,
        settle_delay: float | None = None,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        queue_capacity: int | None = None,
        command_timeout: float | None = None,
        session_timeout: float | None = None,
        ip_binary: str | None = None,
    ):
        self.configuration = configuration
        self.runner = runner or SubprocessRunner()
        self.settle_delay = (
            settle_delay if settle_delay is not None else config.SETTLE_DELAY_SECONDS
        )
        self.failure_policy = failure_policy

        self.provisioner = EnvironmentProvisioner(
            self.runner,
            configuration.interface,
            inspector=inspector,
            timeout=command_timeout,
            ip_binary=ip_binary,
        )
        self.dispatcher = SessionDispatcher(
            self.runner,
            str(configuration.server_address),
            configuration.file_name,
            queue_capacity=queue_capacity,
            timeout=(
                session_timeout
                if session_timeout is not None
                else config.SESSION_TIMEOUT_SECONDS
            ),
            ip_binary=ip_binary,
        )
        self.reclaimer = EnvironmentReclaimer(
            self.runner, timeout=command_timeout, ip_binary=ip_binary
        )

    async def run(self) -> RunReport:
        """
        Run all three phases.

        Raises:
            InvalidRangeError: The address range is inverted (nothing runs).
            NamingError: A derived name violates a kernel limit (nothing runs).
        """
        hosts = self.configuration.hosts()
        report = RunReport(hosts=hosts)
        logger.info(
            f"Planned {len(hosts)} hosts "
            f"({self.configuration.base_address} - {self.configuration.end_address}, "
            f"end excluded)"
        )

        collided = False
        try:
            # Phase 1: provision
            try:
                report.provisioned = await self.provisioner.provision(hosts)
            except ProvisionError as e:
                report.provision_error = e
                report.provisioned = list(e.provisioned)
                logger.error(f"Provisioning stopped: {e}")

            if isinstance(report.provision_error, NameCollisionError):
                logger.error("Name collision detected, nothing was created; skipping run")
                collided = True
                return report

            await self._settle()

            # Phase 2: dispatch
            targets = self._dispatch_targets(report)
            if targets is None:
                logger.warning(
                    "Skipping session dispatch after provisioning failure "
                    f"(policy: {self.failure_policy.value})"
                )
            else:
                report.dispatch = await self.dispatcher.dispatch(targets)
                await self._settle()
        except asyncio.CancelledError:
            logger.warning("Run cancelled, reclaiming namespaces before exit")
            raise
        finally:
            # Phase 3: reclaim, also when interrupted
            if not collided:
                report.reclaim = await self.reclaimer.reclaim(hosts)

        return report

    def _dispatch_targets(self, report: RunReport) -> list[HostDescriptor] | None:
        if report.provision_error is None:
            return report.hosts
        if self.failure_policy is FailurePolicy.PARTIAL:
            return report.provisioned
        return None

    async def _settle(self) -> None:
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)


def run_traffic(configuration: RunConfiguration, **kwargs) -> RunReport:
    """Synchronous entry point: build a harness and run it to completion."""
    return asyncio.run(TrafficHarness(configuration, **kwargs).run())
