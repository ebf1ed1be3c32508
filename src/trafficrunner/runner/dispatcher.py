"""
Concurrent session dispatch.

Fans out one smbclient session per host and fans their completion signals
back in through a bounded queue.

Architecture:
    worker(host 0) --\
    worker(host 1) ---+--> asyncio.Queue(maxsize=capacity) --> consumer
    worker(host N) --/                                        (exactly N gets)

Every worker puts exactly one CompletionSignal, whatever happens to its
process, and the consumer performs exactly len(hosts) gets. The queue
capacity only affects how long producers wait, never whether the drain
terminates.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Sequence

from trafficrunner.config import config
from trafficrunner.models.enums import SessionOutcome
from trafficrunner.models.hosts import HostDescriptor
from trafficrunner.netns.commands import session_command
from trafficrunner.netns.exceptions import (
    CommandSpawnError,
    CommandTimeoutError,
    SpawnFailedError,
)
from trafficrunner.runner.command_runner import CommandRunner
from trafficrunner.utils.logger import format_traceback, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompletionSignal:
    """Terminal report of one session worker."""

    index: int
    namespace_name: str
    outcome: SessionOutcome
    returncode: int | None = None
    error: str | None = None


@dataclass
class DispatchReport:
    """Signals collected by one dispatch, in arrival order."""

    signals: list[CompletionSignal] = field(default_factory=list)

    @property
    def received(self) -> int:
        return len(self.signals)

    @property
    def completed(self) -> list[CompletionSignal]:
        return [s for s in self.signals if s.outcome.is_success]

    @property
    def failed(self) -> list[CompletionSignal]:
        return [s for s in self.signals if not s.outcome.is_success]

    @property
    def ok(self) -> bool:
        return not self.failed

    def by_index(self) -> dict[int, CompletionSignal]:
        return {s.index: s for s in self.signals}


class SessionDispatcher:
    """
    Runs one client session per host concurrently.

    Args:
        runner: Command runner used to launch smbclient.
        server_address: SMB server address.
        file_name: File every session retrieves.
        queue_capacity: Size of the fan-in queue (defaults to config).
        timeout: Per-session timeout in seconds (None = wait forever).
        ip_binary: ip(8) executable, defaults to config.IP_BINARY.
    """

    def __init__(
        self,
        runner: CommandRunner,
        server_address: str,
        file_name: str,
        queue_capacity: int | None = None,
        timeout: float | None = None,
        ip_binary: str | None = None,
    ):
        self.runner = runner
        self.server_address = str(server_address)
        self.file_name = file_name
        self.queue_capacity = queue_capacity or config.QUEUE_CAPACITY
        self.timeout = timeout
        self.ip_binary = ip_binary

    def _make_queue(self) -> asyncio.Queue:
        return asyncio.Queue(maxsize=self.queue_capacity)

    async def dispatch(self, hosts: Sequence[HostDescriptor]) -> DispatchReport:
        """
        Run all sessions and wait for exactly one signal per host.

        Returns:
            DispatchReport with len(hosts) signals.
        """
        count = len(hosts)
        report = DispatchReport()
        if count == 0:
            logger.info("No hosts to dispatch")
            return report

        queue = self._make_queue()
        logger.info(
            f"Dispatching {count} sessions to {self.server_address} "
            f"(queue capacity {self.queue_capacity})"
        )

        workers = [
            asyncio.create_task(
                self._session_worker(host, queue), name=f"session-{host.index}"
            )
            for host in hosts
        ]

        try:
            for received in range(count):
                signal = await queue.get()
                report.signals.append(signal)
                logger.info(
                    f"Task {received} completed: host {signal.index} "
                    f"({signal.namespace_name}) -> {signal.outcome.value}"
                    + (f", exit {signal.returncode}" if signal.returncode is not None else "")
                )

            await asyncio.gather(*workers)
        except asyncio.CancelledError:
            logger.warning(
                f"Dispatch cancelled after {len(report.signals)}/{count} sessions, "
                "stopping the rest"
            )
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        logger.info(
            f"Dispatch finished: {len(report.completed)}/{count} sessions succeeded"
        )
        return report

    async def _session_worker(
        self, host: HostDescriptor, queue: asyncio.Queue
    ) -> None:
        """Run one session and put exactly one signal on the queue."""
        argv = session_command(
            host, self.server_address, self.file_name, self.ip_binary
        )

        try:
            result = await self.runner.run(argv, timeout=self.timeout)
            outcome = (
                SessionOutcome.COMPLETED if result.ok else SessionOutcome.CLIENT_ERROR
            )
            signal = CompletionSignal(
                index=host.index,
                namespace_name=host.namespace_name,
                outcome=outcome,
                returncode=result.returncode,
                error=None if result.ok else (result.stderr.strip() or None),
            )
        except CommandSpawnError as e:
            error = SpawnFailedError(host.index, e)
            logger.error(str(error))
            signal = CompletionSignal(
                index=host.index,
                namespace_name=host.namespace_name,
                outcome=SessionOutcome.SPAWN_FAILED,
                error=str(error),
            )
        except CommandTimeoutError as e:
            logger.warning(f"[Host {host.index}] Session timed out: {e}")
            signal = CompletionSignal(
                index=host.index,
                namespace_name=host.namespace_name,
                outcome=SessionOutcome.TIMED_OUT,
                error=str(e),
            )
        except Exception as e:
            logger.error(f"[Host {host.index}] Unexpected error in session: {e}")
            logger.debug(format_traceback(e))
            signal = CompletionSignal(
                index=host.index,
                namespace_name=host.namespace_name,
                outcome=SessionOutcome.ERROR,
                error=str(e),
            )

        await queue.put(signal)
