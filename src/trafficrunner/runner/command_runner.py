"""
External command execution.

Every phase talks to the operating system through a CommandRunner, so the
exact argv sequence can be observed (and scripted) in tests without touching
real host networking state.
"""

from __future__ import annotations

import asyncio
import shlex
from dataclasses import dataclass
from typing import Protocol, Sequence

from trafficrunner.netns.exceptions import (
    CommandFailedError,
    CommandSpawnError,
    CommandTimeoutError,
)
from trafficrunner.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a command that ran to completion."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        """Return self, or raise CommandFailedError on a non-zero exit."""
        if not self.ok:
            raise CommandFailedError(self.argv, self.returncode, self.stderr)
        return self


class CommandRunner(Protocol):
    """Capability to run one external command and wait for it."""

    async def run(
        self, argv: Sequence[str], timeout: float | None = None
    ) -> CommandResult:
        """
        Run argv to completion.

        Raises:
            CommandSpawnError: The process could not be started.
            CommandTimeoutError: The process outlived timeout and was killed.
        """
        ...


def format_argv(argv: Sequence[str]) -> str:
    """Render argv as a copy-pasteable shell command."""
    return " ".join(shlex.quote(arg) for arg in argv)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass  # Exited on its own
    await proc.wait()


class SubprocessRunner:
    """CommandRunner backed by asyncio subprocesses."""

    async def run(
        self, argv: Sequence[str], timeout: float | None = None
    ) -> CommandResult:
        argv = list(argv)
        timeout = timeout or None  # 0 means no limit
        logger.debug(f"Running command: {format_argv(argv)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandSpawnError(argv, e) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            raise CommandTimeoutError(argv, timeout)
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        result = CommandResult(
            argv=argv,
            returncode=proc.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if result.ok:
            logger.debug("  Command succeeded")
        else:
            logger.debug(f"  Command returned non-zero: {result.returncode}")
        if result.stderr.strip():
            logger.debug(f"  stderr: {result.stderr.strip()}")
        return result
