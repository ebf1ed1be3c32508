import asyncio
from typing import Sequence

import pytest

from trafficrunner.models.hosts import RunConfiguration
from trafficrunner.netns.exceptions import CommandSpawnError, CommandTimeoutError
from trafficrunner.runner.command_runner import CommandResult


def contains(argv: Sequence[str], fragment: Sequence[str]) -> bool:
    """True if fragment appears in argv as consecutive tokens."""
    n = len(fragment)
    return any(list(argv[i : i + n]) == list(fragment) for i in range(len(argv) - n + 1))


class FakeRunner:
    """CommandRunner that records argv and plays back scripted behaviour."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.events: list[str] = []
        self.timeouts: list[float | None] = []
        self._rules: list[tuple[tuple[str, ...], str, object]] = []

    def fail_on(self, *fragment: str, returncode: int = 1, stderr: str = "boom"):
        self._rules.append((fragment, "fail", (returncode, stderr)))

    def spawn_fail_on(self, *fragment: str):
        self._rules.append((fragment, "spawn", None))

    def timeout_on(self, *fragment: str):
        self._rules.append((fragment, "timeout", None))

    def raise_on(self, *fragment: str, exc: Exception):
        self._rules.append((fragment, "raise", exc))

    def delay_on(self, *fragment: str, seconds: float):
        self._rules.append((fragment, "delay", seconds))

    def calls_with(self, *fragment: str) -> list[list[str]]:
        return [argv for argv in self.calls if contains(argv, fragment)]

    async def run(self, argv, timeout=None):
        argv = list(argv)
        self.calls.append(argv)
        self.timeouts.append(timeout)
        self.events.append("command")

        for fragment, action, arg in self._rules:
            if action == "delay" and contains(argv, fragment):
                await asyncio.sleep(arg)

        for fragment, action, arg in self._rules:
            if not contains(argv, fragment):
                continue
            if action == "spawn":
                raise CommandSpawnError(argv, FileNotFoundError(2, "No such file"))
            if action == "timeout":
                raise CommandTimeoutError(argv, timeout or 1.0)
            if action == "raise":
                raise arg
            if action == "fail":
                returncode, stderr = arg
                return CommandResult(argv, returncode, "", stderr)

        return CommandResult(argv, 0, "", "")


class FakeInspector:
    def __init__(self, namespaces=(), links=()):
        self.namespaces = set(namespaces)
        self.links = set(links)

    async def existing_namespaces(self) -> set[str]:
        return set(self.namespaces)

    async def existing_links(self) -> set[str]:
        return set(self.links)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def run_config() -> RunConfiguration:
    return RunConfiguration(
        server_address="10.0.1.250",
        file_name="payload.bin",
        interface="eth0",
        prefix_length=24,
        namespace_template="ns",
        base_address="10.0.1.1",
        end_address="10.0.1.4",
    )
