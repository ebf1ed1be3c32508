import asyncio
import sys

import pytest

from trafficrunner.netns.exceptions import (
    CommandFailedError,
    CommandSpawnError,
    CommandTimeoutError,
)
from trafficrunner.runner.command_runner import (
    CommandResult,
    SubprocessRunner,
    format_argv,
)


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_successful_command_captures_output():
    result = asyncio.run(SubprocessRunner().run(_python("print('hello')")))

    assert result.ok
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"
    assert result.check() is result


def test_non_zero_exit_is_a_result_not_an_exception():
    argv = _python("import sys; sys.stderr.write('nope'); sys.exit(3)")
    result = asyncio.run(SubprocessRunner().run(argv))

    assert not result.ok
    assert result.returncode == 3
    assert result.stderr == "nope"

    with pytest.raises(CommandFailedError) as exc_info:
        result.check()
    assert exc_info.value.returncode == 3
    assert "nope" in str(exc_info.value)


def test_missing_executable_raises_spawn_error():
    argv = ["/nonexistent/definitely-not-here", "arg"]
    with pytest.raises(CommandSpawnError) as exc_info:
        asyncio.run(SubprocessRunner().run(argv))

    assert exc_info.value.argv == argv
    assert isinstance(exc_info.value.cause, OSError)


def test_timeout_kills_process():
    argv = _python("import time; time.sleep(30)")
    with pytest.raises(CommandTimeoutError) as exc_info:
        asyncio.run(SubprocessRunner().run(argv, timeout=0.2))

    assert exc_info.value.timeout == 0.2


def test_format_argv_quotes_arguments():
    assert format_argv(["smbclient", "-c", "get a b"]) == "smbclient -c 'get a b'"


def test_command_result_defaults():
    result = CommandResult(["true"], 0)
    assert result.ok
    assert result.stdout == "" and result.stderr == ""


class ExitedProcess:
    """Process that exits on its own right after the timeout fires."""

    returncode = None

    def __init__(self):
        self.waited = False

    async def communicate(self):
        await asyncio.sleep(3600)

    def kill(self):
        raise ProcessLookupError()

    async def wait(self):
        self.waited = True
        self.returncode = 0
        return 0


def test_timeout_tolerates_process_already_gone(monkeypatch):
    proc = ExitedProcess()

    async def fake_exec(*argv, **kwargs):
        return proc

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)

    with pytest.raises(CommandTimeoutError):
        asyncio.run(SubprocessRunner().run(["ip", "netns", "add", "ns0"], timeout=0.05))
    assert proc.waited


def test_cancellation_kills_the_child(monkeypatch):
    argv = _python("import time; time.sleep(30)")
    spawned = []
    real_exec = asyncio.create_subprocess_exec

    async def recording_exec(*args, **kwargs):
        proc = await real_exec(*args, **kwargs)
        spawned.append(proc)
        return proc

    monkeypatch.setattr(asyncio, "create_subprocess_exec", recording_exec)

    async def cancel_soon():
        task = asyncio.create_task(SubprocessRunner().run(argv))
        while not spawned:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(cancel_soon())

    (proc,) = spawned
    assert proc.returncode is not None
    assert proc.returncode != 0


def test_zero_timeout_means_no_limit():
    argv = _python("import time; time.sleep(0.2); print('done')")
    result = asyncio.run(SubprocessRunner().run(argv, timeout=0))

    assert result.ok
    assert result.stdout.strip() == "done"
