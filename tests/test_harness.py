import asyncio

import pytest
from conftest import FakeInspector

from trafficrunner.models.enums import FailurePolicy, ProvisionStep
from trafficrunner.models.hosts import RunConfiguration
from trafficrunner.netns.exceptions import (
    InvalidRangeError,
    NameCollisionError,
    ProvisionFailedError,
)
from trafficrunner.runner.harness import TrafficHarness, run_traffic

IP = "/usr/sbin/ip"


def _harness(run_config, runner, **kwargs):
    kwargs.setdefault("settle_delay", 0)
    return TrafficHarness(run_config, runner=runner, ip_binary=IP, **kwargs)


def _phase(argv):
    if "smbclient" in argv:
        return "session"
    if argv[1:3] == ["netns", "del"]:
        return "reclaim"
    return "provision"


def test_end_to_end_phases_are_strictly_ordered(run_config, runner, monkeypatch):
    async def record_settle(self):
        runner.events.append("settle")

    monkeypatch.setattr(TrafficHarness, "_settle", record_settle)

    report = asyncio.run(_harness(run_config, runner).run())

    assert [str(h.address) for h in report.hosts] == ["10.0.1.1", "10.0.1.2", "10.0.1.3"]
    assert report.provisioned == report.hosts
    assert report.dispatch.received == 3
    assert report.reclaim.deleted == report.hosts
    assert report.ok

    phases = [_phase(argv) for argv in runner.calls]
    assert phases == ["provision"] * 21 + ["session"] * 3 + ["reclaim"] * 3

    settles = [i for i, event in enumerate(runner.events) if event == "settle"]
    assert settles == [21, 25]


def test_inverted_range_runs_nothing(runner):
    cfg = RunConfiguration(
        server_address="10.0.1.250",
        file_name="payload.bin",
        interface="eth0",
        prefix_length=24,
        namespace_template="ns",
        base_address="10.0.1.9",
        end_address="10.0.1.1",
    )

    with pytest.raises(InvalidRangeError):
        asyncio.run(_harness(cfg, runner).run())
    assert runner.calls == []


def test_empty_range_dispatches_nothing(run_config, runner):
    cfg = run_config.model_copy(update={"end_address": run_config.base_address})

    report = asyncio.run(_harness(cfg, runner).run())

    assert report.count == 0
    assert report.dispatch.received == 0
    assert runner.calls == []
    assert report.ok


def test_provision_failure_abort_skips_dispatch_and_reclaims_all(run_config, runner):
    runner.fail_on("link", "set", "macvlan1", "netns", "ns1")

    report = asyncio.run(_harness(run_config, runner).run())

    assert isinstance(report.provision_error, ProvisionFailedError)
    assert report.provision_error.index == 1
    assert report.provision_error.step is ProvisionStep.MOVE_INTERFACE
    assert report.provisioned == report.hosts[:1]
    assert report.dispatch is None
    assert not runner.calls_with("smbclient")
    assert [argv[-1] for argv in runner.calls_with("netns", "del")] == ["ns0", "ns1", "ns2"]
    assert not report.ok


def test_provision_failure_partial_dispatches_ready_hosts(run_config, runner):
    runner.fail_on("netns", "add", "ns2")

    report = asyncio.run(
        _harness(run_config, runner, failure_policy=FailurePolicy.PARTIAL).run()
    )

    assert report.provision_error.index == 2
    assert report.dispatch.received == 2
    sessions = [argv[3] for argv in runner.calls_with("smbclient")]
    assert sorted(sessions) == ["ns0", "ns1"]
    assert report.reclaim.attempted == 3


def test_name_collision_touches_nothing(run_config, runner):
    inspector = FakeInspector(namespaces={"ns0"})

    report = asyncio.run(_harness(run_config, runner, inspector=inspector).run())

    assert isinstance(report.provision_error, NameCollisionError)
    assert runner.calls == []
    assert report.dispatch is None
    assert report.reclaim is None


def test_session_and_reclaim_failures_do_not_stop_the_run(run_config, runner):
    runner.spawn_fail_on("exec", "ns0", "smbclient")
    runner.fail_on("netns", "del", "ns1")

    report = asyncio.run(_harness(run_config, runner).run())

    assert report.provision_error is None
    assert report.dispatch.received == 3
    assert len(report.dispatch.failed) == 1
    assert report.reclaim.attempted == 3
    assert [f.index for f in report.reclaim.failures] == [1]
    assert not report.ok


def test_run_traffic_sync_wrapper(run_config, runner):
    report = run_traffic(run_config, runner=runner, settle_delay=0, ip_binary=IP)
    assert report.ok
    assert report.count == 3


def test_cancelled_run_still_reclaims_every_namespace(run_config, runner):
    runner.delay_on("smbclient", seconds=3600)

    async def cancel_mid_dispatch():
        task = asyncio.create_task(_harness(run_config, runner).run())
        while len(runner.calls_with("smbclient")) < 3:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(cancel_mid_dispatch())

    assert [argv[-1] for argv in runner.calls_with("netns", "add")] == ["ns0", "ns1", "ns2"]
    assert [argv[-1] for argv in runner.calls_with("netns", "del")] == ["ns0", "ns1", "ns2"]


def test_cancelled_dispatch_stops_running_sessions(run_config, runner):
    from trafficrunner.runner.dispatcher import SessionDispatcher

    runner.delay_on("smbclient", seconds=3600)
    hosts = run_config.hosts()

    async def cancel_dispatch():
        dispatcher = SessionDispatcher(runner, "10.0.1.250", "payload.bin", ip_binary=IP)
        task = asyncio.create_task(dispatcher.dispatch(hosts))
        while len(runner.calls_with("smbclient")) < 3:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        current = asyncio.current_task()
        return [t for t in asyncio.all_tasks() if t is not current]

    assert asyncio.run(cancel_dispatch()) == []
