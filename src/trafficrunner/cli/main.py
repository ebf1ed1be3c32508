"""
TrafficRunner CLI entry point.

Usage:
    trafficrunner [OPTIONS] COMMAND [ARGS]...

Commands:
    run      Provision namespaces, run concurrent SMB sessions, clean up
    plan     Show the hosts a run would create, without touching the network
    cleanup  Delete the namespaces a run would create
    version  Show version information

Example:
    trafficrunner run -a 192.168.20.10 -f test.bin -i eth0 -c 24 -n ns \\
        -b 192.168.20.101 -e 192.168.20.151
"""

import asyncio
from typing import Annotated

import typer
from pydantic import ValidationError

from trafficrunner.cli.formatters import (
    format_plan_table,
    format_run_summary,
    format_session_table,
)
from trafficrunner.cli.output import console, print_error, print_success, print_warning
from trafficrunner.config import config
from trafficrunner.models.enums import FailurePolicy, LogLevel
from trafficrunner.models.hosts import HostDescriptor, RunConfiguration
from trafficrunner.netns.exceptions import InvalidRangeError, NamingError
from trafficrunner.netns.inspector import Pyroute2Inspector
from trafficrunner.netns.planner import plan_hosts
from trafficrunner.runner.command_runner import SubprocessRunner
from trafficrunner.runner.harness import TrafficHarness
from trafficrunner.runner.reclaimer import EnvironmentReclaimer
from trafficrunner.utils.logger import configure_logging

app = typer.Typer(
    name="trafficrunner",
    help="Spawns concurrent SMB connections from isolated network namespaces",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

ADDRESS_RANGE_HELP = (
    "The range is half-open: base 10.0.1.1 and end 10.0.1.4 "
    "generate 10.0.1.1, 10.0.1.2 and 10.0.1.3."
)

# =============================================================================
# Shared options
# =============================================================================

CidrSuffixOption = Annotated[
    int,
    typer.Option(
        "--cidr-suffix",
        "-c",
        min=0,
        max=32,
        help="Network prefix length for every virtual interface address",
        envvar="TRAFFICRUNNER_CIDR_SUFFIX",
    ),
]
BaseNamespaceOption = Annotated[
    str,
    typer.Option(
        "--base-namespace",
        "-n",
        help="Base name for namespaces (index is appended, or replaces '{index}')",
        envvar="TRAFFICRUNNER_BASE_NAMESPACE",
    ),
]
BaseAddressOption = Annotated[
    str,
    typer.Option(
        "--base-address",
        "-b",
        help=f"First IP address for the virtual interfaces. {ADDRESS_RANGE_HELP}",
        envvar="TRAFFICRUNNER_BASE_ADDRESS",
    ),
]
EndAddressOption = Annotated[
    str,
    typer.Option(
        "--end-address",
        "-e",
        help=f"End IP address (excluded). {ADDRESS_RANGE_HELP}",
        envvar="TRAFFICRUNNER_END_ADDRESS",
    ),
]
TimeoutOption = Annotated[
    float | None,
    typer.Option(
        "--timeout", min=0, help="Timeout for each ip command, in seconds (0 = no limit)"
    ),
]


def _make_runner():
    return SubprocessRunner()


def _make_inspector():
    return Pyroute2Inspector()


def _plan_or_exit(
    base_address: str, end_address: str, cidr_suffix: int, base_namespace: str
) -> list[HostDescriptor]:
    """Plan hosts for plan/cleanup, exiting on invalid input."""
    try:
        return plan_hosts(base_address, end_address, cidr_suffix, base_namespace)
    except ValueError as e:
        print_error(f"Invalid address: {e}")
        raise typer.Exit(2)
    except (InvalidRangeError, NamingError) as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.callback()
def main(
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            "-l",
            help="Logging verbosity",
            envvar="TRAFFICRUNNER_LOG_LEVEL",
            case_sensitive=False,
        ),
    ] = config.LOG_LEVEL,
    ip_binary: Annotated[
        str | None,
        typer.Option("--ip-binary", help="Path to the ip(8) executable"),
    ] = None,
):
    """
    TrafficRunner SMB traffic generation tool.

    Creates one macvlan network namespace per address, downloads a file from
    an SMB share inside each of them concurrently, then deletes them again.
    """
    config.LOG_LEVEL = log_level
    if ip_binary:
        config.IP_BINARY = ip_binary
    configure_logging(log_level)


@app.command("run")
def run_command(
    samba_address: Annotated[
        str,
        typer.Option(
            "--samba-address",
            "-a",
            help="Address of the SAMBA server",
            envvar="TRAFFICRUNNER_SAMBA_ADDRESS",
        ),
    ],
    file: Annotated[
        str,
        typer.Option(
            "--file",
            "-f",
            help="File to download from the Samba server",
            envvar="TRAFFICRUNNER_FILE",
        ),
    ],
    interface: Annotated[
        str,
        typer.Option(
            "--interface",
            "-i",
            help="Network interface to attach the virtual interfaces to",
            envvar="TRAFFICRUNNER_INTERFACE",
        ),
    ],
    cidr_suffix: CidrSuffixOption,
    base_namespace: BaseNamespaceOption,
    base_address: BaseAddressOption,
    end_address: EndAddressOption,
    settle_delay: Annotated[
        float | None,
        typer.Option("--settle-delay", min=0, help="Seconds to wait between phases"),
    ] = None,
    queue_capacity: Annotated[
        int | None,
        typer.Option("--queue-capacity", min=1, help="Completion queue size"),
    ] = None,
    timeout: TimeoutOption = None,
    session_timeout: Annotated[
        float | None,
        typer.Option(
            "--session-timeout",
            min=0,
            help="Timeout for each SMB session, in seconds (0 = no limit)",
        ),
    ] = None,
    on_provision_failure: Annotated[
        FailurePolicy,
        typer.Option(
            "--on-provision-failure",
            help="abort: skip sessions; partial: run sessions on ready namespaces",
            case_sensitive=False,
        ),
    ] = FailurePolicy.ABORT,
    skip_name_check: Annotated[
        bool,
        typer.Option(
            "--skip-name-check",
            help="Do not check for existing namespaces/interfaces first",
        ),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit non-zero if any step failed"),
    ] = False,
):
    """Provision namespaces, run one SMB session in each, then clean up."""
    try:
        configuration = RunConfiguration(
            server_address=samba_address,
            file_name=file,
            interface=interface,
            prefix_length=cidr_suffix,
            namespace_template=base_namespace,
            base_address=base_address,
            end_address=end_address,
        )
    except ValidationError as e:
        print_error(f"Invalid configuration:\n{e}")
        raise typer.Exit(2)

    harness = TrafficHarness(
        configuration,
        runner=_make_runner(),
        inspector=None if skip_name_check else _make_inspector(),
        settle_delay=settle_delay,
        failure_policy=on_provision_failure,
        queue_capacity=queue_capacity,
        command_timeout=timeout,
        session_timeout=session_timeout,
    )

    try:
        report = asyncio.run(harness.run())
    except (InvalidRangeError, NamingError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(format_run_summary(report))
    sessions = format_session_table(report)
    if sessions is not None:
        console.print(sessions)

    if report.ok:
        print_success(f"Completed {report.count} sessions.")
    elif strict:
        raise typer.Exit(1)
    else:
        print_warning("Run finished with failures, see above.")


@app.command("plan")
def plan_command(
    cidr_suffix: CidrSuffixOption,
    base_namespace: BaseNamespaceOption,
    base_address: BaseAddressOption,
    end_address: EndAddressOption,
):
    """Show the hosts a run would create. Nothing is executed."""
    hosts = _plan_or_exit(base_address, end_address, cidr_suffix, base_namespace)
    if not hosts:
        console.print("[yellow]Empty range, no hosts planned.[/yellow]")
        return
    console.print(format_plan_table(hosts))


@app.command("cleanup")
def cleanup_command(
    cidr_suffix: CidrSuffixOption,
    base_namespace: BaseNamespaceOption,
    base_address: BaseAddressOption,
    end_address: EndAddressOption,
    timeout: TimeoutOption = None,
):
    """Delete the namespaces a run with these options would create."""
    hosts = _plan_or_exit(base_address, end_address, cidr_suffix, base_namespace)
    reclaimer = EnvironmentReclaimer(_make_runner(), timeout=timeout)
    report = asyncio.run(reclaimer.reclaim(hosts))

    for failure in report.failures:
        print_warning(str(failure))
    print_success(
        f"Deleted {len(report.deleted)}/{report.attempted} namespaces."
    )


@app.command("version")
def version():
    """Show version information."""
    from trafficrunner import __version__

    console.print(f"TrafficRunner v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
