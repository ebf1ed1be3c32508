"""Rich renderables for host plans and run reports."""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from trafficrunner.models.enums import SessionOutcome
from trafficrunner.models.hosts import HostDescriptor
from trafficrunner.runner.harness import RunReport
from trafficrunner.runner.reclaimer import ReclaimReport

OUTCOME_STYLES = {
    SessionOutcome.COMPLETED: "green",
    SessionOutcome.CLIENT_ERROR: "yellow",
    SessionOutcome.SPAWN_FAILED: "red",
    SessionOutcome.TIMED_OUT: "red",
    SessionOutcome.ERROR: "red",
}


def format_plan_table(hosts: list[HostDescriptor]) -> Table:
    """Table of planned host descriptors."""
    table = Table(title="Host Plan", show_header=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Address")
    table.add_column("Namespace", style="bold")
    table.add_column("Interface")
    table.add_column("CIDR")

    for host in hosts:
        table.add_row(
            str(host.index),
            str(host.address),
            host.namespace_name,
            host.interface_name,
            host.cidr,
        )
    return table


def format_run_summary(report: RunReport) -> Table:
    """Compact two-column summary of a run."""
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("Label", style="bold")
    summary.add_column("Value")

    summary.add_row("Hosts planned", str(report.count))

    provisioned = f"{len(report.provisioned)}/{report.count}"
    if report.provision_error is not None:
        provisioned += f" [red]({escape(str(report.provision_error))})[/red]"
    summary.add_row("Provisioned", provisioned)

    if report.dispatch is None:
        summary.add_row("Sessions", "[yellow]skipped[/yellow]")
    else:
        dispatch = report.dispatch
        summary.add_row(
            "Sessions",
            f"{len(dispatch.completed)}/{dispatch.received} succeeded",
        )

    if report.reclaim is None:
        summary.add_row("Reclaimed", "[yellow]skipped[/yellow]")
    else:
        summary.add_row("Reclaimed", _reclaim_text(report.reclaim))

    status = "[green]ok[/green]" if report.ok else "[red]with failures[/red]"
    summary.add_row("Result", status)
    return summary


def format_session_table(report: RunReport) -> Table | None:
    """Per-host session outcomes, ordered by host index."""
    if report.dispatch is None or not report.dispatch.signals:
        return None

    table = Table(title="Sessions", show_header=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Namespace")
    table.add_column("Outcome", justify="center")
    table.add_column("Exit", justify="right")
    table.add_column("Error", overflow="ellipsis")

    for index, signal in sorted(report.dispatch.by_index().items()):
        style = OUTCOME_STYLES.get(signal.outcome, "white")
        table.add_row(
            str(index),
            signal.namespace_name,
            f"[{style}]{signal.outcome.value}[/{style}]",
            "-" if signal.returncode is None else str(signal.returncode),
            escape(signal.error or ""),
        )
    return table


def _reclaim_text(reclaim: ReclaimReport) -> str:
    text = f"{len(reclaim.deleted)}/{reclaim.attempted}"
    if reclaim.failures:
        text += f" [yellow]({len(reclaim.failures)} failed)[/yellow]"
    return text
