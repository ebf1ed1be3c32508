"""
Command line builders for ip(8) and smbclient(1).

Each function returns an argv list ready for the command runner. Arguments
are passed as separate strings, never through a shell.
"""

from __future__ import annotations

from trafficrunner.config import config
from trafficrunner.models.enums import ProvisionStep
from trafficrunner.models.hosts import HostDescriptor


def netns_exec(namespace: str, *argv: str, ip_binary: str | None = None) -> list[str]:
    """Wrap argv so that it runs inside the given namespace."""
    return [ip_binary or config.IP_BINARY, "netns", "exec", namespace, *argv]


def provision_commands(
    host: HostDescriptor,
    parent_interface: str,
    ip_binary: str | None = None,
) -> list[tuple[ProvisionStep, list[str]]]:
    """
    Build the seven provisioning commands for one host, in execution order.

    Equivalent shell:
        ip netns add $NS
        ip link add $MV link $PARENT type macvlan mode bridge
        ip link set $MV netns $NS
        ip netns exec $NS ip addr add $CIDR dev $MV
        ip netns exec $NS ip link set $MV up
        ip netns exec $NS ip link set lo up
        ip netns exec $NS ip route add default dev $MV
    """
    ip = ip_binary or config.IP_BINARY
    ns = host.namespace_name
    mv = host.interface_name

    return [
        (ProvisionStep.CREATE_NAMESPACE, [ip, "netns", "add", ns]),
        (
            ProvisionStep.CREATE_INTERFACE,
            [ip, "link", "add", mv, "link", parent_interface]
            + ["type", "macvlan", "mode", "bridge"],
        ),
        (ProvisionStep.MOVE_INTERFACE, [ip, "link", "set", mv, "netns", ns]),
        (
            ProvisionStep.ASSIGN_ADDRESS,
            netns_exec(ns, "ip", "addr", "add", host.cidr, "dev", mv, ip_binary=ip),
        ),
        (
            ProvisionStep.LINK_UP,
            netns_exec(ns, "ip", "link", "set", mv, "up", ip_binary=ip),
        ),
        (
            ProvisionStep.LOOPBACK_UP,
            netns_exec(ns, "ip", "link", "set", "lo", "up", ip_binary=ip),
        ),
        (
            ProvisionStep.DEFAULT_ROUTE,
            netns_exec(ns, "ip", "route", "add", "default", "dev", mv, ip_binary=ip),
        ),
    ]


def delete_namespace_command(
    host: HostDescriptor, ip_binary: str | None = None
) -> list[str]:
    """Build the command that deletes a host's namespace (and its macvlan)."""
    return [ip_binary or config.IP_BINARY, "netns", "del", host.namespace_name]


def session_command(
    host: HostDescriptor,
    server_address: str,
    file_name: str,
    ip_binary: str | None = None,
) -> list[str]:
    """
    Build the smbclient invocation for one host.

    Runs inside the host's namespace as the guest user without a password
    prompt and issues a single "get" for the requested file.
    """
    return netns_exec(
        host.namespace_name,
        config.SMBCLIENT_BINARY,
        f"-U{config.GUEST_USER}",
        "-N",
        config.get_share_path(server_address),
        "-c",
        f"get {file_name}",
        ip_binary=ip_binary,
    )
