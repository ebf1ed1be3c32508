"""
Host address planning.

Turns an address range and naming template into the ordered list of host
descriptors consumed by every later phase. No I/O happens here; the same
inputs always produce the same plan, so each phase may re-plan freely.
"""

from __future__ import annotations

import ipaddress

from trafficrunner.models.hosts import HostDescriptor
from trafficrunner.netns.exceptions import InterfaceNameTooLongError, InvalidRangeError
from trafficrunner.netns.naming import (
    INTERFACE_PREFIX,
    MAX_HOST_INDEX,
    MAX_INTERFACE_NAME_LENGTH,
    interface_name,
    namespace_name,
)


def _as_address(value) -> ipaddress.IPv4Address:
    if isinstance(value, ipaddress.IPv4Address):
        return value
    return ipaddress.IPv4Address(value)


def plan_hosts(
    base_address: ipaddress.IPv4Address | str,
    end_address: ipaddress.IPv4Address | str,
    prefix_length: int,
    namespace_template: str,
) -> list[HostDescriptor]:
    """
    Plan one host descriptor per address in [base_address, end_address).

    The end address is excluded, so equal addresses yield an empty plan.

    Args:
        base_address: First address, inclusive.
        end_address: Range end, exclusive.
        prefix_length: Prefix length appended to every CIDR.
        namespace_template: Namespace base name or "{index}" template.

    Returns:
        Descriptors ordered by index, which is also address order.

    Raises:
        InvalidRangeError: If end_address precedes base_address.
        NamingError: If a derived name violates a kernel limit.
    """
    base = _as_address(base_address)
    end = _as_address(end_address)
    if end < base:
        raise InvalidRangeError(base, end)

    count = int(end) - int(base)
    # Fail before allocating anything when the last index cannot be named
    if count - 1 > MAX_HOST_INDEX:
        first_bad = MAX_HOST_INDEX + 1
        raise InterfaceNameTooLongError(
            f"{INTERFACE_PREFIX}{first_bad}", first_bad, MAX_INTERFACE_NAME_LENGTH
        )

    hosts = []
    for index in range(count):
        address = base + index
        hosts.append(
            HostDescriptor(
                index=index,
                address=address,
                namespace_name=namespace_name(namespace_template, index),
                interface_name=interface_name(index),
                cidr=f"{address}/{prefix_length}",
            )
        )
    return hosts
