"""
Host descriptors and run configuration.

HostDescriptor is the per-address record that drives one provision, session
and reclaim cycle. RunConfiguration holds the validated inputs of a single
run; it is built once from CLI options (or any other source) and never
mutated afterwards.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trafficrunner.netns.naming import MAX_INTERFACE_NAME_LENGTH


@dataclass(frozen=True)
class HostDescriptor:
    """One isolated client identity."""

    index: int  # 0-based, contiguous, in address order
    address: ipaddress.IPv4Address  # e.g., 10.0.1.1
    namespace_name: str  # e.g., "ns0"
    interface_name: str  # e.g., "macvlan0"
    cidr: str  # e.g., "10.0.1.1/24"


class RunConfiguration(BaseModel):
    """
    Validated inputs of one traffic run.

    All fields are required. Construction raises pydantic.ValidationError
    on missing or malformed input, before anything touches the network.
    """

    model_config = ConfigDict(frozen=True)

    server_address: ipaddress.IPv4Address = Field(
        ..., description="Address of the SMB server"
    )
    file_name: str = Field(
        ..., min_length=1, description="File to download from the share"
    )
    interface: str = Field(
        ...,
        min_length=1,
        max_length=MAX_INTERFACE_NAME_LENGTH,
        description="Parent physical interface for the macvlan devices",
    )
    prefix_length: int = Field(
        ..., ge=0, le=32, description="Network prefix length for each host CIDR"
    )
    namespace_template: str = Field(
        ..., min_length=1, description="Namespace base name or '{index}' template"
    )
    base_address: ipaddress.IPv4Address = Field(
        ..., description="First host address (inclusive)"
    )
    end_address: ipaddress.IPv4Address = Field(
        ..., description="End of the host range (exclusive)"
    )

    @field_validator("interface")
    @classmethod
    def _interface_has_no_whitespace(cls, value: str) -> str:
        if any(ch.isspace() for ch in value) or "/" in value:
            raise ValueError("interface name must not contain whitespace or '/'")
        return value

    @property
    def count(self) -> int:
        """Number of host descriptors this configuration produces."""
        return max(0, int(self.end_address) - int(self.base_address))

    def hosts(self) -> list[HostDescriptor]:
        """Plan the host descriptors for this run."""
        from trafficrunner.netns.planner import plan_hosts

        return plan_hosts(
            self.base_address,
            self.end_address,
            self.prefix_length,
            self.namespace_template,
        )
