"""
Runner configuration.

A global config instance holding tool locations and timing knobs. The
per-run inputs (addresses, interface, file) live in RunConfiguration;
this covers everything that is the same from one run to the next.

Usage:
    from trafficrunner.config import config

    config.IP_BINARY = "/sbin/ip"
    config.SETTLE_DELAY_SECONDS = 0.5
"""

from dataclasses import dataclass

from trafficrunner.models.enums import LogLevel


@dataclass
class RunnerConfig:
    """Traffic runner configuration."""

    # Tool Configuration
    IP_BINARY: str = "/usr/sbin/ip"
    SMBCLIENT_BINARY: str = "smbclient"

    # SMB Session Configuration
    SHARE_NAME: str = "public"
    GUEST_USER: str = "guest"

    # Concurrency Configuration
    QUEUE_CAPACITY: int = 10  # Fan-in queue size, independent of host count

    # Timing Configuration
    SETTLE_DELAY_SECONDS: float = 0.1  # Let kernel network state converge between phases
    COMMAND_TIMEOUT_SECONDS: float | None = 30.0  # Per ip(8) invocation
    SESSION_TIMEOUT_SECONDS: float | None = None  # Per smbclient session, None = wait forever

    # Logging Configuration
    LOG_LEVEL: LogLevel = LogLevel.INFO

    def get_share_path(self, server_address: str) -> str:
        """Get the UNC path of the share on the given server."""
        return f"//{server_address}/{self.SHARE_NAME}/"


# Global config instance
config = RunnerConfig()
