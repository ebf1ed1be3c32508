"""
Enumeration types for TrafficRunner.

This module defines the enumerations shared by the provisioning, dispatch
and reclamation phases and by the CLI.
"""

from enum import Enum


# =============================================================================
# Provisioning Enums
# =============================================================================


class ProvisionStep(str, Enum):
    """
    The ordered external operations that make one namespace ready for traffic.

    Every descriptor goes through all seven steps, in declaration order:
        CREATE_NAMESPACE -> CREATE_INTERFACE -> MOVE_INTERFACE ->
        ASSIGN_ADDRESS -> LINK_UP -> LOOPBACK_UP -> DEFAULT_ROUTE

    CHECK_NAMES is not a command; it tags the preflight name check.
    """

    CHECK_NAMES = "check_names"  # Preflight: names must not already exist
    CREATE_NAMESPACE = "create_namespace"  # ip netns add
    CREATE_INTERFACE = "create_interface"  # ip link add ... type macvlan mode bridge
    MOVE_INTERFACE = "move_interface"  # ip link set ... netns
    ASSIGN_ADDRESS = "assign_address"  # ip addr add inside the namespace
    LINK_UP = "link_up"  # macvlan up inside the namespace
    LOOPBACK_UP = "loopback_up"  # lo up inside the namespace
    DEFAULT_ROUTE = "default_route"  # default route via the macvlan


class FailurePolicy(str, Enum):
    """
    What the harness does after provisioning fails part way through.

    - ABORT: skip the dispatch phase, go straight to reclamation
    - PARTIAL: dispatch sessions only for fully provisioned namespaces
    """

    ABORT = "abort"
    PARTIAL = "partial"


# =============================================================================
# Session Enums
# =============================================================================


class SessionOutcome(str, Enum):
    """
    Terminal outcome of one client session worker.

    Every worker reports exactly one of these, so the dispatcher's
    fixed-count drain always terminates.
    """

    COMPLETED = "completed"  # smbclient exited 0
    CLIENT_ERROR = "client_error"  # smbclient ran but exited non-zero
    SPAWN_FAILED = "spawn_failed"  # Process could not be started at all
    TIMED_OUT = "timed_out"  # Session exceeded its timeout and was killed
    ERROR = "error"  # Unexpected failure inside the worker

    @property
    def is_success(self) -> bool:
        return self is SessionOutcome.COMPLETED


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels for TrafficRunner.

    Levels (from most to least verbose):
        - FULL: Debug output plus local variables in tracebacks
        - DEBUG: Debug messages and above (every external command)
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
