"""Namespace and interface naming conventions."""

from trafficrunner.netns.exceptions import (
    InterfaceNameTooLongError,
    NamespaceNameError,
)

# Prefixes
INTERFACE_PREFIX = "macvlan"
INDEX_PLACEHOLDER = "{index}"

# Kernel limits
IFNAMSIZ = 16  # Includes the terminating NUL
MAX_INTERFACE_NAME_LENGTH = IFNAMSIZ - 1
MAX_NAMESPACE_NAME_LENGTH = 255  # NAME_MAX, netns names are files in /var/run/netns

MAX_HOST_INDEX = 10 ** (MAX_INTERFACE_NAME_LENGTH - len(INTERFACE_PREFIX)) - 1


def interface_name(index: int) -> str:
    """Generate the macvlan interface name for a host index."""
    if index < 0:
        raise ValueError(f"Host index must be non-negative, got {index}")
    name = f"{INTERFACE_PREFIX}{index}"
    if len(name) > MAX_INTERFACE_NAME_LENGTH:
        raise InterfaceNameTooLongError(name, index, MAX_INTERFACE_NAME_LENGTH)
    return name


def namespace_name(template: str, index: int) -> str:
    """
    Generate the namespace name for a host index.

    A template containing "{index}" is formatted in place ("load-{index}-ns");
    any other template gets the index appended ("ns" -> "ns0", "ns1", ...).
    """
    if index < 0:
        raise ValueError(f"Host index must be non-negative, got {index}")
    if INDEX_PLACEHOLDER in template:
        name = template.replace(INDEX_PLACEHOLDER, str(index))
    else:
        name = f"{template}{index}"
    validate_namespace_name(name)
    return name


def validate_namespace_name(name: str) -> None:
    """Raise NamespaceNameError if ip-netns(8) cannot use this name."""
    if not name or name in (".", ".."):
        raise NamespaceNameError(name, "name is empty or a path component")
    if "/" in name or "\x00" in name:
        raise NamespaceNameError(name, "name must not contain '/' or NUL")
    if len(name) > MAX_NAMESPACE_NAME_LENGTH:
        raise NamespaceNameError(
            name, f"name is longer than {MAX_NAMESPACE_NAME_LENGTH} characters"
        )
