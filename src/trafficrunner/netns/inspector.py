"""
Host network inspection.

Answers "does this name already exist?" for namespaces and links in the root
namespace, so that provisioning can refuse to reuse names it did not create.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from trafficrunner.utils.logger import get_logger

logger = get_logger(__name__)


class HostInspector(Protocol):
    """Read-only view of the host's namespaces and links."""

    async def existing_namespaces(self) -> set[str]: ...

    async def existing_links(self) -> set[str]: ...


class Pyroute2Inspector:
    """HostInspector backed by pyroute2 netlink queries."""

    async def existing_namespaces(self) -> set[str]:
        """Names of all namespaces registered under /var/run/netns."""
        return await asyncio.to_thread(self._list_namespaces_sync)

    async def existing_links(self) -> set[str]:
        """Names of all links in the root namespace."""
        return await asyncio.to_thread(self._list_links_sync)

    def _list_namespaces_sync(self) -> set[str]:
        from pyroute2 import netns

        names = set(netns.listnetns())
        logger.debug(f"Found {len(names)} existing namespaces")
        return names

    def _list_links_sync(self) -> set[str]:
        from pyroute2 import IPRoute

        ipr = IPRoute()
        try:
            names = {link.get_attr("IFLA_IFNAME") for link in ipr.get_links()}
            logger.debug(f"Found {len(names)} existing links")
            return names
        finally:
            ipr.close()
