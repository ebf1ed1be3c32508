"""
TrafficRunner - concurrent SMB traffic generation from isolated network namespaces.

Provisions one macvlan-backed network namespace per target address, runs one
smbclient session inside each of them concurrently, then tears everything down.
"""

__version__ = "0.1.0"
