"""OSV (Open Source Vulnerabilities) client for DepSentry."""

from .online import OSVOnlineClient, OSVQuery

__all__ = [
    "OSVOnlineClient",
    "OSVQuery",
]
