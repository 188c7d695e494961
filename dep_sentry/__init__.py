"""DepSentry - scan declared dependency versions against the OSV vulnerability database."""

__version__ = "0.1.0"

from .config import ScanConfig
from .core.scanner import DependencyScanner
from .core.models import ScanReport, Severity
from .exceptions import DepSentryError, InvalidDependenciesError
from .osv.online import OSVOnlineClient
from .service import handle_scan_request

__all__ = [
    "DepSentryError",
    "DependencyScanner",
    "InvalidDependenciesError",
    "OSVOnlineClient",
    "ScanConfig",
    "ScanReport",
    "Severity",
    "handle_scan_request",
]
