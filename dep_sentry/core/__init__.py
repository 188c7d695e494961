"""Version handling, matching and scan pipeline for DepSentry."""

from .aggregator import build_report
from .matcher import VulnerabilityMatcher
from .models import Advisory, PackageResult, ScanReport, ScanSummary, SecurityAdvisory, Severity
from .scanner import DependencyScanner, validate_dependencies
from .severity import classify_severity
from .versions import compare_versions, normalize_version

__all__ = [
    "Advisory",
    "DependencyScanner",
    "PackageResult",
    "ScanReport",
    "ScanSummary",
    "SecurityAdvisory",
    "Severity",
    "VulnerabilityMatcher",
    "build_report",
    "classify_severity",
    "compare_versions",
    "normalize_version",
    "validate_dependencies",
]
