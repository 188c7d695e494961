"""Report aggregation."""

from collections import Counter
from typing import Iterable

from .models import PackageResult, ScanReport, ScanSummary, Severity


def build_report(results: Iterable[PackageResult]) -> ScanReport:
    """Reduce per-package results into a report.

    Tier counts are per vulnerable package, bucketed by its highest severity.
    Vulnerable packages keep their input order; clean packages only count
    towards ``total``.
    """
    results = list(results)
    vulnerable = [result for result in results if result.is_vulnerable]
    tiers = Counter(result.highest_severity for result in vulnerable)

    summary = ScanSummary(
        total=len(results),
        vulnerable=len(vulnerable),
        critical=tiers[Severity.CRITICAL],
        high=tiers[Severity.HIGH],
        moderate=tiers[Severity.MODERATE],
        low=tiers[Severity.LOW],
        info=tiers[Severity.INFO],
    )
    return ScanReport(summary=summary, vulnerabilities=tuple(vulnerable))
