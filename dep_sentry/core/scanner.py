"""Dependency scan pipeline.

A scan normalizes every declared version, queries OSV once per package
through a fixed-size pool of worker tasks, keeps the advisories whose
affected ranges contain the declared version, classifies them and reduces
the per-package results into a :class:`ScanReport`.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

from ..config import ScanConfig
from ..exceptions import InvalidDependenciesError, UpstreamQueryError
from ..osv.online import OSVOnlineClient, OSVQuery
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor
from .aggregator import build_report
from .matcher import VulnerabilityMatcher
from .models import Advisory, PackageResult, ScanReport, SecurityAdvisory
from .severity import classify_severity
from .versions import normalize_version

OSV_VULNERABILITY_URL = "https://osv.dev/vulnerability/{id}"
DEFAULT_TITLE = "Security Advisory"

DependencyEntry = Tuple[str, str]


def validate_dependencies(dependencies: Any, max_packages: Optional[int] = None) -> Tuple[DependencyEntry, ...]:
    """Check a dependency mapping and freeze it into ordered entries.

    Args:
        dependencies: Mapping of package name to declared version constraint
        max_packages: Optional upper bound on the number of packages

    Returns:
        ``(name, constraint)`` pairs in the mapping's iteration order

    Raises:
        InvalidDependenciesError: if the mapping is missing, empty or malformed
    """
    if not isinstance(dependencies, Mapping):
        raise InvalidDependenciesError("Dependencies must be a mapping of package name to version")

    if not dependencies:
        raise InvalidDependenciesError("No dependencies found")

    if max_packages is not None and len(dependencies) > max_packages:
        raise InvalidDependenciesError(f"Maximum {max_packages} packages allowed per request")

    entries = []
    for name, constraint in dependencies.items():
        if not isinstance(name, str) or not name.strip():
            raise InvalidDependenciesError(f"Invalid package name: {name!r}")
        if not isinstance(constraint, str):
            raise InvalidDependenciesError(f"Version for {name!r} must be a string")
        entries.append((name, constraint))

    return tuple(entries)


class DependencyScanner:
    """Scans a dependency mapping against OSV."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        client: Optional[OSVOnlineClient] = None,
        performance_monitor: Optional[PerformanceMonitor] = None
    ) -> None:
        """Initialize the scanner.

        Args:
            config: Scan settings; defaults to :class:`ScanConfig` defaults
            client: Optional OSV client; when omitted one is opened per scan
            performance_monitor: Optional monitor recording scan timings
        """
        self.config = config or ScanConfig()
        self.logger = get_logger("DependencyScanner")
        self.matcher = VulnerabilityMatcher(self.config.ecosystem)
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self._client = client

    async def scan(self, dependencies: Mapping[str, str]) -> ScanReport:
        """Scan every declared dependency and build the report.

        Args:
            dependencies: Mapping of package name to declared version constraint

        Returns:
            Aggregated report

        Raises:
            InvalidDependenciesError: before any network call, on bad input
        """
        entries = validate_dependencies(dependencies, self.config.max_packages)
        self.logger.info(f"Scanning {len(entries)} {self.config.ecosystem} packages")

        with self.performance_monitor.measure("scan"):
            if self._client is not None:
                results = await self._run_workers(self._client, entries)
            else:
                async with OSVOnlineClient(self.config) as client:
                    results = await self._run_workers(client, entries)

        report = build_report(results)
        self.logger.info(
            f"Scan finished: {report.summary.vulnerable} of {report.summary.total} packages vulnerable"
        )
        return report

    def scan_sync(self, dependencies: Mapping[str, str]) -> ScanReport:
        """Blocking wrapper around :meth:`scan`."""
        return asyncio.run(self.scan(dependencies))

    async def _run_workers(self, client: OSVOnlineClient, entries: Tuple[DependencyEntry, ...]) -> List[PackageResult]:
        queue: "asyncio.Queue[Tuple[int, str, str]]" = asyncio.Queue()
        for index, (name, constraint) in enumerate(entries):
            queue.put_nowait((index, name, constraint))

        # each slot is written by exactly one worker
        results: List[Optional[PackageResult]] = [None] * len(entries)
        faults: List[Optional[BaseException]] = [None] * len(entries)

        async def worker() -> None:
            while True:
                try:
                    index, name, constraint = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    results[index] = await self._scan_package(client, name, constraint)
                except Exception as e:
                    self.logger.error(f"Scanning {name} failed: {e!r}")
                    faults[index] = e

        worker_count = min(self.config.concurrency, len(entries))
        await asyncio.gather(*(worker() for _ in range(worker_count)))

        for fault in faults:
            if fault is not None:
                raise fault

        return [result for result in results if result is not None]

    async def _scan_package(self, client: OSVOnlineClient, name: str, constraint: str) -> PackageResult:
        normalized = normalize_version(constraint)
        query = OSVQuery(
            package_name=name,
            ecosystem=self.config.ecosystem,
            version=normalized if self.config.include_version else None,
        )

        started = time.perf_counter()
        try:
            advisories = await client.query_vulnerabilities(query)
        except UpstreamQueryError as e:
            self.logger.warning(f"Treating {name} as clean: {e}")
            return PackageResult(package_name=name, current_version=constraint)
        self.logger.debug(f"Fetched {len(advisories)} advisories for {name} in {time.perf_counter() - started:.2f}s")

        matched = tuple(
            self._to_security_advisory(name, advisory)
            for advisory in advisories
            if self.matcher.is_affected(normalized, advisory.affected)
        )
        return PackageResult(package_name=name, current_version=constraint, vulnerabilities=matched)

    def _to_security_advisory(self, package_name: str, advisory: Advisory) -> SecurityAdvisory:
        reference = advisory.references[0] if advisory.references else OSV_VULNERABILITY_URL.format(id=advisory.id)
        reported_at = advisory.published or datetime.now(timezone.utc).isoformat()

        return SecurityAdvisory(
            advisory_id=advisory.id,
            package_name=package_name,
            title=advisory.summary or DEFAULT_TITLE,
            cve=advisory.cve,
            affected_versions=self.matcher.format_affected_versions(advisory.affected),
            source=self.config.source or f"OSV/{self.config.ecosystem}",
            reported_at=reported_at,
            severity=classify_severity(advisory),
            reference=reference,
        )
