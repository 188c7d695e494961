"""Data model for advisories and scan results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import AdvisoryPayloadError


class Severity(str, Enum):
    """Severity tiers, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK: Dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MODERATE: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class RangeType(str, Enum):
    """OSV range types. Anything unrecognized parses as ``UNKNOWN``."""

    SEMVER = "SEMVER"
    ECOSYSTEM = "ECOSYSTEM"
    GIT = "GIT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "RangeType":
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        return cls.UNKNOWN

    @property
    def is_version_based(self) -> bool:
        return self in (RangeType.SEMVER, RangeType.ECOSYSTEM)


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass(frozen=True)
class RangeEvent:
    """One event of an OSV range; unknown keys such as ``limit`` are dropped."""

    introduced: Optional[str] = None
    fixed: Optional[str] = None
    last_affected: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RangeEvent":
        return cls(
            introduced=_optional_str(data.get("introduced")),
            fixed=_optional_str(data.get("fixed")),
            last_affected=_optional_str(data.get("last_affected")),
        )


@dataclass(frozen=True)
class VersionRange:
    type: RangeType
    events: Tuple[RangeEvent, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionRange":
        return cls(
            type=RangeType.parse(data.get("type")),
            events=tuple(RangeEvent.from_dict(e) for e in _dicts(data.get("events"))),
        )


@dataclass(frozen=True)
class AffectedPackage:
    """Ties an advisory to one package within one ecosystem."""

    name: str
    ecosystem: str
    versions: Tuple[str, ...] = ()
    ranges: Tuple[VersionRange, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AffectedPackage":
        package = data.get("package")
        if not isinstance(package, dict):
            package = {}
        return cls(
            name=package.get("name") or "",
            ecosystem=package.get("ecosystem") or "",
            versions=tuple(_strings(data.get("versions"))),
            ranges=tuple(VersionRange.from_dict(r) for r in _dicts(data.get("ranges"))),
        )


@dataclass(frozen=True)
class SeverityScore:
    """A scoring-system entry such as ``("CVSS_V3", "9.8")``."""

    type: str
    score: str


@dataclass
class Advisory:
    """A vulnerability record as returned by OSV."""

    id: str
    summary: str = ""
    details: str = ""
    published: Optional[str] = None
    modified: Optional[str] = None
    aliases: List[str] = field(default_factory=list)
    affected: List[AffectedPackage] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    database_severity: Optional[str] = None
    severity_scores: List[SeverityScore] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Advisory ID cannot be empty")

    @property
    def cve(self) -> Optional[str]:
        """First CVE identifier among the aliases, if any."""
        return next((alias for alias in self.aliases if alias.startswith("CVE-")), None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Advisory":
        """Build an advisory from an OSV ``vulns`` entry.

        Raises:
            AdvisoryPayloadError: if the entry is not an object or has no ID
        """
        if not isinstance(data, dict):
            raise AdvisoryPayloadError(f"Advisory entry must be an object, got {type(data).__name__}")

        advisory_id = data.get("id")
        if not isinstance(advisory_id, str) or not advisory_id:
            raise AdvisoryPayloadError("Advisory entry has no ID")

        database_specific = data.get("database_specific")
        database_severity = None
        if isinstance(database_specific, dict):
            database_severity = _optional_str(database_specific.get("severity"))

        scores = [
            SeverityScore(type=str(entry.get("type", "")), score=str(entry.get("score", "")))
            for entry in _dicts(data.get("severity"))
        ]

        references = [
            ref["url"] for ref in _dicts(data.get("references"))
            if isinstance(ref.get("url"), str) and ref["url"]
        ]

        return cls(
            id=advisory_id,
            summary=_optional_str(data.get("summary")) or "",
            details=_optional_str(data.get("details")) or "",
            published=_optional_str(data.get("published")),
            modified=_optional_str(data.get("modified")),
            aliases=_strings(data.get("aliases")),
            affected=[AffectedPackage.from_dict(a) for a in _dicts(data.get("affected"))],
            references=references,
            database_severity=database_severity,
            severity_scores=scores,
        )


@dataclass(frozen=True)
class SecurityAdvisory:
    """Flat per-package advisory record included in reports."""

    advisory_id: str
    package_name: str
    title: str
    cve: Optional[str]
    affected_versions: str
    source: str
    reported_at: str
    severity: Severity
    reference: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "advisoryId": self.advisory_id,
            "packageName": self.package_name,
            "title": self.title,
            "cve": self.cve,
            "affectedVersions": self.affected_versions,
            "source": self.source,
            "reportedAt": self.reported_at,
            "severity": self.severity.value,
            "reference": self.reference,
        }


@dataclass(frozen=True)
class PackageResult:
    """Outcome of scanning one declared dependency."""

    package_name: str
    current_version: str
    vulnerabilities: Tuple[SecurityAdvisory, ...] = ()

    @property
    def is_vulnerable(self) -> bool:
        return len(self.vulnerabilities) > 0

    @property
    def highest_severity(self) -> Optional[Severity]:
        if not self.vulnerabilities:
            return None
        return max((v.severity for v in self.vulnerabilities), key=lambda s: s.rank)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "packageName": self.package_name,
            "currentVersion": self.current_version,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "isVulnerable": self.is_vulnerable,
        }
        highest = self.highest_severity
        if highest is not None:
            data["highestSeverity"] = highest.value
        return data


@dataclass(frozen=True)
class ScanSummary:
    total: int = 0
    vulnerable: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0
    info: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "vulnerable": self.vulnerable,
            "critical": self.critical,
            "high": self.high,
            "moderate": self.moderate,
            "low": self.low,
            "info": self.info,
        }


@dataclass(frozen=True)
class ScanReport:
    """Aggregated result of a scan; only vulnerable packages are listed."""

    summary: ScanSummary
    vulnerabilities: Tuple[PackageResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "vulnerabilities": [r.to_dict() for r in self.vulnerabilities],
        }
