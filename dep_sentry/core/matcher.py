"""Core vulnerability matching logic for DepSentry."""

from typing import Iterable, List

from ..utils.logging import get_logger
from .models import AffectedPackage, RangeEvent, VersionRange
from .versions import compare_versions

UNKNOWN_AFFECTED_VERSIONS = "Unknown"


class VulnerabilityMatcher:
    """Decides whether a normalized version falls inside an advisory's affected set.

    Only descriptors of the configured ecosystem are considered, and only
    ``SEMVER`` and ``ECOSYSTEM`` ranges are honored. Version comparison uses
    the lenient dotted-numeric comparator from :mod:`dep_sentry.core.versions`.
    """

    def __init__(self, ecosystem: str) -> None:
        """Initialize the matcher.

        Args:
            ecosystem: OSV ecosystem name descriptors must carry to be considered
        """
        self.ecosystem = ecosystem
        self.logger = get_logger("VulnerabilityMatcher")

    def is_affected(self, current_version: str, affected: Iterable[AffectedPackage]) -> bool:
        """Check whether ``current_version`` is affected by any descriptor.

        Args:
            current_version: Normalized version of the declared dependency
            affected: Affected-package descriptors of one advisory

        Returns:
            True on the first matching descriptor, False if none match
        """
        for descriptor in affected:
            if descriptor.ecosystem != self.ecosystem:
                continue

            if current_version in descriptor.versions:
                self.logger.debug(f"MATCH: {descriptor.name} {current_version} is listed explicitly")
                return True

            for version_range in descriptor.ranges:
                if self._range_matches(current_version, version_range):
                    self.logger.debug(f"MATCH: {descriptor.name} {current_version} is inside a {version_range.type.value} range")
                    return True

        return False

    def _range_matches(self, current_version: str, version_range: VersionRange) -> bool:
        if not version_range.type.is_version_based:
            self.logger.debug(f"Skipping {version_range.type.value} range")
            return False

        return any(self._event_matches(current_version, event) for event in version_range.events)

    @staticmethod
    def _event_matches(current_version: str, event: RangeEvent) -> bool:
        if event.introduced and event.fixed:
            return (compare_versions(current_version, event.introduced) >= 0
                    and compare_versions(current_version, event.fixed) < 0)
        if event.introduced:
            return compare_versions(current_version, event.introduced) >= 0
        if event.last_affected:
            return compare_versions(current_version, event.last_affected) <= 0
        return False

    def format_affected_versions(self, affected: Iterable[AffectedPackage]) -> str:
        """Human-readable description of the affected versions in this ecosystem.

        Args:
            affected: Affected-package descriptors of one advisory

        Returns:
            Comma separated ranges and versions, or ``"Unknown"``
        """
        parts: List[str] = []

        for descriptor in affected:
            if descriptor.ecosystem != self.ecosystem:
                continue

            if descriptor.versions:
                parts.append(", ".join(descriptor.versions))

            for version_range in descriptor.ranges:
                for event in version_range.events:
                    if event.introduced and event.fixed:
                        parts.append(f"{event.introduced} - {event.fixed}")
                    elif event.introduced:
                        parts.append(f">= {event.introduced}")
                    elif event.last_affected:
                        parts.append(f"<= {event.last_affected}")

        return ", ".join(parts) if parts else UNKNOWN_AFFECTED_VERSIONS
