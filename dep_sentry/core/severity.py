"""Severity classification for OSV advisories.

The classifier is a heuristic. It looks at, in order:

1. the database-native ``database_specific.severity`` string,
2. ``CVSS_V3`` scores that are plain numbers,
3. keywords in the advisory summary,

and falls back to ``info``. The first source that yields a tier wins.
"""

from typing import Iterable, Optional, Tuple

from .models import Advisory, Severity, SeverityScore

CVSS_V3 = "CVSS_V3"

_DATABASE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Severity], ...] = (
    (("critical",), Severity.CRITICAL),
    (("high",), Severity.HIGH),
    (("medium", "moderate"), Severity.MODERATE),
    (("low",), Severity.LOW),
)

_SUMMARY_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Severity], ...] = (
    (("critical", "rce", "code execution"), Severity.CRITICAL),
    (("high", "privilege", "bypass"), Severity.HIGH),
    (("medium", "moderate", "disclosure"), Severity.MODERATE),
)


def _match_keywords(text: str, table: Iterable[Tuple[Tuple[str, ...], Severity]]) -> Optional[Severity]:
    for keywords, severity in table:
        if any(keyword in text for keyword in keywords):
            return severity
    return None


def severity_from_cvss(score: float) -> Optional[Severity]:
    """Map a numeric CVSS v3 base score to a tier; ``None`` for 0 or below."""
    if score >= 9.0:
        return Severity.CRITICAL
    if score >= 7.0:
        return Severity.HIGH
    if score >= 4.0:
        return Severity.MODERATE
    if score > 0:
        return Severity.LOW
    return None


def _severity_from_scores(scores: Iterable[SeverityScore]) -> Optional[Severity]:
    for entry in scores:
        if entry.type != CVSS_V3:
            continue
        try:
            value = float(entry.score)
        except ValueError:
            # OSV usually ships the vector string here, not a number
            continue
        severity = severity_from_cvss(value)
        if severity is not None:
            return severity
    return None


def classify_severity(advisory: Advisory) -> Severity:
    """Derive the severity tier of an advisory. Never raises."""
    if advisory.database_severity:
        severity = _match_keywords(advisory.database_severity.lower(), _DATABASE_KEYWORDS)
        if severity is not None:
            return severity

    severity = _severity_from_scores(advisory.severity_scores)
    if severity is not None:
        return severity

    severity = _match_keywords(advisory.summary.lower(), _SUMMARY_KEYWORDS)
    if severity is not None:
        return severity

    return Severity.INFO
