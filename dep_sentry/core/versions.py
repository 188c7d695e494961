"""Version constraint normalization and lenient version comparison.

Only dotted numeric components are understood. Any component that is not
made of ASCII digits (``"3-beta"``, ``"rc1"``, ``""``) counts as ``0``.
"""

import re

CONSTRAINT_PREFIX = re.compile(r"^[~^>=<*]+")
_NUMERIC = re.compile(r"[0-9]+")


def normalize_version(constraint: str) -> str:
    """Strip leading constraint operators from a declared version.

    >>> normalize_version("^1.2.3")
    '1.2.3'
    >>> normalize_version(">=2.0")
    '2.0'
    >>> normalize_version("*")
    ''
    """
    return CONSTRAINT_PREFIX.sub("", constraint)


def _component(part: str) -> int:
    part = part.strip()
    if _NUMERIC.fullmatch(part):
        return int(part)
    return 0


def version_components(version: str) -> list:
    """Split a version into integer components."""
    return [_component(part) for part in version.split(".")]


def compare_versions(left: str, right: str) -> int:
    """Compare two normalized versions component by component.

    Returns:
        -1, 0 or 1 as ``left`` is lower than, equal to or higher than ``right``
    """
    left_parts = version_components(left)
    right_parts = version_components(right)
    width = max(len(left_parts), len(right_parts))
    left_parts += [0] * (width - len(left_parts))
    right_parts += [0] * (width - len(right_parts))

    for a, b in zip(left_parts, right_parts):
        if a != b:
            return 1 if a > b else -1
    return 0
