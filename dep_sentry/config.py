"""Scan configuration for DepSentry."""

from dataclasses import dataclass
from typing import Dict, Optional

from . import __version__

DEFAULT_BASE_URL = "https://api.osv.dev"

# OSV ecosystem name -> source tag used in advisory records
ECOSYSTEM_SOURCES: Dict[str, str] = {
    "crates.io": "OSV/RustSec",
    "PyPI": "OSV/PyPA",
    "npm": "OSV/GitHub",
    "Packagist": "OSV/FriendsOfPHP",
    "NuGet": "OSV/GitHub",
    "Go": "OSV/Go",
    "Maven": "OSV/GitHub",
    "RubyGems": "OSV/RubySec",
}

# Common ecosystem spellings mapped to OSV ecosystem names
ECOSYSTEM_ALIASES: Dict[str, str] = {
    "rust": "crates.io",
    "cargo": "crates.io",
    "python": "PyPI",
    "pip": "PyPI",
    "node": "npm",
    "nodejs": "npm",
    "javascript": "npm",
    "php": "Packagist",
    "composer": "Packagist",
    "dotnet": "NuGet",
    ".net": "NuGet",
    "go": "Go",
    "golang": "Go",
    "java": "Maven",
    "ruby": "RubyGems",
}


def resolve_ecosystem(name: str) -> str:
    """Map a user-supplied ecosystem name to the OSV spelling.

    Known OSV names are matched case-insensitively; anything unknown is
    passed through unchanged so that new OSV ecosystems still work.
    """
    cleaned = name.strip()
    lowered = cleaned.lower()
    if lowered in ECOSYSTEM_ALIASES:
        return ECOSYSTEM_ALIASES[lowered]
    for osv_name in ECOSYSTEM_SOURCES:
        if osv_name.lower() == lowered:
            return osv_name
    return cleaned


@dataclass
class ScanConfig:
    """Settings for one scanner instance.

    Attributes:
        ecosystem: OSV ecosystem the dependencies belong to
        concurrency: Number of advisory queries allowed in flight at once
        timeout: Seconds before a single query attempt is abandoned
        max_retries: Additional attempts after the first failed one
        backoff_base: Delay before the first retry; doubles on every attempt
        max_packages: Optional upper bound on packages per scan
        include_version: Send the normalized version along with each query
        base_url: OSV API root
        user_agent: User-Agent header sent to OSV
        source: Source tag for advisory records, derived from the ecosystem if unset
    """

    ecosystem: str = "crates.io"
    concurrency: int = 3
    timeout: float = 30.0
    max_retries: int = 2
    backoff_base: float = 1.0
    max_packages: Optional[int] = None
    include_version: bool = True
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = f"dep-sentry/{__version__}"
    source: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize the ecosystem and validate numeric settings."""
        if not self.ecosystem or not self.ecosystem.strip():
            raise ValueError("Ecosystem cannot be empty")
        self.ecosystem = resolve_ecosystem(self.ecosystem)

        if self.concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("Max retries cannot be negative")
        if self.backoff_base < 0:
            raise ValueError("Backoff base cannot be negative")
        if self.max_packages is not None and self.max_packages < 1:
            raise ValueError("Max packages must be at least 1")

        self.base_url = self.base_url.rstrip("/")
        if self.source is None:
            self.source = ECOSYSTEM_SOURCES.get(self.ecosystem, f"OSV/{self.ecosystem}")

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after the zero-based ``attempt`` failed."""
        return self.backoff_base * (2 ** attempt)
