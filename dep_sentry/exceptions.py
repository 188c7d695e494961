"""Exception types raised by DepSentry."""

from typing import Optional


class DepSentryError(Exception):
    """Base class for DepSentry errors."""


class InvalidDependenciesError(DepSentryError, ValueError):
    """The dependency mapping handed to a scan is empty or malformed."""


class UpstreamQueryError(DepSentryError):
    """An advisory query kept failing after every retry attempt."""

    def __init__(self, package_name: str, attempts: int, cause: Optional[BaseException] = None) -> None:
        self.package_name = package_name
        self.attempts = attempts
        self.cause = cause
        reason = f": {cause!r}" if cause is not None else ""
        super().__init__(f"OSV query for {package_name!r} failed after {attempts} attempts{reason}")


class AdvisoryPayloadError(DepSentryError):
    """The advisory source answered with a body that is not a valid query response."""
