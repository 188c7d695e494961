"""Request-level entry point for callers embedding the scanner.

Maps a decoded JSON request body to a status code and response body the
way an HTTP route would: input problems become ``400``, anything
unexpected becomes a generic ``500``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import ScanConfig
from .core.scanner import DependencyScanner
from .exceptions import InvalidDependenciesError
from .osv.online import OSVOnlineClient
from .utils.logging import get_logger

logger = get_logger("ScanService")

ClientFactory = Callable[[ScanConfig], OSVOnlineClient]


@dataclass(frozen=True)
class ScanOutcome:
    status: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status == 200


async def handle_scan_request(
    payload: Any,
    config: Optional[ScanConfig] = None,
    client_factory: Optional[ClientFactory] = None
) -> ScanOutcome:
    """Run a scan for a ``{"dependencies": {...}}`` request body.

    Args:
        payload: Decoded request body
        config: Scan settings
        client_factory: Builds the OSV client for this request; the default
            opens a fresh client per request

    Returns:
        Status code and JSON-serializable body
    """
    config = config or ScanConfig()

    dependencies = payload.get("dependencies") if isinstance(payload, dict) else None
    if not dependencies or not isinstance(dependencies, dict):
        if isinstance(dependencies, dict):
            return ScanOutcome(400, {"error": "No dependencies found"})
        return ScanOutcome(400, {"error": "Dependencies required"})

    try:
        if client_factory is None:
            report = await DependencyScanner(config).scan(dependencies)
        else:
            async with client_factory(config) as client:
                report = await DependencyScanner(config, client=client).scan(dependencies)
    except InvalidDependenciesError as e:
        return ScanOutcome(400, {"error": str(e)})
    except Exception as e:
        logger.exception(f"Error in {config.ecosystem} vulnerability scan: {e!r}")
        return ScanOutcome(500, {"error": "Internal server error"})

    return ScanOutcome(200, report.to_dict())
