"""Online OSV API client for DepSentry."""

import asyncio
import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
import certifi

from ..config import ScanConfig
from ..core.models import Advisory
from ..exceptions import AdvisoryPayloadError, UpstreamQueryError
from ..utils.logging import get_logger


@dataclass
class OSVQuery:
    """Represents an OSV API query."""

    package_name: str
    ecosystem: str
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert query to dictionary for API request.

        Returns:
            Dictionary representation of the query
        """
        query: Dict[str, Any] = {
            "package": {
                "name": self.package_name,
                "ecosystem": self.ecosystem,
            }
        }

        if self.version:
            query["version"] = self.version

        return query


class _RetryableStatus(Exception):
    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}")


class OSVOnlineClient:
    """Async client for the OSV.dev query API.

    Each call to :meth:`query_vulnerabilities` performs one logical query with
    its own timeout and retry budget. The client does not limit concurrency
    itself; the scanner's worker pool does.
    """

    QUERY_PATH = "/v1/query"
    RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ) -> None:
        """Initialize the OSV online client.

        Args:
            config: Scan settings (timeout, retries, endpoint)
            session: Optional aiohttp session for connection reuse; the
                caller stays responsible for closing it
        """
        self.config = config or ScanConfig()
        self.logger = get_logger("OSVOnlineClient")
        self._session = session
        self._owns_session = session is None
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    @property
    def query_url(self) -> str:
        return f"{self.config.base_url}{self.QUERY_PATH}"

    async def __aenter__(self) -> "OSVOnlineClient":
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def query_vulnerabilities(self, query: OSVQuery) -> List[Advisory]:
        """Query advisories for one package, retrying transient failures.

        Args:
            query: OSV query object

        Returns:
            Advisories returned by OSV, unfiltered. A non-success HTTP status
            yields an empty list.

        Raises:
            UpstreamQueryError: if every attempt timed out or failed to connect
            AdvisoryPayloadError: if OSV answered 200 with an unusable body
        """
        attempts = self.config.max_retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(self._send(query), timeout=self.config.timeout)
            except _RetryableStatus as e:
                last_error = e
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e

            if attempt + 1 < attempts:
                delay = self.config.backoff_delay(attempt)
                self.logger.info(
                    f"Attempt {attempt + 1} failed for {query.package_name}: {last_error!r}; "
                    f"retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        if isinstance(last_error, _RetryableStatus):
            self.logger.error(
                f"OSV API error for {query.package_name}: {last_error.status} - {last_error.body[:200]}"
            )
            return []

        raise UpstreamQueryError(query.package_name, attempts, last_error)

    async def _send(self, query: OSVQuery) -> List[Advisory]:
        session = self._get_session()

        async with session.post(self.query_url, json=query.to_dict()) as response:
            if response.status != 200:
                # error pages from proxies need not be UTF-8 or match their declared charset
                error_text = (await response.read()).decode("utf-8", errors="replace")
                if response.status in self.RETRYABLE_STATUSES:
                    raise _RetryableStatus(response.status, error_text)
                self.logger.error(f"OSV API error for {query.package_name}: {response.status} - {error_text[:200]}")
                return []

            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                raise AdvisoryPayloadError(f"OSV returned invalid JSON for {query.package_name}") from e

        return self._parse_vulnerabilities(data)

    def _parse_vulnerabilities(self, data: Any) -> List[Advisory]:
        """Parse the body of an OSV query response.

        Args:
            data: Decoded JSON body

        Returns:
            List of parsed advisories (an empty body means no advisories)
        """
        if data is None:
            return []
        if not isinstance(data, dict):
            raise AdvisoryPayloadError(f"OSV response must be an object, got {type(data).__name__}")

        vulns = data.get("vulns") or []
        if not isinstance(vulns, list):
            raise AdvisoryPayloadError("OSV response field 'vulns' must be a list")

        advisories = []
        for vuln in vulns:
            try:
                advisories.append(Advisory.from_dict(vuln))
            except AdvisoryPayloadError as e:
                self.logger.warning(f"Skipping unusable advisory entry: {e}")
        return advisories

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp ClientSession
        """
        if self._session is None or (self._owns_session and self._session.closed):
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                connector=connector,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def test_connection(self) -> bool:
        """Test connection to OSV API.

        Returns:
            True if the API answered
        """
        probe = OSVQuery(package_name="serde", ecosystem="crates.io")
        try:
            session = self._get_session()
            async with session.post(self.query_url, json=probe.to_dict()) as response:
                # 400 still proves the API is reachable
                return response.status in (200, 400)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            self.logger.error(f"Connection test failed: {e!r}")
            return False
