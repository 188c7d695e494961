"""Shared fixtures and fakes for DepSentry tests."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import pytest

from dep_sentry.config import ScanConfig
from dep_sentry.utils.logging import PACKAGE_LOGGER


def osv_vuln(
    vuln_id: str,
    package: str = "demo",
    ecosystem: str = "crates.io",
    events: Optional[List[Dict[str, str]]] = None,
    versions: Optional[List[str]] = None,
    range_type: str = "SEMVER",
    summary: str = "",
    database_severity: Optional[str] = None,
    cvss: Optional[str] = None,
    aliases: Optional[List[str]] = None,
    references: Optional[List[str]] = None,
    published: Optional[str] = "2024-01-01T00:00:00Z",
) -> Dict[str, Any]:
    """Build an OSV ``vulns`` entry."""
    affected: Dict[str, Any] = {"package": {"name": package, "ecosystem": ecosystem}}
    if events is not None:
        affected["ranges"] = [{"type": range_type, "events": events}]
    if versions is not None:
        affected["versions"] = versions

    vuln: Dict[str, Any] = {
        "id": vuln_id,
        "summary": summary,
        "aliases": aliases or [],
        "affected": [affected],
        "references": [{"type": "WEB", "url": url} for url in references or []],
    }
    if published:
        vuln["published"] = published
    if database_severity:
        vuln["database_specific"] = {"severity": database_severity}
    if cvss:
        vuln["severity"] = [{"type": "CVSS_V3", "score": cvss}]
    return vuln


class FakeResponse:
    """Stands in for an aiohttp response."""

    def __init__(
        self,
        status: int = 200,
        payload: Any = None,
        text: Optional[str] = None,
        body: Optional[bytes] = None,
    ) -> None:
        self.status = status
        self._payload = payload if payload is not None else {}
        self._text = text
        self._body = body

    async def read(self) -> bytes:
        if self._body is not None:
            return self._body
        return (await self.text()).encode("utf-8")

    async def json(self, content_type: Optional[str] = None) -> Any:
        if self._body is not None or self._text is not None:
            return json.loads(await self.text())
        return self._payload

    async def text(self, encoding: Optional[str] = None, errors: str = "strict") -> str:
        if self._body is not None:
            return self._body.decode(encoding or "utf-8", errors)
        if self._text is not None:
            return self._text
        return json.dumps(self._payload)


HANG = "hang"


class _RequestContext:
    def __init__(self, session: "FakeSession", name: str) -> None:
        self.session = session
        self.name = name

    async def __aenter__(self) -> FakeResponse:
        session = self.session
        session.in_flight += 1
        session.max_in_flight = max(session.max_in_flight, session.in_flight)
        try:
            delay = session.delays.get(self.name, 0)
            if delay:
                await asyncio.sleep(delay)
            script = session.responses.get(self.name, [FakeResponse(payload={})])
            action = script.pop(0) if len(script) > 1 else script[0]
            if action == HANG:
                await asyncio.sleep(60)
            if isinstance(action, BaseException):
                raise action
            return action
        except BaseException:
            session.in_flight -= 1
            raise

    async def __aexit__(self, *args: Any) -> None:
        self.session.in_flight -= 1


class FakeSession:
    """Scripted replacement for ``aiohttp.ClientSession``.

    ``responses`` maps a package name to a list of actions consumed one per
    request (the last one repeats): a :class:`FakeResponse`, an exception
    instance to raise, or :data:`HANG` to block past any timeout.
    """

    closed = False

    def __init__(
        self,
        responses: Optional[Dict[str, List[Any]]] = None,
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.responses = responses or {}
        self.delays = delays or {}
        self.calls: List[Dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def post(self, url: str, json: Any = None) -> _RequestContext:
        self.calls.append(json)
        return _RequestContext(self, json["package"]["name"])

    def calls_for(self, name: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["package"]["name"] == name]


@pytest.fixture
def fast_config() -> ScanConfig:
    """Config with tiny timeouts and no backoff delay."""
    return ScanConfig(ecosystem="crates.io", timeout=0.05, backoff_base=0.0)


@pytest.fixture
def package_logger():
    """The ``dep_sentry`` logger, with handlers and level restored afterwards."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logger.level
    handlers = list(logger.handlers)
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)
