"""Main CLI interface for DepSentry."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config import ECOSYSTEM_ALIASES, ECOSYSTEM_SOURCES, ScanConfig
from ..core.scanner import DependencyScanner
from ..exceptions import InvalidDependenciesError
from ..osv.online import OSVOnlineClient
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..utils.logging import get_logger, setup_logging
from ..utils.performance import PerformanceMonitor

app = typer.Typer(
    name="dep-sentry",
    help="Scan declared dependency versions against the OSV vulnerability database",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")

EXIT_INTERNAL_ERROR = 1
EXIT_INPUT_ERROR = 2


def _load_dependencies(path: Path) -> Dict[str, Any]:
    """Read a dependency mapping from a JSON file.

    The file holds either the mapping itself or an object with a
    ``dependencies`` key, as sent to the scan endpoint.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidDependenciesError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("dependencies"), dict):
        data = data["dependencies"]
    return data


def _fail(message: str, code: int, details: Optional[str] = None) -> typer.Exit:
    ConsoleFormatter(console).format_error(message, details)
    return typer.Exit(code)


@app.command()
def scan(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file mapping package names to declared versions"
    ),
    ecosystem: str = typer.Option(
        "crates.io",
        "--ecosystem",
        "-e",
        envvar="DEP_SENTRY_ECOSYSTEM",
        help="OSV ecosystem of the dependencies (e.g. crates.io, PyPI, npm)"
    ),
    concurrency: int = typer.Option(
        3,
        "--concurrency",
        envvar="DEP_SENTRY_CONCURRENCY",
        help="Maximum simultaneous OSV queries"
    ),
    timeout: float = typer.Option(
        30.0,
        "--timeout",
        envvar="DEP_SENTRY_TIMEOUT",
        help="Seconds before a single OSV query attempt is abandoned"
    ),
    retries: int = typer.Option(
        2,
        "--retries",
        envvar="DEP_SENTRY_RETRIES",
        help="Additional attempts after a failed OSV query"
    ),
    max_packages: Optional[int] = typer.Option(
        None,
        "--max-packages",
        envvar="DEP_SENTRY_MAX_PACKAGES",
        help="Reject inputs with more packages than this"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for the JSON report"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        help="Also write log messages to this file"
    ),
    performance: bool = typer.Option(
        False,
        "--performance",
        help="Show timing summary"
    )
) -> None:
    """Scan a dependency mapping for known vulnerabilities."""
    setup_logging(log_file=log_file, verbose=verbose)

    try:
        dependencies = _load_dependencies(file)
        config = ScanConfig(
            ecosystem=ecosystem,
            concurrency=concurrency,
            timeout=timeout,
            max_retries=retries,
            max_packages=max_packages,
        )
    except ValueError as e:
        raise _fail(str(e), EXIT_INPUT_ERROR)

    monitor = PerformanceMonitor()
    scanner = DependencyScanner(config, performance_monitor=monitor)

    try:
        report = scanner.scan_sync(dependencies)
    except InvalidDependenciesError as e:
        raise _fail(str(e), EXIT_INPUT_ERROR)
    except Exception as e:
        logger.error(f"Scan failed: {e!r}")
        if output:
            JSONFormatter(output).save_results(JSONFormatter().format_error("Internal server error"))
        raise _fail("Internal error while scanning", EXIT_INTERNAL_ERROR)

    scan_time = monitor.total_time("scan")
    ConsoleFormatter(console).format_scan_results(report, scan_time)

    if output:
        json_formatter = JSONFormatter(output)
        results = json_formatter.format_scan_results(
            report,
            metadata={
                "ecosystem": config.ecosystem,
                "scanTimeSeconds": round(scan_time, 3),
                "version": __version__,
            }
        )
        json_formatter.save_results(results)
        console.print(f"[green]Report saved to: {output}[/green]")

    if performance:
        monitor.print_summary(console)


@app.command()
def check(
    package: str = typer.Argument(..., help="Package name"),
    version: str = typer.Argument(..., help="Declared version or constraint"),
    ecosystem: str = typer.Option(
        "crates.io",
        "--ecosystem",
        "-e",
        envvar="DEP_SENTRY_ECOSYSTEM",
        help="OSV ecosystem of the package"
    )
) -> None:
    """Check a single package version."""
    try:
        config = ScanConfig(ecosystem=ecosystem)
    except ValueError as e:
        raise _fail(str(e), EXIT_INPUT_ERROR)

    try:
        report = DependencyScanner(config).scan_sync({package: version})
    except InvalidDependenciesError as e:
        raise _fail(str(e), EXIT_INPUT_ERROR)
    except Exception as e:
        logger.error(f"Check failed: {e!r}")
        raise _fail("Internal error while checking", EXIT_INTERNAL_ERROR)

    if not report.vulnerabilities:
        console.print(f"[green]No known vulnerabilities affect {package} {version}[/green]")
        return

    result = report.vulnerabilities[0]
    console.print(
        f"[red]{package} {version} is affected by {len(result.vulnerabilities)} advisories "
        f"(highest: {result.highest_severity.value})[/red]"
    )
    for advisory in result.vulnerabilities:
        cve = f" ({advisory.cve})" if advisory.cve else ""
        console.print(f"  • {advisory.advisory_id}{cve} [{advisory.severity.value}] {advisory.title}")


@app.command()
def test(
    timeout: float = typer.Option(10.0, "--timeout", help="Seconds to wait for OSV")
) -> None:
    """Test connectivity to the OSV API."""
    try:
        config = ScanConfig(timeout=timeout)
    except ValueError as e:
        raise _fail(str(e), EXIT_INPUT_ERROR)

    console.print("Testing OSV connectivity...")

    async def probe() -> bool:
        async with OSVOnlineClient(config) as client:
            return await client.test_connection()

    if asyncio.run(probe()):
        console.print("OSV API: connection successful")
    else:
        console.print("OSV API: connection failed")
        raise typer.Exit(EXIT_INTERNAL_ERROR)


@app.command()
def info() -> None:
    """Show DepSentry information."""
    console.print(Panel.fit(
        f"[bold blue]DepSentry[/bold blue] {__version__}\n"
        "Scans declared dependency versions against OSV.dev",
        title="Information"
    ))

    table = Table(title="Ecosystem presets")
    table.add_column("Ecosystem", style="cyan")
    table.add_column("Source tag", style="green")
    table.add_column("Aliases", style="white")

    for ecosystem, source in ECOSYSTEM_SOURCES.items():
        aliases = sorted(alias for alias, target in ECOSYSTEM_ALIASES.items() if target == ecosystem)
        table.add_row(ecosystem, source, ", ".join(aliases))

    console.print(table)


def main() -> None:
    """Main entry point for DepSentry CLI."""
    app()


if __name__ == "__main__":
    main()
