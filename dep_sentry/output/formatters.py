"""Output formatters for DepSentry results."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import ScanReport, Severity
from ..utils.logging import get_logger

SEVERITY_STYLES = {
    Severity.CRITICAL: "red bold",
    Severity.HIGH: "red",
    Severity.MODERATE: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "white",
}


class ConsoleFormatter:
    """Rich console formatter for DepSentry output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()

    def format_scan_results(self, report: ScanReport, scan_time: Optional[float] = None) -> None:
        """Display the summary panel followed by the vulnerable packages.

        Args:
            report: Scan report
            scan_time: Time taken for the scan in seconds
        """
        self.console.print(self._create_summary_panel(report, scan_time))

        if not report.vulnerabilities:
            self.console.print(Panel("No vulnerabilities found!", style="green"))
            return

        self.console.print(self._create_vulnerabilities_table(report))

    def _create_summary_panel(self, report: ScanReport, scan_time: Optional[float]) -> Panel:
        summary = report.summary

        if summary.vulnerable:
            style = "red"
            title = f"{summary.vulnerable} vulnerable packages"
        else:
            style = "green"
            title = "No vulnerable packages"

        lines = [
            f"Packages scanned: {summary.total}",
            f"Vulnerable packages: {summary.vulnerable}",
            f"Critical: {summary.critical}  High: {summary.high}  Moderate: {summary.moderate}  "
            f"Low: {summary.low}  Info: {summary.info}",
        ]
        if scan_time is not None:
            lines.append(f"Scan time: {scan_time:.2f}s")

        return Panel("\n".join(lines), title=title, style=style)

    def _create_vulnerabilities_table(self, report: ScanReport) -> Table:
        table = Table(title="Vulnerabilities Found")

        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Version", style="blue")
        table.add_column("Advisory", style="red")
        table.add_column("CVE", style="magenta")
        table.add_column("Severity")
        table.add_column("Affected", style="white")
        table.add_column("Title", style="white")

        for result in report.vulnerabilities:
            for advisory in result.vulnerabilities:
                title = advisory.title
                if len(title) > 50:
                    title = title[:50] + "..."
                table.add_row(
                    result.package_name,
                    result.current_version or "unknown",
                    advisory.advisory_id,
                    advisory.cve or "-",
                    Text(advisory.severity.value, style=SEVERITY_STYLES[advisory.severity]),
                    advisory.affected_versions,
                    title,
                )

        return table

    def format_error(self, error: str, details: Optional[str] = None) -> None:
        """Format and display error message.

        Args:
            error: Error message
            details: Optional error details
        """
        content = f"[bold red]Error:[/bold red] {error}"
        if details:
            content += f"\n\n[dim]{details}[/dim]"

        self.console.print(Panel(content, style="red"))


class JSONFormatter:
    """JSON formatter for DepSentry output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_scan_results(
        self,
        report: ScanReport,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a report as JSON-serializable data.

        Args:
            report: Scan report
            metadata: Optional additional metadata, stored under ``metadata``

        Returns:
            Formatted JSON data
        """
        result = report.to_dict()

        if metadata:
            result["metadata"] = {
                **metadata,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        return result

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except OSError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise

    def format_error(self, error: str, details: Optional[str] = None) -> Dict[str, Any]:
        """Format error as JSON.

        Args:
            error: Error message
            details: Optional error details

        Returns:
            Formatted JSON error data
        """
        return {
            "error": {
                "message": error,
                "details": details,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }
