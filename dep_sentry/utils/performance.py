"""Timing utilities for DepSentry."""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List

from rich.console import Console
from rich.table import Table


@dataclass
class PerformanceMetrics:
    """A single timed operation."""

    name: str
    execution_time: float


class PerformanceMonitor:
    """Collects wall-clock timings for named operations."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.metrics: List[PerformanceMetrics] = []

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Context manager for measuring an operation.

        Args:
            name: Name of the operation being measured

        Yields:
            None
        """
        if not self.enabled:
            yield
            return

        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.metrics.append(PerformanceMetrics(name, time.perf_counter() - start_time))

    def total_time(self, name: str) -> float:
        """Sum of all recorded durations for ``name``."""
        return sum(m.execution_time for m in self.metrics if m.name == name)

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary.

        Returns:
            Dictionary with performance summary, empty if nothing was measured
        """
        if not self.metrics:
            return {}

        total_time = sum(m.execution_time for m in self.metrics)
        by_name: Dict[str, List[float]] = {}
        for metric in self.metrics:
            by_name.setdefault(metric.name, []).append(metric.execution_time)

        return {
            "total_executions": len(self.metrics),
            "total_time": total_time,
            "average_time": total_time / len(self.metrics),
            "operations": {
                name: {"calls": len(times), "total": sum(times), "max": max(times)}
                for name, times in by_name.items()
            },
        }

    def print_summary(self, console: Console) -> None:
        """Print performance summary to console."""
        summary = self.get_summary()
        if not summary:
            return

        table = Table(title="Performance Summary")
        table.add_column("Operation", style="cyan")
        table.add_column("Calls", style="blue", justify="right")
        table.add_column("Total", style="green", justify="right")
        table.add_column("Max", style="yellow", justify="right")

        for name, stats in summary["operations"].items():
            table.add_row(name, str(stats["calls"]), f"{stats['total']:.4f}s", f"{stats['max']:.4f}s")

        console.print(table)
