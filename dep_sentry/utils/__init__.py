"""Utility functions and helpers for DepSentry."""

from .logging import setup_logging, get_logger
from .performance import PerformanceMonitor

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceMonitor",
]
