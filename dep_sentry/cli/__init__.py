"""Command line interface for DepSentry."""
