"""Output formatting for holder snapshots."""

from .formatters import OutputFormatter, CSVFormatter

__all__ = ["OutputFormatter", "CSVFormatter"]
