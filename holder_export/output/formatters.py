"""Output formatters for holder snapshots.

The CSV layout has no header row and one newline-terminated row per
holder:
- holders variant: ``owner,amount``
- airdrop variant: ``owner,share``

Numbers are printed with six decimals. Row order follows the snapshot
but is not part of the contract.
"""

import csv
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..core.models import HolderSnapshot
from ..core.types import ExportVariant

logger = logging.getLogger(__name__)


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, snapshot: HolderSnapshot) -> str:
        """Format the snapshot as a string."""
        pass

    def format_bytes(self, snapshot: HolderSnapshot) -> bytes:
        """Format the snapshot as a UTF-8 response body."""
        return self.format(snapshot).encode("utf-8")

    def format_to_file(self, snapshot: HolderSnapshot, filepath: str | Path) -> None:
        """Write formatted snapshot to a file."""
        content = self.format(snapshot)
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        logger.info(f"Saved {self.variant_for(snapshot).value} CSV to {filepath}")

    @staticmethod
    def variant_for(snapshot: HolderSnapshot) -> ExportVariant:
        """Which export the snapshot represents."""
        return ExportVariant.AIRDROP if snapshot.is_distribution else ExportVariant.HOLDERS


class CSVFormatter(OutputFormatter):
    """Formats holder balances or airdrop shares as headerless CSV."""

    def __init__(self, precision: int = 6):
        """
        Initialize CSV formatter.

        Args:
            precision: Digits after the decimal point
        """
        self.precision = precision

    def _number(self, value: float) -> str:
        return f"{value:.{self.precision}f}"

    def format(self, snapshot: HolderSnapshot) -> str:
        """Format snapshot as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")

        if snapshot.is_distribution:
            for share in snapshot.shares:
                writer.writerow([share.owner, self._number(share.share)])
        else:
            for holder in snapshot.holders:
                writer.writerow([holder.owner, self._number(holder.amount)])

        return output.getvalue()
