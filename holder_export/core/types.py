"""Type definitions and enums for the holder export service."""

from enum import Enum


class DataSource(str, Enum):
    """Data source identifiers."""

    HELIUS = "helius"
    UNKNOWN = "unknown"


class ExportVariant(str, Enum):
    """Which rows an export produces."""

    HOLDERS = "holders"     # owner,amount
    AIRDROP = "airdrop"     # owner,share of the airdrop pool

    @property
    def filename(self) -> str:
        """Attachment filename used for the CSV download."""
        return f"{self.value}.csv"


# Type aliases for common patterns
TokenAmount = float  # Human-scale token quantity
RawAmount = int      # On-chain integer quantity (before decimal scaling)
