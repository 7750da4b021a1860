"""Orchestrator for a single holder export.

Wires the configured provider, aggregator and formatter together. A new
orchestrator (and therefore a new provider and aggregate state) is built
for every request so concurrent exports share nothing mutable.
"""

import logging
import threading

import httpx

from .aggregator.holders import HolderAggregator
from .core.config import AppConfig
from .core.models import DistributionConfig, HolderSnapshot
from .core.types import ExportVariant
from .output.formatters import CSVFormatter
from .providers.helius import HeliusTokenAccountsProvider

logger = logging.getLogger(__name__)


class HolderExportOrchestrator:
    """Runs one aggregation and renders it as CSV."""

    def __init__(
        self,
        config: AppConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Service configuration
            transport: Optional httpx transport for the upstream provider
        """
        self.config = config
        self.provider = HeliusTokenAccountsProvider(
            api_key=config.helius_api_key,
            rpc_url=config.rpc_url,
            page_size=config.page_size,
            timeout_seconds=config.request_timeout_seconds,
            transport=transport,
        )
        self.aggregator = HolderAggregator(
            provider=self.provider,
            token_decimals=config.token_decimals,
            deadline_seconds=config.aggregation_deadline_seconds,
        )
        self.formatter = CSVFormatter()

    def resolve_distribution(
        self,
        min_amount: float | None = None,
        pool_size: float | None = None,
        excluded_owners: list[str] | None = None,
    ) -> DistributionConfig:
        """Configured airdrop settings with per-request overrides applied."""
        return self.config.distribution.with_overrides(
            min_amount=min_amount,
            pool_size=pool_size,
            excluded_owners=excluded_owners,
        )

    def run(
        self,
        mint: str,
        variant: ExportVariant = ExportVariant.HOLDERS,
        distribution: DistributionConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> HolderSnapshot:
        """
        Aggregate the holders of a mint.

        Args:
            mint: Token mint address
            variant: Plain holder balances or airdrop shares
            distribution: Airdrop settings (defaults to the configured ones)
            cancel_event: Optional cancellation token for the run

        Returns:
            HolderSnapshot for the requested variant
        """
        self.config.require_api_key()

        if variant == ExportVariant.AIRDROP:
            distribution = distribution or self.config.distribution
        else:
            distribution = None

        return self.aggregator.fetch_holders(
            mint, distribution=distribution, cancel_event=cancel_event
        )

    def export_csv(
        self,
        mint: str,
        variant: ExportVariant = ExportVariant.HOLDERS,
        distribution: DistributionConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Aggregate the holders of a mint and return the CSV body."""
        snapshot = self.run(mint, variant, distribution, cancel_event)
        body = self.formatter.format_bytes(snapshot)
        logger.debug(f"Rendered {len(body)} bytes of {variant.value} CSV for {mint}")
        return body
