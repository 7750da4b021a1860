"""Airdrop distribution calculator.

Each qualifying holder receives a share of a fixed pool proportional to
its balance:
- share = (amount / retained_total) × pool_size
"""

import logging

from ..core.models import DistributionConfig, HolderRecord, HolderShare
from ..core.types import TokenAmount

logger = logging.getLogger(__name__)


def calc_share(amount: TokenAmount, total: TokenAmount, pool_size: TokenAmount) -> TokenAmount:
    """Proportional share of the pool for a single holder."""
    if total <= 0:
        raise ValueError("Retained total must be positive")
    return (amount / total) * pool_size


class DistributionCalculator:
    """Splits an airdrop pool across the retained holders."""

    def calculate(
        self,
        holders: list[HolderRecord],
        total: TokenAmount,
        config: DistributionConfig,
    ) -> list[HolderShare]:
        """
        Calculate every holder's share of the pool.

        Args:
            holders: Holders that passed the distribution filter
            total: Running total of the retained amounts
            config: Pool size and filter settings

        Returns:
            One HolderShare per holder, or an empty list when nothing
            qualified (the pool is not distributed at all)
        """
        if not holders or total <= 0:
            logger.warning(
                f"No holder qualified for the airdrop "
                f"(min_amount={config.min_amount:,.0f}, "
                f"excluded={len(config.excluded_owners)}); distribution is empty"
            )
            return []

        shares = [
            HolderShare(
                owner=holder.owner,
                amount=holder.amount,
                share=calc_share(holder.amount, total, config.pool_size),
            )
            for holder in holders
        ]
        logger.info(
            f"Distributed {config.pool_size:,.0f} across {len(shares)} holders "
            f"(retained total {total:,.6f})"
        )
        return shares
