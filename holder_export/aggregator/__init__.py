"""Aggregation of token accounts into holder balances and airdrop shares."""

from .distribution import DistributionCalculator, calc_share
from .holders import AggregateState, HolderAggregator

__all__ = ["AggregateState", "HolderAggregator", "DistributionCalculator", "calc_share"]
