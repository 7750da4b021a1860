"""Holder aggregator: the paginated fetch-and-aggregate loop.

Pages are requested strictly in sequence starting at 1 until the
provider returns an empty page. Balances are keyed by owner and a later
record for the same owner replaces an earlier one. Any provider error
aborts the whole run; nothing partial is returned.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from ..core.exceptions import AggregationCancelledError, DeadlineExceededError
from ..core.models import DistributionConfig, HolderRecord, HolderSnapshot, TokenAccount
from ..core.types import TokenAmount
from ..providers.helius import HeliusTokenAccountsProvider
from .distribution import DistributionCalculator

logger = logging.getLogger(__name__)


@dataclass
class AggregateState:
    """Per-run state. Created fresh for every aggregation."""

    holders: dict[str, HolderRecord] = field(default_factory=dict)
    total_amount: TokenAmount = 0.0
    page: int = 1
    pages_fetched: int = 0


class HolderAggregator:
    """Aggregates all holders of a mint into a HolderSnapshot."""

    def __init__(
        self,
        provider: HeliusTokenAccountsProvider,
        token_decimals: int = 9,
        deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the aggregator.

        Args:
            provider: Source of token account pages
            token_decimals: Decimal scale of the raw on-chain amounts
            deadline_seconds: Budget for the whole run (None = unbounded)
            clock: Monotonic clock, injectable for tests
        """
        self.provider = provider
        self.token_decimals = token_decimals
        self.deadline_seconds = deadline_seconds
        self.clock = clock
        self.distribution_calculator = DistributionCalculator()

    @property
    def scale(self) -> int:
        return 10**self.token_decimals

    def fetch_holders(
        self,
        mint: str,
        distribution: DistributionConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> HolderSnapshot:
        """
        Fetch every token account of a mint and aggregate by owner.

        Args:
            mint: Token mint address
            distribution: When given, filter holders and split the pool
            cancel_event: Checked before each page; when set the run aborts

        Returns:
            HolderSnapshot with the retained holders (and shares)

        Raises:
            HolderExportError: Any provider failure, deadline expiry or
                cancellation
        """
        state = AggregateState()
        deadline = None
        if self.deadline_seconds is not None:
            deadline = self.clock() + self.deadline_seconds

        self.provider.clear_audit_trail()
        logger.info(f"Aggregating holders for {mint}")

        while True:
            timeout = self._next_timeout(mint, state, deadline, cancel_event)
            accounts = self.provider.fetch_page(mint, state.page, timeout_seconds=timeout)
            state.pages_fetched += 1

            if not accounts:
                break

            for account in accounts:
                self._accumulate(state, account, distribution)

            state.page += 1

        holders = list(state.holders.values())
        logger.info(
            f"Aggregated {len(holders)} holders for {mint} "
            f"over {state.pages_fetched} page requests"
        )

        shares = []
        if distribution is not None:
            shares = self.distribution_calculator.calculate(
                holders, state.total_amount, distribution
            )

        return HolderSnapshot(
            mint=mint,
            holders=holders,
            total_amount=state.total_amount,
            pages_fetched=state.pages_fetched,
            distribution=distribution,
            shares=shares,
            audit_trail=self.provider.get_audit_trail(),
        )

    def _next_timeout(
        self,
        mint: str,
        state: AggregateState,
        deadline: float | None,
        cancel_event: threading.Event | None,
    ) -> float | None:
        """Check cancellation and deadline; return the timeout for the next call."""
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Aggregation for {mint} cancelled at page {state.page}")
            raise AggregationCancelledError(mint, state.pages_fetched)

        if deadline is None:
            return None

        remaining = deadline - self.clock()
        if remaining <= 0:
            logger.warning(f"Aggregation for {mint} ran out of time at page {state.page}")
            raise DeadlineExceededError(mint, self.deadline_seconds, state.pages_fetched)
        return min(self.provider.timeout_seconds, remaining)

    def _accumulate(
        self,
        state: AggregateState,
        account: TokenAccount,
        distribution: DistributionConfig | None,
    ) -> None:
        amount = account.amount / self.scale

        if distribution is not None and not distribution.is_eligible(account.owner, amount):
            return

        # The total tracks the mapping, so a replaced amount leaves it too
        previous = state.holders.get(account.owner)
        if previous is not None:
            state.total_amount -= previous.amount

        state.holders[account.owner] = HolderRecord(owner=account.owner, amount=amount)
        state.total_amount += amount
