"""Pydantic data models for the holder export service.

Records that leave a component are immutable (frozen) so a snapshot
cannot be altered between aggregation and serialization.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .types import DataSource, RawAmount, TokenAmount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenAccount(BaseModel):
    """A single token account as returned by getTokenAccounts."""

    owner: str
    amount: RawAmount

    model_config = {"frozen": True, "extra": "ignore"}


class TokenAccountsResult(BaseModel):
    """The `result` member of a getTokenAccounts response."""

    total: int | None = None
    limit: int | None = None
    page: int | None = None
    token_accounts: list[TokenAccount] | None = None

    model_config = {"extra": "ignore"}


class RpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int | None = None
    message: str = "unknown error"
    data: Any = None


class TokenAccountsResponse(BaseModel):
    """Envelope of a getTokenAccounts JSON-RPC response."""

    jsonrpc: str | None = None
    id: str | int | None = None
    result: TokenAccountsResult | None = None
    error: RpcError | None = None

    model_config = {"extra": "ignore"}

    @property
    def accounts(self) -> list[TokenAccount]:
        """Token accounts on this page (empty when pagination is exhausted)."""
        if self.result is None or self.result.token_accounts is None:
            return []
        return self.result.token_accounts


class HolderRecord(BaseModel):
    """Aggregated balance for a single owner."""

    owner: str
    amount: TokenAmount

    model_config = {"frozen": True}


class DistributionConfig(BaseModel):
    """Filter and pool settings for the airdrop variant."""

    excluded_owners: frozenset[str] = Field(default_factory=frozenset)
    min_amount: TokenAmount = Field(default=1500.0, ge=0)
    pool_size: TokenAmount = Field(default=20_000_000.0, gt=0)

    model_config = {"frozen": True}

    @field_validator("excluded_owners", mode="before")
    @classmethod
    def _clean_owners(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(str(v).strip() for v in value if str(v).strip())

    def is_eligible(self, owner: str, amount: TokenAmount) -> bool:
        """Check whether a holder qualifies for the airdrop."""
        if owner in self.excluded_owners:
            return False
        return amount >= self.min_amount

    def with_overrides(
        self,
        min_amount: TokenAmount | None = None,
        pool_size: TokenAmount | None = None,
        excluded_owners: list[str] | None = None,
    ) -> "DistributionConfig":
        """
        Create a new config with per-request overrides (immutable pattern).

        Threshold and pool are replaced; excluded owners are added to the
        configured set, never substituted for it.
        """
        update: dict[str, Any] = {}
        if min_amount is not None:
            update["min_amount"] = min_amount
        if pool_size is not None:
            update["pool_size"] = pool_size
        if excluded_owners:
            update["excluded_owners"] = self.excluded_owners | set(excluded_owners)
        if not update:
            return self
        # model_copy skips validation, so rebuild through the constructor
        return DistributionConfig(**{**self.model_dump(), **update})


class HolderShare(BaseModel):
    """A holder's proportional share of the airdrop pool."""

    owner: str
    amount: TokenAmount
    share: TokenAmount

    model_config = {"frozen": True}


class AuditEntry(BaseModel):
    """Audit trail entry for a single upstream request."""

    timestamp: datetime = Field(default_factory=_utcnow)
    source: DataSource
    action: str  # "fetch_page"
    endpoint: str | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class HolderSnapshot(BaseModel):
    """Complete result of one aggregation run."""

    mint: str
    holders: list[HolderRecord] = Field(default_factory=list)
    total_amount: TokenAmount = 0.0
    pages_fetched: int = 0
    distribution: DistributionConfig | None = None
    shares: list[HolderShare] = Field(default_factory=list)
    audit_trail: list[AuditEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @property
    def holder_count(self) -> int:
        """Number of distinct owners retained."""
        return len(self.holders)

    @property
    def upstream_ms(self) -> int:
        """Total time spent waiting on upstream page requests."""
        return sum(entry.duration_ms or 0 for entry in self.audit_trail)

    @property
    def is_distribution(self) -> bool:
        """True when the snapshot was built with a distribution filter."""
        return self.distribution is not None
