"""Core module - data models, types, configuration and exceptions."""

from .models import (
    TokenAccount,
    TokenAccountsResponse,
    HolderRecord,
    HolderShare,
    HolderSnapshot,
    DistributionConfig,
    AuditEntry,
)
from .types import (
    DataSource,
    ExportVariant,
)
from .exceptions import (
    HolderExportError,
    DataSourceError,
    MalformedResponseError,
    RequestSerializationError,
    DeadlineExceededError,
    AggregationCancelledError,
    ConfigurationError,
)

__all__ = [
    # Models
    "TokenAccount",
    "TokenAccountsResponse",
    "HolderRecord",
    "HolderShare",
    "HolderSnapshot",
    "DistributionConfig",
    "AuditEntry",
    # Types
    "DataSource",
    "ExportVariant",
    # Exceptions
    "HolderExportError",
    "DataSourceError",
    "MalformedResponseError",
    "RequestSerializationError",
    "DeadlineExceededError",
    "AggregationCancelledError",
    "ConfigurationError",
]
