"""Custom exceptions for the holder export service."""


class HolderExportError(Exception):
    """Base exception for all holder export errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DataSourceError(HolderExportError):
    """Raised when the upstream provider fails or returns an error status."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class MalformedResponseError(DataSourceError):
    """Raised when the upstream response body cannot be decoded or validated."""

    def __init__(self, source: str, reason: str, endpoint: str | None = None):
        super().__init__(source, f"Malformed response: {reason}", endpoint=endpoint)
        self.reason = reason


class RequestSerializationError(HolderExportError):
    """Raised when the outbound JSON-RPC payload cannot be encoded."""

    def __init__(self, method: str, reason: str):
        message = f"Could not encode {method} request: {reason}"
        super().__init__(message, {"method": method, "reason": reason})
        self.method = method
        self.reason = reason


class DeadlineExceededError(HolderExportError):
    """Raised when an aggregation runs past its deadline."""

    def __init__(self, mint: str, deadline_seconds: float, pages_fetched: int):
        message = (
            f"Aggregation for {mint} exceeded {deadline_seconds:g}s deadline "
            f"after {pages_fetched} page(s)"
        )
        super().__init__(
            message,
            {
                "mint": mint,
                "deadline_seconds": deadline_seconds,
                "pages_fetched": pages_fetched,
            },
        )
        self.mint = mint
        self.deadline_seconds = deadline_seconds
        self.pages_fetched = pages_fetched


class AggregationCancelledError(HolderExportError):
    """Raised when an aggregation is cancelled between page requests."""

    def __init__(self, mint: str, pages_fetched: int):
        message = f"Aggregation for {mint} cancelled after {pages_fetched} page(s)"
        super().__init__(message, {"mint": mint, "pages_fetched": pages_fetched})
        self.mint = mint
        self.pages_fetched = pages_fetched


class ConfigurationError(HolderExportError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
