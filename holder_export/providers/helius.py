"""Helius token account provider.

Wraps the DAS ``getTokenAccounts`` JSON-RPC method. One call returns one
page of token accounts for a mint; pagination is driven by the caller.
TLS certificates are always verified.
"""

import json
import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from ..core.config import DEFAULT_RPC_URL
from ..core.exceptions import (
    ConfigurationError,
    DataSourceError,
    MalformedResponseError,
    RequestSerializationError,
)
from ..core.models import TokenAccount, TokenAccountsResponse
from ..core.types import DataSource
from .base import BaseProvider

logger = logging.getLogger(__name__)


class HeliusTokenAccountsProvider(BaseProvider):
    """Fetches pages of token accounts for a mint from Helius."""

    SOURCE = DataSource.HELIUS
    METHOD = "getTokenAccounts"
    REQUEST_ID = "holder-export"

    def __init__(
        self,
        api_key: str | None,
        rpc_url: str = DEFAULT_RPC_URL,
        page_size: int = 1000,
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize Helius provider.

        Args:
            api_key: Helius API key, sent as the ``api-key`` query parameter
            rpc_url: JSON-RPC endpoint
            page_size: Records requested per page (Helius caps this at 1000)
            timeout_seconds: Default timeout for a single call
            transport: Optional httpx transport (used to mock the upstream)
        """
        super().__init__()
        self.api_key = api_key
        self.rpc_url = rpc_url
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def is_available(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key)

    def build_payload(self, mint: str, page: int) -> bytes:
        """Encode the getTokenAccounts request body for one page."""
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self.REQUEST_ID,
            "method": self.METHOD,
            "params": {
                "page": page,
                "limit": self.page_size,
                "displayOptions": {},
                "mint": mint,
            },
        }
        try:
            return json.dumps(payload, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RequestSerializationError(self.METHOD, str(e))

    def fetch_page(
        self,
        mint: str,
        page: int,
        timeout_seconds: float | None = None,
    ) -> list[TokenAccount]:
        """
        Fetch one page of token accounts.

        Args:
            mint: Token mint address
            page: 1-based page number
            timeout_seconds: Override for this call's timeout

        Returns:
            Token accounts on the page; an empty list means pagination is done

        Raises:
            ConfigurationError: No API key configured
            RequestSerializationError: Payload could not be encoded
            DataSourceError: Transport failure, non-200 status or RPC error
            MalformedResponseError: Body is not a valid getTokenAccounts response
        """
        if not self.is_available():
            raise ConfigurationError("HELIUS_API_KEY", "environment variable is not set")

        body = self._post(self.build_payload(mint, page), page, timeout_seconds)
        accounts = body.accounts
        logger.debug(
            f"[{self.SOURCE.value}] {mint} page {page}: {len(accounts)} token accounts"
        )
        return accounts

    def _post(
        self,
        content: bytes,
        page: int,
        timeout_seconds: float | None,
    ) -> TokenAccountsResponse:
        """Send one JSON-RPC request and validate the response envelope."""
        timeout = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        endpoint = f"{self.rpc_url}#{self.METHOD}"
        start_time = time.time()

        try:
            with httpx.Client(timeout=timeout, transport=self.transport) as client:
                response = client.post(
                    self.rpc_url,
                    params={"api-key": self.api_key},
                    content=content,
                    headers={"Content-Type": "application/json"},
                )
                if response.status_code != 200:
                    raise httpx.HTTPStatusError(
                        f"Unexpected status {response.status_code}",
                        request=response.request,
                        response=response,
                    )
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = f"Error: {status}, {status} {e.response.reason_phrase}".rstrip()
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message=message,
                duration_ms=self._elapsed_ms(start_time),
                notes=f"page={page}",
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=message,
                endpoint=endpoint,
                status_code=status,
            )
        except httpx.TimeoutException:
            message = f"Request timed out after {timeout:g}s"
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message=message,
                duration_ms=self._elapsed_ms(start_time),
                notes=f"page={page}",
            )
            raise DataSourceError(source=self.SOURCE.value, message=message, endpoint=endpoint)
        except httpx.RequestError as e:
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message=str(e),
                duration_ms=self._elapsed_ms(start_time),
                notes=f"page={page}",
            )
            raise DataSourceError(source=self.SOURCE.value, message=str(e), endpoint=endpoint)
        except ValueError as e:
            # json.JSONDecodeError
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message="invalid JSON",
                duration_ms=self._elapsed_ms(start_time),
                notes=f"page={page}",
            )
            raise MalformedResponseError(self.SOURCE.value, f"invalid JSON ({e})", endpoint)

        duration_ms = self._elapsed_ms(start_time)

        try:
            envelope = TokenAccountsResponse.model_validate(data)
        except ValidationError as e:
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message="schema validation failed",
                duration_ms=duration_ms,
                notes=f"page={page}",
            )
            raise MalformedResponseError(
                self.SOURCE.value,
                f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}",
                endpoint,
            )

        if envelope.error is not None:
            message = f"RPC error {envelope.error.code}: {envelope.error.message}"
            self._record_audit(
                action="fetch_page",
                endpoint=endpoint,
                success=False,
                error_message=message,
                duration_ms=duration_ms,
                notes=f"page={page}",
            )
            raise DataSourceError(source=self.SOURCE.value, message=message, endpoint=endpoint)

        self._record_audit(
            action="fetch_page",
            endpoint=endpoint,
            success=True,
            duration_ms=duration_ms,
            notes=f"page={page}, accounts={len(envelope.accounts)}",
        )
        return envelope

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)
