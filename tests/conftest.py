"""Pytest configuration and fixtures for holder export tests."""

import json
from typing import Any, Callable

import httpx
import pytest

from holder_export.core.config import AppConfig
from holder_export.core.models import DistributionConfig
from holder_export.providers.helius import HeliusTokenAccountsProvider

# One whole token in raw on-chain units (9 decimals)
TOKEN = 10**9


class FakeHelius:
    """In-memory stand-in for the getTokenAccounts endpoint.

    ``pages[i]`` is served for page ``i + 1``; any later page is empty.
    """

    def __init__(
        self,
        pages: list[list[dict[str, Any]]],
        status_by_page: dict[int, int] | None = None,
        body_by_page: dict[int, bytes] | None = None,
        error_by_page: dict[int, Exception] | None = None,
    ):
        self.pages = pages
        self.status_by_page = status_by_page or {}
        self.body_by_page = body_by_page or {}
        self.error_by_page = error_by_page or {}
        self.requests: list[httpx.Request] = []
        self.payloads: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(request)
        self.payloads.append(payload)
        page = payload["params"]["page"]

        if page in self.error_by_page:
            raise self.error_by_page[page]
        if page in self.status_by_page:
            body = self.body_by_page.get(page, b"upstream failure")
            return httpx.Response(self.status_by_page[page], content=body)
        if page in self.body_by_page:
            return httpx.Response(200, content=self.body_by_page[page])

        accounts = self.pages[page - 1] if page <= len(self.pages) else []
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": payload["id"],
                "result": {
                    "total": len(accounts),
                    "limit": payload["params"]["limit"],
                    "page": page,
                    "token_accounts": [
                        {"address": f"acct-{page}-{i}", "mint": payload["params"]["mint"], **a}
                        for i, a in enumerate(accounts)
                    ],
                },
            },
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def pages_requested(self) -> list[int]:
        return [p["params"]["page"] for p in self.payloads]


@pytest.fixture
def fake_helius() -> Callable[..., FakeHelius]:
    """Factory for FakeHelius upstreams."""
    return FakeHelius


@pytest.fixture
def app_config() -> AppConfig:
    """Config with a dummy API key and a generous deadline."""
    return AppConfig(
        helius_api_key="test-key",
        aggregation_deadline_seconds=60.0,
        distribution=DistributionConfig(),
    )


@pytest.fixture
def two_holder_pages() -> list[list[dict[str, Any]]]:
    """Mint M1: a single page with A (2000 tokens) and B (500 tokens)."""
    return [
        [
            {"owner": "A", "amount": 2000 * TOKEN},
            {"owner": "B", "amount": 500 * TOKEN},
        ]
    ]


@pytest.fixture
def airdrop_pages() -> list[list[dict[str, Any]]]:
    """Three pages mixing qualifying, small and treasury holders."""
    return [
        [
            {"owner": "whale", "amount": 6000 * TOKEN},
            {"owner": "small", "amount": 1499 * TOKEN},
            {"owner": "treasury", "amount": 50_000 * TOKEN},
        ],
        [
            {"owner": "mid", "amount": 3000 * TOKEN},
            {"owner": "edge", "amount": 1500 * TOKEN},
        ],
        [
            {"owner": "dust", "amount": 12},
        ],
    ]


@pytest.fixture
def make_provider() -> Callable[[FakeHelius], HeliusTokenAccountsProvider]:
    """Build a provider wired to a FakeHelius transport."""

    def _make(upstream: FakeHelius, **kwargs: Any) -> HeliusTokenAccountsProvider:
        kwargs.setdefault("api_key", "test-key")
        return HeliusTokenAccountsProvider(transport=upstream.transport, **kwargs)

    return _make
