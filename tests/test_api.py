"""Tests for the HTTP surface."""

import re

import pytest
from fastapi.testclient import TestClient

from holder_export.api.app import _origin_regex, create_app
from holder_export.core.config import AppConfig

TOKEN = 10**9


def _rows(response) -> dict[str, float]:
    rows = {}
    for line in response.text.splitlines():
        owner, value = line.split(",")
        rows[owner] = float(value)
    return rows


@pytest.fixture
def make_client(app_config):
    """Build a TestClient against a FakeHelius upstream."""

    def _make(upstream, config: AppConfig | None = None) -> TestClient:
        return TestClient(create_app(config or app_config, transport=upstream.transport))

    return _make


class TestHelloWorld:
    """Tests for the liveness endpoint."""

    def test_hello(self, fake_helius, make_client):
        """Test fixed greeting payload."""
        response = make_client(fake_helius([])).get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Hello World"}


class TestHoldersEndpoint:
    """Tests for GET /holders/{mint}."""

    def test_csv_attachment(self, fake_helius, make_client, two_holder_pages):
        """Test the two-holder scenario end to end."""
        upstream = fake_helius(two_holder_pages)
        response = make_client(upstream).get("/holders/M1")

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/csv"
        assert response.headers["content-disposition"] == "attachment; filename=holders.csv"
        assert set(response.text.splitlines()) == {"A,2000.000000", "B,500.000000"}
        assert upstream.pages_requested == [1, 2]
        assert {p["params"]["mint"] for p in upstream.payloads} == {"M1"}

    def test_upstream_error(self, fake_helius, make_client, airdrop_pages):
        """Test an upstream 500 on a later page yields a JSON error."""
        upstream = fake_helius(airdrop_pages, status_by_page={3: 500})
        response = make_client(upstream).get("/holders/M1")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert "Error: 500, 500 Internal Server Error" in response.json()["error"]

    def test_malformed_upstream(self, fake_helius, make_client):
        """Test an undecodable upstream body yields a JSON error."""
        upstream = fake_helius([], body_by_page={1: b"not json"})
        response = make_client(upstream).get("/holders/M1")

        assert response.status_code == 500
        assert "Malformed response" in response.json()["error"]

    def test_missing_api_key(self, fake_helius, make_client):
        """Test no upstream call is made without an API key."""
        upstream = fake_helius([])
        response = make_client(upstream, AppConfig(helius_api_key=None)).get("/holders/M1")

        assert response.status_code == 500
        assert "HELIUS_API_KEY" in response.json()["error"]
        assert upstream.requests == []

    def test_requests_are_isolated(self, fake_helius, make_client, two_holder_pages):
        """Test repeated requests return the same row set."""
        client = make_client(fake_helius(two_holder_pages))

        first = client.get("/holders/M1")
        second = client.get("/holders/M1")

        assert set(first.text.splitlines()) == set(second.text.splitlines())


class TestAirdropEndpoint:
    """Tests for GET /holders/{mint}/airdrop."""

    def test_default_distribution(self, fake_helius, make_client, airdrop_pages):
        """Test the configured threshold and pool are applied."""
        response = make_client(fake_helius(airdrop_pages)).get("/holders/M1/airdrop")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=airdrop.csv"
        rows = _rows(response)
        assert set(rows) == {"whale", "treasury", "mid", "edge"}
        assert sum(rows.values()) == pytest.approx(20_000_000, rel=1e-9)

    def test_exclude_and_pool_overrides(self, fake_helius, make_client, airdrop_pages):
        """Test query parameters override the configured settings."""
        response = make_client(fake_helius(airdrop_pages)).get(
            "/holders/M1/airdrop",
            params=[("exclude", "treasury"), ("exclude", "whale"), ("pool", "4500")],
        )

        assert response.status_code == 200
        assert _rows(response) == pytest.approx({"mid": 3000.0, "edge": 1500.0})

    def test_min_amount_override(self, fake_helius, make_client, airdrop_pages):
        """Test a higher threshold drops smaller holders."""
        response = make_client(fake_helius(airdrop_pages)).get(
            "/holders/M1/airdrop", params={"min_amount": 5000}
        )

        assert set(_rows(response)) == {"whale", "treasury"}

    def test_configured_exclusions(self, fake_helius, make_client, app_config, airdrop_pages):
        """Test owners excluded in config never appear."""
        config = AppConfig(
            helius_api_key="test-key",
            distribution=app_config.distribution.with_overrides(excluded_owners=["treasury"]),
        )
        response = make_client(fake_helius(airdrop_pages), config).get("/holders/M1/airdrop")

        assert "treasury" not in _rows(response)

    def test_query_exclusions_keep_configured_ones(
        self, fake_helius, make_client, app_config, airdrop_pages
    ):
        """Test an exclude parameter cannot bring back a configured exclusion."""
        config = AppConfig(
            helius_api_key="test-key",
            distribution=app_config.distribution.with_overrides(excluded_owners=["treasury"]),
        )
        response = make_client(fake_helius(airdrop_pages), config).get(
            "/holders/M1/airdrop", params={"exclude": "whale"}
        )

        assert response.status_code == 200
        assert set(_rows(response)) == {"mid", "edge"}

    def test_no_qualifying_holder(self, fake_helius, make_client, airdrop_pages):
        """Test an empty retained set returns an empty CSV."""
        response = make_client(fake_helius(airdrop_pages)).get(
            "/holders/M1/airdrop", params={"min_amount": 10_000_000}
        )

        assert response.status_code == 200
        assert response.content == b""

    def test_invalid_override(self, fake_helius, make_client):
        """Test a non-positive pool is rejected before any upstream call."""
        upstream = fake_helius([])
        response = make_client(upstream).get("/holders/M1/airdrop", params={"pool": 0})

        assert response.status_code == 422
        assert upstream.requests == []

    def test_upstream_error(self, fake_helius, make_client, airdrop_pages):
        """Test upstream failures abort the airdrop export too."""
        upstream = fake_helius(airdrop_pages, status_by_page={2: 502})
        response = make_client(upstream).get("/holders/M1/airdrop")

        assert response.status_code == 500
        assert "error" in response.json()


class TestCORS:
    """Tests for the CORS middleware."""

    def test_preflight(self, fake_helius, make_client):
        """Test browsers on any http(s) origin may call the API."""
        response = make_client(fake_helius([])).options(
            "/holders/M1",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert (
            response.headers["access-control-allow-origin"] == "https://dashboard.example.com"
        )
        assert response.headers["access-control-allow-credentials"] == "true"
        assert response.headers["access-control-max-age"] == "300"

    def test_origin_regex_escapes_metacharacters(self):
        """Test only the wildcard is special in configured origins."""
        pattern = _origin_regex(["https://a+b.example.com", "http://*"])

        assert re.fullmatch(pattern, "https://a+b.example.com")
        assert re.fullmatch(pattern, "http://localhost:3000")
        assert re.fullmatch(pattern, "https://aab.example.com") is None
        assert re.fullmatch(pattern, "https://a+bXexample.com") is None
