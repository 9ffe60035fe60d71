from __future__ import annotations

import httpx
import pytest

from stockmemo.domain.errors import ConfigurationError, NotFoundError, UpstreamError
from stockmemo.infrastructure.data_providers.fmp_client import FMPClient

PROFILE = [
    {"companyName": "Acme Corp", "symbol": "ACME", "exchangeShortName": "NASDAQ", "sector": "Technology"}
]


def make_client(routes, seen=None) -> FMPClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        path = request.url.path.replace("/api/v3/", "", 1)
        route = routes.get(path)
        if route is None:
            return httpx.Response(200, json=[])
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    return FMPClient("secret", http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_fetch_bundle_assembles_all_sections():
    seen = []
    client = make_client(
        {
            "profile/ACME": PROFILE,
            "income-statement/ACME": [{"date": "2024-12-31", "revenue": 10}],
            "ratios/ACME": [{"date": "2024-12-31", "currentRatio": 1.2}],
            "historical-price-full/ACME": {
                "symbol": "ACME",
                "historical": [
                    {"date": "2025-01-02", "close": 110},
                    {"date": "2024-06-03", "close": 90},
                    {"date": "2024-01-02", "close": 100},
                ],
            },
        },
        seen,
    )

    bundle = client.fetch_bundle("ACME")

    assert bundle["profile"]["companyName"] == "Acme Corp"
    assert bundle["incomeStatement"][0]["revenue"] == 10
    assert bundle["cashFlow"] == []
    assert bundle["prices"]["oneYear"]["change"] == 10.0
    assert bundle["prices"]["threeYear"] is None
    assert all(request.url.params["apikey"] == "secret" for request in seen)
    income = next(r for r in seen if r.url.path.endswith("income-statement/ACME"))
    assert income.url.params["limit"] == "5"
    client.close()


def test_missing_profile_is_not_found():
    client = make_client({"profile/NOPE": []})
    with pytest.raises(NotFoundError) as excinfo:
        client.fetch_bundle("NOPE")
    assert excinfo.value.to_payload()["suggestion"] == "Try a different company or check symbol format"


def test_http_error_status_is_upstream_error():
    client = make_client({"profile/ACME": httpx.Response(500, text="boom")})
    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_bundle("ACME")
    assert excinfo.value.status == 500
    assert "FMP API error: 500" in str(excinfo.value)


def test_transport_error_is_upstream_error():
    client = make_client({"search": httpx.ConnectError("connection refused")})
    with pytest.raises(UpstreamError):
        client.search("Acme")


def test_search_passes_query_and_limit():
    seen = []
    client = make_client({"search": [{"symbol": "ACME"}, "junk"]}, seen)
    assert client.search("Acme Corp") == [{"symbol": "ACME"}]
    assert seen[0].url.params["query"] == "Acme Corp"
    assert seen[0].url.params["limit"] == "5"


def test_missing_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        FMPClient(None)
