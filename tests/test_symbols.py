from __future__ import annotations

import pytest

from stockmemo.domain.errors import UpstreamError, ValidationError
from stockmemo.infrastructure.symbols import SymbolResolver


class FakeSearch:
    def __init__(self, results=None, error=None):
        self.results = results if results is not None else []
        self.error = error
        self.calls = []

    def search(self, query, limit=5):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.results


def test_known_ticker_skips_search():
    search = FakeSearch()
    assert SymbolResolver(search).resolve("  Reliance ") == "RELIANCE.NS"
    assert SymbolResolver(search).resolve("HDFC Bank") == "HDFCBANK.NS"
    assert search.calls == []


def test_first_search_hit_wins():
    search = FakeSearch([{"symbol": "AAPL", "name": "Apple Inc."}, {"symbol": "APC.F"}])
    assert SymbolResolver(search).resolve("Apple") == "AAPL"
    assert search.calls == [("Apple", 5)]


def test_nse_hint_prefers_ns_suffix():
    search = FakeSearch([{"symbol": "TTM"}, {"symbol": "TATAMOTORS.NS"}])
    assert SymbolResolver(search).resolve("Tata Motors", "nse") == "TATAMOTORS.NS"
    assert SymbolResolver(search).resolve("Tata Motors", "NYSE") == "TTM"


def test_nse_hint_without_ns_candidate_takes_first():
    search = FakeSearch([{"symbol": "TTM"}])
    assert SymbolResolver(search).resolve("Tata Motors", "NSE") == "TTM"


@pytest.mark.parametrize(
    "search",
    [
        FakeSearch([]),
        FakeSearch({"unexpected": "payload"}),
        FakeSearch([{"name": "no symbol"}]),
        FakeSearch(error=UpstreamError("FMP API", "timeout")),
    ],
)
def test_failures_fall_back_to_input(search):
    assert SymbolResolver(search).resolve("MSFT") == "MSFT"


def test_without_search_input_is_ticker():
    assert SymbolResolver().resolve("GOOGL") == "GOOGL"


def test_empty_name_is_rejected():
    with pytest.raises(ValidationError):
        SymbolResolver(FakeSearch()).resolve("   ")
