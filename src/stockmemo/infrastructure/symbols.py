"""Resolve free-text company names to provider tickers."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from stockmemo.domain.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

# Large NSE names the provider search ranks poorly.
KNOWN_TICKERS: Mapping[str, str] = {
    "reliance": "RELIANCE.NS",
    "tcs": "TCS.NS",
    "infosys": "INFY.NS",
    "hdfc bank": "HDFCBANK.NS",
    "icici bank": "ICICIBANK.NS",
    "wipro": "WIPRO.NS",
    "bharti airtel": "BHARTIARTL.NS",
    "itc": "ITC.NS",
    "sun pharma": "SUNPHARMA.NS",
    "asian paints": "ASIANPAINT.NS",
}

SEARCH_LIMIT = 5
NSE_SUFFIX = ".NS"


class SymbolSearch(Protocol):
    def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        ...


class SymbolResolver:
    """Map a company name (plus optional exchange hint) to a ticker.

    Resolution never fails once the name is non-empty: when search is
    unavailable or comes back empty, the input is assumed to be a ticker already.
    """

    def __init__(self, search: Optional[SymbolSearch] = None) -> None:
        self._search = search

    def resolve(self, company_name: str, exchange: Optional[str] = None) -> str:
        if not company_name or not str(company_name).strip():
            raise ValidationError("Company name is required")

        normalized = company_name.lower().strip()
        if normalized in KNOWN_TICKERS:
            return KNOWN_TICKERS[normalized]
        if self._search is None:
            return company_name

        try:
            results = self._search.search(company_name, limit=SEARCH_LIMIT)
        except UpstreamError as exc:
            logger.warning("Symbol search failed for %r: %s", company_name, exc)
            return company_name

        symbols = [
            str(row["symbol"]) for row in results or [] if isinstance(row, Mapping) and row.get("symbol")
        ]
        if not symbols:
            logger.warning("Symbol search returned nothing for %r; using input as ticker", company_name)
            return company_name

        if exchange and exchange.strip().upper() == "NSE":
            for symbol in symbols:
                if symbol.endswith(NSE_SUFFIX):
                    return symbol
        return symbols[0]
