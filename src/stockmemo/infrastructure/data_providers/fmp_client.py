"""Thin wrapper around the Financial Modeling Prep REST API with project defaults."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from stockmemo.config import DEFAULT_FMP_BASE_URL
from stockmemo.domain.errors import ConfigurationError, NotFoundError, UpstreamError
from stockmemo.domain.services.price_performance import summarize_price_history

logger = logging.getLogger(__name__)

STATEMENT_LIMIT = 5


class FMPClient:
    """Encapsulate FMP access and assemble the raw financial bundle for a symbol."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_FMP_BASE_URL,
        proxy_url: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("API keys not configured")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

        if http_client is None:
            http_client_kwargs: Dict[str, Any] = {"timeout": httpx.Timeout(timeout, connect=10.0)}
            if proxy_url:
                http_client_kwargs["proxy"] = proxy_url
            http_client = httpx.Client(**http_client_kwargs)
        self._http_client = http_client

    # ------------------
    # Public API helpers
    # ------------------
    def fetch_bundle(self, symbol: str) -> Dict[str, Any]:
        """Retrieve everything the structurer needs; a symbol without a profile is not found."""
        profile = self.fetch_profile(symbol)
        if not profile:
            raise NotFoundError(symbol)
        bundle = {
            "profile": profile,
            "incomeStatement": self._list(f"income-statement/{symbol}", limit=STATEMENT_LIMIT),
            "ratios": self._list(f"ratios/{symbol}", limit=STATEMENT_LIMIT),
            "cashFlow": self._list(f"cash-flow-statement/{symbol}", limit=STATEMENT_LIMIT),
            "keyMetrics": self._list(f"key-metrics/{symbol}", limit=STATEMENT_LIMIT),
            "prices": self.fetch_price_summary(symbol),
        }
        logger.info(
            "Fetched FMP bundle for %s (%d income statements, %d ratio years)",
            symbol,
            len(bundle["incomeStatement"]),
            len(bundle["ratios"]),
        )
        return bundle

    def fetch_profile(self, symbol: str) -> Optional[Dict[str, Any]]:
        """Return the first profile record, or None when the provider has none."""
        rows = self._list(f"profile/{symbol}")
        return dict(rows[0]) if rows else None

    def fetch_price_summary(self, symbol: str) -> Dict[str, Any]:
        """Summarize the daily close history into 1/3/5-year windows."""
        payload = self._get(f"historical-price-full/{symbol}", serietype="line")
        history = payload.get("historical") if isinstance(payload, Mapping) else None
        return summarize_price_history(history if isinstance(history, list) else [])

    def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        return self._list("search", query=query, limit=limit)

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._http_client.close()

    # -----------------
    # Internal helpers
    # -----------------
    def _list(self, path: str, **params: Any) -> List[Dict[str, Any]]:
        payload = self._get(path, **params)
        if not isinstance(payload, list):
            return []
        return [row for row in payload if isinstance(row, Mapping)]

    def _get(self, path: str, **params: Any) -> Any:
        url = f"{self._base_url}/{path}"
        query = dict(params, apikey=self._api_key)
        try:
            response = self._http_client.get(url, params=query)
        except httpx.HTTPError as exc:
            raise UpstreamError("FMP API", f"{type(exc).__name__} while requesting {path}") from exc
        if not response.is_success:
            raise UpstreamError("FMP API", response.reason_phrase or path, status=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("FMP API", f"invalid JSON from {path}", status=response.status_code) from exc
