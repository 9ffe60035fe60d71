"""Summarize a daily close-price history into 1/3/5-year performance windows."""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

TRADING_DAYS_PER_YEAR = 252
COVERAGE_TOLERANCE_DAYS = 10

WINDOWS = (("oneYear", 1), ("threeYear", 3), ("fiveYear", 5))


def summarize_price_history(history: Sequence[Mapping[str, Any]]) -> Dict[str, Optional[Dict[str, float]]]:
    """Return the provider-shaped price summary for every window the history covers.

    A window is only reported when the history reaches back to (roughly) its
    start; otherwise that period is ``None`` rather than a shorter window.
    """
    summary: Dict[str, Optional[Dict[str, float]]] = {key: None for key, _ in WINDOWS}
    frame = _close_frame(history)
    if len(frame) < 2:
        return summary

    first_date = frame["date"].iloc[0]
    end_date = frame["date"].iloc[-1]
    for key, years in WINDOWS:
        window_start = end_date - pd.DateOffset(years=years)
        if first_date > window_start + pd.Timedelta(days=COVERAGE_TOLERANCE_DAYS):
            continue
        closes = frame.loc[frame["date"] >= window_start, "close"].reset_index(drop=True)
        if len(closes) < 2:
            continue
        summary[key] = _window_stats(closes)
    return summary


def _close_frame(history: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    rows = [row for row in history or [] if isinstance(row, Mapping)]
    if not rows:
        return pd.DataFrame(columns=["date", "close"])
    df = pd.DataFrame(rows)
    if "date" not in df.columns or "close" not in df.columns:
        return pd.DataFrame(columns=["date", "close"])
    df = df[["date", "close"]].copy()
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["close"] = pd.to_numeric(df["close"], errors="coerce")
    df = df.dropna(subset=["date", "close"])
    df = df[df["close"] > 0]
    return df.sort_values("date").drop_duplicates(subset="date", keep="last").reset_index(drop=True)


def _window_stats(closes: pd.Series) -> Dict[str, float]:
    start = float(closes.iloc[0])
    end = float(closes.iloc[-1])
    drawdown = float((closes / closes.cummax() - 1.0).min()) * 100
    returns = closes.pct_change().dropna()
    std = float(returns.std()) if len(returns) > 1 else 0.0
    volatility = std * math.sqrt(TRADING_DAYS_PER_YEAR) * 100 if math.isfinite(std) else 0.0
    return {
        "startPrice": round(start, 2),
        "endPrice": round(end, 2),
        "change": round((end / start - 1.0) * 100, 2),
        # + 0.0 folds -0.0 into 0.0
        "maxDrawdown": round(drawdown, 2) + 0.0,
        "volatility": round(volatility, 2),
    }
