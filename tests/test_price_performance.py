from __future__ import annotations

import numpy as np
import pandas as pd

from stockmemo.domain.services.price_performance import summarize_price_history


def make_history(start: str, end: str, first: float = 100.0, last: float = 200.0):
    dates = pd.bdate_range(start, end)
    closes = np.linspace(first, last, len(dates))
    # Provider order is newest first.
    return [
        {"date": d.strftime("%Y-%m-%d"), "close": float(c)} for d, c in zip(reversed(dates), closes[::-1])
    ]


def test_one_year_window_from_rising_history():
    summary = summarize_price_history(make_history("2022-06-01", "2024-12-31"))

    one_year = summary["oneYear"]
    assert one_year is not None
    assert one_year["endPrice"] == 200.0
    assert one_year["startPrice"] < one_year["endPrice"]
    assert one_year["change"] > 0
    assert one_year["maxDrawdown"] == 0.0
    assert one_year["volatility"] >= 0
    assert summary["threeYear"] is None
    assert summary["fiveYear"] is None


def test_drawdown_is_negative_after_a_drop():
    history = [
        {"date": "2024-01-02", "close": 100},
        {"date": "2024-06-03", "close": 120},
        {"date": "2024-09-02", "close": 90},
        {"date": "2025-01-02", "close": 110},
    ]
    summary = summarize_price_history(history)
    assert summary["oneYear"]["maxDrawdown"] == -25.0
    assert summary["oneYear"]["change"] == 10.0


def test_short_or_empty_history_has_no_windows():
    assert summarize_price_history([]) == {"oneYear": None, "threeYear": None, "fiveYear": None}
    assert summarize_price_history([{"date": "2024-01-02", "close": 10}])["oneYear"] is None
    assert summarize_price_history([{"close": 10}, {"close": 11}])["oneYear"] is None
