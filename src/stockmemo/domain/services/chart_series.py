"""Synthetic monthly price paths reconstructed from period summary statistics.

There is no real time series behind the price chart, only start/end price and
volatility. The path is a linear interpolation with uniform, zero-mean noise
scaled by ``volatility * start * 0.5``. Endpoints are pinned exactly and every
price is floored at ``PRICE_FLOOR``. Each call draws fresh noise from the
supplied generator, so two renders of one period share only their endpoints.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from stockmemo.domain.models.memo import (
    ChartPoint,
    PeriodRecord,
    PricePerformanceSummary,
    SyntheticPriceSeries,
)

POINTS_PER_PERIOD = {"1Y": 12, "3Y": 36, "5Y": 60}
PRICE_FLOOR = 0.01
NOISE_SCALE = 0.5
LABEL_FORMAT = "%b %y"


def synthesize_series(
    record: PeriodRecord,
    period: str,
    *,
    rng: Optional[np.random.Generator] = None,
    today: Optional[date] = None,
) -> SyntheticPriceSeries:
    """Build one point per month for ``period``, oldest first, ending in the current month."""
    if period not in POINTS_PER_PERIOD:
        raise ValueError(f"Unsupported chart period {period!r}; expected one of {sorted(POINTS_PER_PERIOD)}")
    rng = rng if rng is not None else np.random.default_rng()
    anchor = pd.Timestamp(today or date.today())

    count = POINTS_PER_PERIOD[period]
    start = float(record.start_price)
    end = float(record.end_price)
    volatility = float(record.volatility) / 100

    progress = np.arange(count) / (count - 1)
    base = start + (end - start) * progress
    noise = (rng.random(count) - 0.5) * volatility * start * NOISE_SCALE
    prices = base + noise
    prices[0] = start
    prices[-1] = end
    prices = np.maximum(prices, PRICE_FLOOR)

    points = tuple(
        ChartPoint(
            label=(anchor - pd.DateOffset(months=count - i - 1)).strftime(LABEL_FORMAT),
            price=float(prices[i]),
        )
        for i in range(count)
    )
    return SyntheticPriceSeries(period=period, points=points)


def series_for_period(
    summary: Optional[PricePerformanceSummary],
    period: str,
    *,
    rng: Optional[np.random.Generator] = None,
    today: Optional[date] = None,
) -> Optional[SyntheticPriceSeries]:
    """Return None ("no data") when the requested period has no record."""
    if period not in POINTS_PER_PERIOD:
        raise ValueError(f"Unsupported chart period {period!r}")
    record = summary.get(period) if summary is not None else None
    if record is None:
        return None
    return synthesize_series(record, period, rng=rng, today=today)
