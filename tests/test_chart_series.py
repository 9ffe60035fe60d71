from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from stockmemo.domain.models.memo import PeriodRecord, PricePerformanceSummary
from stockmemo.domain.services.chart_series import POINTS_PER_PERIOD, series_for_period, synthesize_series

TODAY = date(2026, 10, 18)


def make_record(start=100.0, end=150.0, volatility=20.0) -> PeriodRecord:
    return PeriodRecord(
        start_price=start,
        end_price=end,
        change=(end / start - 1) * 100,
        max_drawdown=-5.0,
        volatility=volatility,
    )


def test_one_year_series_shape_and_endpoints():
    series = synthesize_series(make_record(), "1Y", rng=np.random.default_rng(7), today=TODAY)
    assert series.period == "1Y"
    assert len(series.points) == 12
    assert series.prices[0] == 100.0
    assert series.prices[-1] == 150.0
    assert all(price > 0 for price in series.prices)
    assert series.labels[-1] == "Oct 26"
    assert series.labels[0] == "Nov 25"


@pytest.mark.parametrize("period", sorted(POINTS_PER_PERIOD))
def test_point_counts(period):
    series = synthesize_series(make_record(), period, rng=np.random.default_rng(0), today=TODAY)
    assert len(series.points) == POINTS_PER_PERIOD[period]
    assert len(set(series.labels)) == len(series.labels)


def test_noise_stays_within_bounds():
    record = make_record()
    series = synthesize_series(record, "5Y", rng=np.random.default_rng(3), today=TODAY)
    bound = 0.5 * (record.volatility / 100) * record.start_price * 0.5
    for i, price in enumerate(series.prices[1:-1], start=1):
        base = record.start_price + (record.end_price - record.start_price) * i / 59
        assert abs(price - base) <= bound + 1e-9


def test_fresh_noise_on_each_draw():
    record = make_record()
    first = synthesize_series(record, "1Y", rng=np.random.default_rng(1), today=TODAY)
    second = synthesize_series(record, "1Y", rng=np.random.default_rng(2), today=TODAY)
    assert first.prices[0] == second.prices[0]
    assert first.prices[-1] == second.prices[-1]
    assert first.prices[1:-1] != second.prices[1:-1]


def test_prices_are_floored():
    record = PeriodRecord(start_price=1.0, end_price=0.001, change=-99.9, max_drawdown=-99.9, volatility=400.0)
    series = synthesize_series(record, "3Y", rng=np.random.default_rng(5), today=TODAY)
    assert min(series.prices) >= 0.01
    assert series.prices[-1] == 0.01


def test_unknown_period_raises():
    with pytest.raises(ValueError):
        synthesize_series(make_record(), "2Y")


def test_missing_period_means_no_data():
    summary = PricePerformanceSummary(one_year=make_record())
    assert series_for_period(summary, "3Y") is None
    assert series_for_period(None, "1Y") is None
    assert len(series_for_period(summary, "1Y", rng=np.random.default_rng(0)).points) == 12
