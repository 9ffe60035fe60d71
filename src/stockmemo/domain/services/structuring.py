"""Domain service turning a raw provider bundle into StructuredFinancialData.

This module implements:
- A five-year financial snapshot with operating and net margins (pandas-based)
- Five years of return, leverage, coverage and liquidity ratios
- Current and historical-average P/E valuation context
- Parsing of the provider's price-performance summary

The implementations are conservative and robust to missing data. A field that
cannot be derived becomes ``NOT_DISCLOSED`` (ratios, valuation) or ``None``
(margins); nothing in here raises for a malformed bundle.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from stockmemo.domain.models.memo import (
    NOT_DISCLOSED,
    PERIODS,
    FinancialRatios,
    FinancialSnapshot,
    MetricValue,
    PeriodRecord,
    PricePerformanceSummary,
    RatioYear,
    SegmentBreakdown,
    SnapshotYear,
    StructuredFinancialData,
    ValuationMetrics,
)

logger = logging.getLogger(__name__)

MAX_YEARS = 5

# Canonical field -> provider aliases, first present wins.
INCOME_MAP = {
    "revenue": ["revenue"],
    "ebitda": ["ebitda"],
    "net_income": ["netIncome"],
    "operating_income": ["operatingIncome"],
    "eps": ["eps", "epsdiluted"],
}

RATIO_MAP = {
    "roe": ["returnOnEquity"],
    "roa": ["returnOnAssets"],
    "debt_to_equity": ["debtEquityRatio", "debtToEquityRatio"],
    "interest_coverage": ["interestCoverage", "interestCoverageRatio"],
    "current_ratio": ["currentRatio"],
}

CASHFLOW_MAP = {"free_cash_flow": ["freeCashFlow"]}

KEY_METRICS_MAP = {"pe_ratio": ["peRatio", "priceEarningsRatio"]}

PERIOD_FIELDS = {
    "start_price": ["startPrice", "start_price"],
    "end_price": ["endPrice", "end_price"],
    "change": ["change"],
    "max_drawdown": ["maxDrawdown", "max_drawdown"],
    "volatility": ["volatility"],
}


class FinancialDataStructurer:
    """Normalize a RawFinancialBundle into the fixed intermediate schema."""

    def structure(self, bundle: Mapping[str, Any]) -> StructuredFinancialData:
        if not isinstance(bundle, Mapping):
            bundle = {}
        profile = bundle.get("profile") if isinstance(bundle.get("profile"), Mapping) else {}

        structured = StructuredFinancialData(
            price_data=parse_price_summary(bundle.get("prices")),
            financial_snapshot=self.snapshot(_records(bundle, "incomeStatement")),
            financial_ratios=self.ratios(_records(bundle, "ratios"), _records(bundle, "cashFlow")),
            valuation_metrics=self.valuation(_records(bundle, "keyMetrics"), profile),
            segment_breakdown=SegmentBreakdown(),
        )
        logger.debug(
            "Structured %d snapshot years, %d ratio years",
            len(structured.financial_snapshot.data),
            len(structured.financial_ratios.data),
        )
        return structured

    def snapshot(self, statements: Sequence[Mapping[str, Any]]) -> FinancialSnapshot:
        """Latest five income statements with margins in percent (newest first, as given)."""
        head = list(statements[:MAX_YEARS])
        if not head:
            return FinancialSnapshot()

        df = _frame_from_records(head, INCOME_MAP)
        revenue = df["revenue"].where(df["revenue"] != 0)
        operating_margin = (df["operating_income"] / revenue * 100).round(2)
        net_margin = (df["net_income"] / revenue * 100).round(2)

        data = tuple(
            SnapshotYear(
                revenue=_clean(df["revenue"].iloc[i]),
                ebitda=_clean(df["ebitda"].iloc[i]),
                net_income=_clean(df["net_income"].iloc[i]),
                eps=_clean(df["eps"].iloc[i]),
                operating_margin=_clean(operating_margin.iloc[i]),
                net_margin=_clean(net_margin.iloc[i]),
            )
            for i in range(len(df))
        )
        return FinancialSnapshot(years=_dates(head), data=data)

    def ratios(
        self,
        ratios: Sequence[Mapping[str, Any]],
        cash_flows: Sequence[Mapping[str, Any]],
    ) -> FinancialRatios:
        """Latest five ratio years; free cash flow is joined from cash_flows by position."""
        head = list(ratios[:MAX_YEARS])
        if not head:
            return FinancialRatios()

        df = _frame_from_records(head, RATIO_MAP)
        roe = (df["roe"] * 100).round(2)
        roa = (df["roa"] * 100).round(2)
        leverage = df["debt_to_equity"].round(2)
        coverage = df["interest_coverage"].round(2)
        liquidity = df["current_ratio"].round(2)

        # NOTE: positional join, not by date. Misaligned provider arrays silently
        # pair a ratio year with another year's free cash flow.
        fcf = _frame_from_records(list(cash_flows), CASHFLOW_MAP)["free_cash_flow"]

        data: List[RatioYear] = []
        for i in range(len(df)):
            data.append(
                RatioYear(
                    roe=_metric(roe.iloc[i]),
                    roa=_metric(roa.iloc[i]),
                    roce=NOT_DISCLOSED,
                    debt_to_equity=_metric(leverage.iloc[i]),
                    interest_coverage=_metric(coverage.iloc[i]),
                    current_ratio=_metric(liquidity.iloc[i]),
                    free_cash_flow=_metric(fcf.iloc[i]) if i < len(fcf) else NOT_DISCLOSED,
                )
            )
        return FinancialRatios(years=_dates(head), data=tuple(data))

    def valuation(
        self,
        key_metrics: Sequence[Mapping[str, Any]],
        profile: Mapping[str, Any],
    ) -> ValuationMetrics:
        pe = _frame_from_records(list(key_metrics), KEY_METRICS_MAP)["pe_ratio"]
        positive = pe[pe > 0]
        historical: MetricValue = (
            round(float(positive.mean()), 2) if not positive.empty else NOT_DISCLOSED
        )

        current = _nonzero(_to_float(profile.get("pe")))
        if current is None and len(pe):
            current = _nonzero(_clean(pe.iloc[0]))

        return ValuationMetrics(
            current_pe=round(current, 2) if current is not None else NOT_DISCLOSED,
            historical_avg_pe=historical,
            sector_avg_pe=NOT_DISCLOSED,
        )


def parse_price_summary(payload: Any) -> Optional[PricePerformanceSummary]:
    """Parse the provider price summary; partial period records count as absent."""
    if isinstance(payload, PricePerformanceSummary):
        return payload
    if not isinstance(payload, Mapping):
        return None
    records: Dict[str, Optional[PeriodRecord]] = {}
    for key, _, _ in PERIODS:
        records[key] = _period_record(payload.get(key))
    return PricePerformanceSummary(
        one_year=records["oneYear"],
        three_year=records["threeYear"],
        five_year=records["fiveYear"],
    )


def _period_record(raw: Any) -> Optional[PeriodRecord]:
    if isinstance(raw, PeriodRecord):
        return raw
    if not isinstance(raw, Mapping):
        return None
    values: Dict[str, float] = {}
    for canonical, candidates in PERIOD_FIELDS.items():
        value = _to_float(_first_present(raw, candidates))
        if value is None:
            return None
        values[canonical] = value
    return PeriodRecord(**values)


# -----------------
# Internal helpers
# -----------------


def _records(bundle: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = bundle.get(key)
    if not isinstance(value, (list, tuple)):
        return []
    return [row if isinstance(row, Mapping) else {} for row in value]


def _frame_from_records(
    records: List[Mapping[str, Any]],
    mapping: Dict[str, List[str]],
) -> pd.DataFrame:
    """Build a numeric frame with one column per canonical key (NaN when absent)."""
    rows = [{key: _first_present(r, aliases) for key, aliases in mapping.items()} for r in records]
    df = pd.DataFrame(rows, columns=list(mapping.keys()))
    for column in df.columns:
        df[column] = pd.to_numeric(df[column], errors="coerce").astype(float)
    return df


def _first_present(row: Mapping[str, Any], candidates: List[str]) -> Any:
    for key in candidates:
        if row.get(key) is not None:
            return row[key]
    return None


def _dates(records: List[Mapping[str, Any]]) -> tuple:
    return tuple(str(r.get("date") or "") for r in records)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _clean(value: Any) -> Optional[float]:
    """Convert pandas/numpy scalars to float, mapping NaN/inf to None."""
    return _to_float(value)


def _metric(value: Any) -> MetricValue:
    parsed = _to_float(value)
    return parsed if parsed is not None else NOT_DISCLOSED


def _nonzero(value: Optional[float]) -> Optional[float]:
    return value if value else None
