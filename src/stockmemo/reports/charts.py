"""Price and segment charts rendered with matplotlib."""
from __future__ import annotations

import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from stockmemo.domain.models.memo import PeriodRecord, PricePerformanceSummary, SyntheticPriceSeries  # noqa: E402
from stockmemo.domain.services.chart_series import POINTS_PER_PERIOD, series_for_period  # noqa: E402
from stockmemo.reports.formatting import classify_change, format_percent, format_price  # noqa: E402

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "Data not available for this period"
UP_COLOR = "#22c55e"
DOWN_COLOR = "#f43f5e"
SEGMENT_COLORS = ["#38bdf8", "#a855f7", "#f59e0b", "#22c55e", "#f43f5e"]

_SEGMENT_PATTERN = re.compile(r"^\s*(?P<label>.+?)\s*:\s*(?P<value>-?\d+(?:\.\d+)?)\s*%?\s*$")


def parse_segments(segments: Iterable[str]) -> List[Tuple[str, float]]:
    """Parse ``"Name: 40%"`` strings into (label, value) pairs, skipping malformed entries."""
    parsed: List[Tuple[str, float]] = []
    for raw in segments or []:
        match = _SEGMENT_PATTERN.match(str(raw))
        if match:
            parsed.append((match.group("label"), float(match.group("value"))))
    return parsed


def period_stats(record: Optional[PeriodRecord]) -> List[Tuple[str, str]]:
    """Stats block for one period; empty when the period has no data."""
    if record is None:
        return []
    style = classify_change(record.change)
    return [
        ("Start", format_price(record.start_price)),
        ("Current", format_price(record.end_price)),
        ("Change", f"{style.glyph} {format_percent(record.change)}"),
        ("Max Drawdown", format_percent(record.max_drawdown)),
        ("Volatility", format_percent(record.volatility)),
    ]


class PriceChartManager:
    """Owns the live price figure and redraws it whenever the period changes.

    Every switch draws fresh noise, so two draws of one period agree only on
    their endpoints. The previous figure is closed before a new one is drawn.
    """

    def __init__(
        self,
        summary: Optional[PricePerformanceSummary],
        *,
        symbol: str = "",
        rng: Optional[np.random.Generator] = None,
        today: Optional[date] = None,
    ) -> None:
        self.summary = summary
        self.symbol = symbol
        self.period: Optional[str] = None
        self.series: Optional[SyntheticPriceSeries] = None
        self.figure = None
        self._rng = rng if rng is not None else np.random.default_rng()
        self._today = today

    def switch_period(self, period: str) -> Optional[SyntheticPriceSeries]:
        if period not in POINTS_PER_PERIOD:
            raise ValueError(f"Unsupported chart period {period!r}; expected one of {sorted(POINTS_PER_PERIOD)}")
        self._close_figure()
        self.period = period
        self.series = series_for_period(self.summary, period, rng=self._rng, today=self._today)
        self.figure = self._draw()
        return self.series

    def stats(self) -> List[Tuple[str, str]]:
        if self.summary is None or self.period is None:
            return []
        return period_stats(self.summary.get(self.period))

    def save(self, path: Path) -> Path:
        """Write the current figure as PNG."""
        if self.figure is None:
            raise RuntimeError("No chart drawn yet; call switch_period first")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        buf = io.BytesIO()
        self.figure.tight_layout()
        self.figure.savefig(buf, format="png")
        path.write_bytes(buf.getvalue())
        logger.info("Saved %s chart to %s", self.period, path)
        return path

    def close(self) -> None:
        self._close_figure()
        plt.close("all")

    def _close_figure(self) -> None:
        if self.figure is not None:
            plt.close(self.figure)
            self.figure = None

    def _draw(self):
        fig, ax = plt.subplots(figsize=(6.5, 3.5))
        title = f"{self.symbol} Price Trend ({self.period})".strip()
        ax.set_title(title)
        if self.series is None:
            ax.text(0.5, 0.5, NO_DATA_MESSAGE, ha="center", va="center", transform=ax.transAxes, color="#94a3b8")
            ax.set_axis_off()
            return fig

        record = self.summary.get(self.period) if self.summary is not None else None
        color = UP_COLOR if record is not None and classify_change(record.change).css_class == "positive" else DOWN_COLOR
        labels = self.series.labels
        positions = np.arange(len(labels))
        ax.plot(positions, self.series.prices, color=color, linewidth=1.6)
        ax.fill_between(positions, self.series.prices, alpha=0.08, color=color)
        step = max(1, len(labels) // 6)
        ax.set_xticks(positions[::step])
        ax.set_xticklabels(labels[::step])
        ax.tick_params(axis="x", rotation=45)
        ax.grid(True, linestyle="--", alpha=0.3)

        block = "\n".join(f"{label}: {value}" for label, value in self.stats())
        ax.text(
            0.02,
            0.97,
            block,
            transform=ax.transAxes,
            va="top",
            fontsize=8,
            bbox={"boxstyle": "round", "facecolor": "white", "alpha": 0.8, "edgecolor": "#e2e8f0"},
        )
        return fig


def save_figure(fig, path: Path) -> Path:
    """Write a figure as PNG and release it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, format="png")
    plt.close(fig)
    return path


def draw_segments(segments: Iterable[str], *, symbol: str = ""):
    """Horizontal bar chart of segment shares; None when no entry parses."""
    parsed = parse_segments(segments)
    if not parsed:
        return None
    labels = [label for label, _ in parsed]
    values = [value for _, value in parsed]
    fig, ax = plt.subplots(figsize=(6.5, 0.6 * len(parsed) + 1.2))
    colors = [SEGMENT_COLORS[i % len(SEGMENT_COLORS)] for i in range(len(parsed))]
    ax.barh(labels, values, color=colors, alpha=0.85)
    ax.invert_yaxis()
    ax.set_xlabel("Share of revenue (%)")
    ax.set_title(f"{symbol} Segment Breakdown".strip())
    ax.grid(True, axis="x", linestyle="--", alpha=0.3)
    return fig
