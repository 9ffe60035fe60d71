"""Report rendering: UnifiedReportModel -> ordered memo sections -> Markdown/HTML/text."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from stockmemo.domain.models.memo import (
    NOT_DISCLOSED,
    FinancialRatios,
    FinancialSnapshot,
    JudgmentEntry,
    JudgmentItem,
    JudgmentSupport,
    NarrativeAnalysis,
    PricePerformanceSummary,
    RenderedReport,
    RenderedSection,
    SegmentBreakdown,
    TableCell,
    ThesisPoint,
    UnifiedReportModel,
    ValuationMetrics,
    ValuationSanity,
)
from stockmemo.domain.services.narrative_merge import (
    BUSINESS_SNAPSHOT_COUNT,
    KEY_RISK_COUNT,
    THESIS_COUNT,
    VALIDATION_COUNT,
    normalize_arity,
)
from stockmemo.reports.formatting import (
    classify_change,
    format_large_number,
    format_percent,
    format_price,
    format_ratio,
    year_label,
)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

SUBTITLE = "StockMemo - Analytical Research Report"

DISCLAIMER = (
    "This report is an analytical research aid generated using publicly available "
    "information. It does not constitute investment advice."
)

TOOLTIPS: Dict[str, str] = {
    "priceData": (
        "Historical price performance showing start price, end price, percentage change, "
        "maximum drawdown, and volatility for different time periods."
    ),
    "financialSnapshot": (
        "Key income-statement metrics including Revenue, EBITDA, Net Profit, EPS (Earnings "
        "Per Share), and margin percentages over the past 5 years."
    ),
    "segmentBreakdown": (
        "Revenue breakdown by business segment or product line, showing how the company "
        "generates income across different areas."
    ),
    "financialRatios": (
        "Profitability, leverage and liquidity ratios including ROE (Return on Equity), ROA "
        "(Return on Assets), ROCE (Return on Capital Employed), Debt-to-Equity, interest "
        "coverage and free cash flow."
    ),
    "businessSnapshot": (
        "Quick overview of the company's business model, products/services, geographic "
        "presence, and market position."
    ),
    "whyThisCouldWork": (
        "Management-stated claims and strategies that could drive future growth. Evidence "
        "strength indicates reliability of each claim."
    ),
    "keyRisks": "Company-disclosed risk factors that could negatively impact business performance or stock price.",
    "valuationMetrics": (
        "Valuation context comparing the current P/E ratio with its own historical average "
        "and the sector average."
    ),
    "judgmentSupport": (
        "Non-advisory assessment of business quality, evidence strength, and uncertainty "
        "level to support investment analysis."
    ),
    "validationNeeds": "Key assumptions and claims that require further verification before making investment decisions.",
    "narrativeContext": "Recent news, events, and developments that may affect the company's outlook.",
}

HEADINGS: Dict[str, str] = {
    "priceData": "SECTION 1: PRICE & MARKET DATA",
    "financialSnapshot": "SECTION 2: FINANCIAL SNAPSHOT (5 YEARS)",
    "segmentBreakdown": "SECTION 3: SEGMENT & REVENUE BREAKDOWN",
    "financialRatios": "SECTION 4: KEY FINANCIAL RATIOS",
    "businessSnapshot": "SECTION 5: BUSINESS SNAPSHOT",
    "whyThisCouldWork": "SECTION 6: WHY THIS COULD WORK (MANAGEMENT-SUPPORTED)",
    "keyRisks": "SECTION 7: KEY RISKS (COMPANY-DISCLOSED)",
    "valuationMetrics": "SECTION 8: VALUATION CONTEXT",
    "judgmentSupport": "SECTION 9: JUDGMENT SUPPORT (NON-ADVISORY)",
    "validationNeeds": "SECTION 10: WHAT NEEDS VALIDATION NEXT",
    "narrativeContext": "SECTION 11: NEWS & RECENT EVENTS",
}

PRICE_COLUMNS = ("Period", "Start Price", "End Price", "Change %", "Max Drawdown %", "Volatility %")
SNAPSHOT_COLUMNS = ("Year", "Revenue", "EBITDA", "Net Profit", "EPS", "Op Margin %", "Net Margin %")
RATIO_COLUMNS = (
    "Year",
    "ROE %",
    "ROA %",
    "ROCE %",
    "Debt/Equity",
    "Interest Coverage",
    "Current Ratio",
    "Free Cash Flow",
)
VALUATION_COLUMNS = ("Metric", "Value")


@dataclass
class ReportRenderer:
    """Render memos from the unified report model."""

    template_dir: Path = TEMPLATE_DIR
    template_name: str = "memo.md.j2"

    def __post_init__(self) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["md_cell"] = _markdown_cell

    def render(self, context: Dict[str, Any]) -> str:
        """Render the configured template with supplied context."""
        return self.render_template(self.template_name, context)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_markdown(self, report: RenderedReport) -> str:
        return self.render({"report": report})

    def render_html(self, report: RenderedReport) -> str:
        return self.render_template("memo.html.j2", {"report": report})

    def render_plain_text(self, report: RenderedReport) -> str:
        return self.render_template("memo.txt.j2", {"report": report, "rule": "=" * 60})

    # -----------------
    # Section assembly
    # -----------------
    def build(self, model: UnifiedReportModel) -> RenderedReport:
        """Lay the model out as the title plus eleven numbered sections."""
        structured = model.structured
        narrative = model.narrative if model.narrative is not None else NarrativeAnalysis()
        sections = (
            self._title(model),
            self._price_data(structured.price_data),
            self._financial_snapshot(structured.financial_snapshot),
            self._segment_breakdown(structured.segment_breakdown),
            self._financial_ratios(structured.financial_ratios),
            self._string_list("businessSnapshot", narrative.business_snapshot, BUSINESS_SNAPSHOT_COUNT),
            self._why_this_could_work(narrative.why_this_could_work),
            self._string_list("keyRisks", narrative.key_risks, KEY_RISK_COUNT),
            self._valuation(structured.valuation_metrics, narrative.valuation_sanity),
            self._judgment(narrative.judgment_support),
            self._string_list("validationNeeds", narrative.validation_needs, VALIDATION_COUNT),
            self._narrative_context(narrative.narrative_context),
        )
        return RenderedReport(sections=sections, disclaimer=DISCLAIMER)

    def _title(self, model: UnifiedReportModel) -> RenderedSection:
        company = model.company
        return RenderedSection(
            key="title",
            heading=f"{company.name} | {company.exchange} | {company.sector}",
            kind="title",
            subtitle=SUBTITLE,
        )

    def _price_data(self, price_data: Optional[PricePerformanceSummary]) -> RenderedSection:
        available = price_data.available() if price_data is not None else []
        if not available:
            return _placeholder("priceData", "table", "Price data not available")

        rows = []
        for label, record in available:
            style = classify_change(record.change)
            rows.append(
                (
                    TableCell(label),
                    TableCell(format_price(record.start_price)),
                    TableCell(format_price(record.end_price)),
                    TableCell(f"{style.glyph} {format_percent(record.change)}", style.css_class),
                    TableCell(format_percent(record.max_drawdown), "negative"),
                    TableCell(format_percent(record.volatility)),
                )
            )
        return _table("priceData", PRICE_COLUMNS, rows)

    def _financial_snapshot(self, snapshot: Optional[FinancialSnapshot]) -> RenderedSection:
        if snapshot is None or not snapshot.data:
            return _placeholder(
                "financialSnapshot",
                "table",
                "Financial data not available",
                heading="SECTION 2: FINANCIAL SNAPSHOT",
            )

        rows = []
        for i, year in enumerate(snapshot.data):
            rows.append(
                (
                    TableCell(year_label(_at(snapshot.years, i), i)),
                    TableCell(format_large_number(year.revenue)),
                    TableCell(format_large_number(year.ebitda)),
                    TableCell(format_large_number(year.net_income)),
                    TableCell(format_ratio(year.eps)),
                    TableCell(format_percent(year.operating_margin)),
                    TableCell(format_percent(year.net_margin)),
                )
            )
        return _table("financialSnapshot", SNAPSHOT_COLUMNS, rows)

    def _segment_breakdown(self, segments: Optional[SegmentBreakdown]) -> RenderedSection:
        if segments is None or not segments.available:
            message = segments.message if segments is not None else ""
            return _placeholder("segmentBreakdown", "text", message or "Segment data not available")
        return RenderedSection(
            key="segmentBreakdown",
            heading=HEADINGS["segmentBreakdown"],
            tooltip=TOOLTIPS["segmentBreakdown"],
            kind="text",
            paragraphs=("Segment data will be displayed here once available",),
        )

    def _financial_ratios(self, ratios: Optional[FinancialRatios]) -> RenderedSection:
        if ratios is None or not ratios.data:
            return _placeholder("financialRatios", "table", "Financial ratios not available")

        rows = []
        for i, year in enumerate(ratios.data):
            rows.append(
                (
                    TableCell(year_label(_at(ratios.years, i), i)),
                    TableCell(format_ratio(year.roe)),
                    TableCell(format_ratio(year.roa)),
                    TableCell(format_ratio(year.roce)),
                    TableCell(format_ratio(year.debt_to_equity)),
                    TableCell(format_ratio(year.interest_coverage)),
                    TableCell(format_ratio(year.current_ratio)),
                    TableCell(format_large_number(year.free_cash_flow)),
                )
            )
        return _table("financialRatios", RATIO_COLUMNS, rows)

    def _string_list(self, key: str, items: Sequence[str], count: int) -> RenderedSection:
        padded = normalize_arity([i for i in items or () if i], count, lambda: NOT_DISCLOSED)
        return RenderedSection(
            key=key,
            heading=HEADINGS[key],
            tooltip=TOOLTIPS[key],
            kind="list",
            items=padded,
        )

    def _why_this_could_work(self, points: Sequence[ThesisPoint]) -> RenderedSection:
        padded = normalize_arity(points or (), THESIS_COUNT, ThesisPoint)
        return RenderedSection(
            key="whyThisCouldWork",
            heading=HEADINGS["whyThisCouldWork"],
            tooltip=TOOLTIPS["whyThisCouldWork"],
            kind="list",
            items=tuple(f"{p.claim} [{p.evidence_strength}]" for p in padded),
        )

    def _valuation(
        self,
        metrics: Optional[ValuationMetrics],
        sanity: Optional[ValuationSanity],
    ) -> RenderedSection:
        paragraphs: Tuple[str, ...] = ()
        if sanity is not None:
            paragraphs = (f"Assessment: {sanity.assessment or NOT_DISCLOSED}",)
            if sanity.reasoning:
                paragraphs += (sanity.reasoning,)

        if metrics is None:
            return _placeholder("valuationMetrics", "table", "Valuation metrics not available", paragraphs=paragraphs)

        rows = [
            (TableCell("Current P/E"), TableCell(format_ratio(metrics.current_pe))),
            (TableCell("Historical Avg P/E"), TableCell(format_ratio(metrics.historical_avg_pe))),
            (TableCell("Sector Avg P/E"), TableCell(format_ratio(metrics.sector_avg_pe))),
        ]
        return _table("valuationMetrics", VALUATION_COLUMNS, rows, paragraphs=paragraphs)

    def _judgment(self, judgment: Optional[JudgmentSupport]) -> RenderedSection:
        judgment = judgment or JudgmentSupport()
        entries = (
            _judgment_entry("Business Quality", judgment.business_quality),
            _judgment_entry("Evidence Strength", judgment.evidence_strength),
            _judgment_entry("Uncertainty Level", judgment.uncertainty_level),
        )
        return RenderedSection(
            key="judgmentSupport",
            heading=HEADINGS["judgmentSupport"],
            tooltip=TOOLTIPS["judgmentSupport"],
            kind="judgment",
            judgments=entries,
        )

    def _narrative_context(self, items: Sequence[str]) -> RenderedSection:
        kept = tuple(i for i in items or () if i)
        if not kept:
            return _placeholder("narrativeContext", "list", "No recent news available")
        return RenderedSection(
            key="narrativeContext",
            heading=HEADINGS["narrativeContext"],
            tooltip=TOOLTIPS["narrativeContext"],
            kind="list",
            items=kept,
        )


def _placeholder(
    key: str,
    kind: str,
    message: str,
    *,
    heading: Optional[str] = None,
    paragraphs: Tuple[str, ...] = (),
) -> RenderedSection:
    return RenderedSection(
        key=key,
        heading=heading or HEADINGS[key],
        tooltip=TOOLTIPS[key],
        kind=kind,
        placeholder=message,
        paragraphs=paragraphs,
    )


def _table(
    key: str,
    columns: Tuple[str, ...],
    rows: List[Tuple[TableCell, ...]],
    *,
    paragraphs: Tuple[str, ...] = (),
) -> RenderedSection:
    return RenderedSection(
        key=key,
        heading=HEADINGS[key],
        tooltip=TOOLTIPS[key],
        kind="table",
        columns=columns,
        rows=tuple(rows),
        paragraphs=paragraphs,
    )


def _judgment_entry(label: str, item: Optional[JudgmentItem]) -> JudgmentEntry:
    item = item or JudgmentItem()
    return JudgmentEntry(label=label, level=item.level, reasoning=item.reasoning)


def _at(values: Sequence[str], index: int) -> Optional[str]:
    return values[index] if index < len(values) else None


def _markdown_cell(value: Any) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")
