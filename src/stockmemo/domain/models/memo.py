"""Domain models describing the data exchanged between pipeline stages."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

NOT_DISCLOSED = "Not disclosed"
NOT_AVAILABLE = "N/A"

EVIDENCE_LEVELS = ("Strong", "Moderate", "Weak")
JUDGMENT_LEVELS = ("High", "Medium", "Low")

# A derived metric is either a rounded number or the NOT_DISCLOSED sentinel.
MetricValue = Union[float, str]

# (payload key, chart period id, table label)
PERIODS: Tuple[Tuple[str, str, str], ...] = (
    ("oneYear", "1Y", "1 Year"),
    ("threeYear", "3Y", "3 Year"),
    ("fiveYear", "5Y", "5 Year"),
)

_ATTR_BY_KEY = {"oneYear": "one_year", "threeYear": "three_year", "fiveYear": "five_year"}

_CAMEL_OVERRIDES = {
    "current_pe": "currentPE",
    "historical_avg_pe": "historicalAvgPE",
    "sector_avg_pe": "sectorAvgPE",
}


def _camel(key: str) -> str:
    if key in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[key]
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(str(k)): _camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_camelize(v) for v in value]
    return value


@dataclass(frozen=True)
class CompanyProfile:
    """Company identity as reported by the data provider."""

    name: str
    symbol: str
    exchange: str
    sector: str
    industry: Optional[str] = None
    pe: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "exchange": self.exchange,
            "sector": self.sector,
            "industry": self.industry,
        }


@dataclass(frozen=True)
class PeriodRecord:
    """Summary statistics for one historical price window."""

    start_price: float
    end_price: float
    change: float  # signed percent
    max_drawdown: float  # percent, <= 0
    volatility: float  # percent, >= 0


@dataclass(frozen=True)
class PricePerformanceSummary:
    one_year: Optional[PeriodRecord] = None
    three_year: Optional[PeriodRecord] = None
    five_year: Optional[PeriodRecord] = None

    def get(self, period: str) -> Optional[PeriodRecord]:
        """Look up a record by chart period id ("1Y") or payload key ("oneYear")."""
        for key, period_id, _ in PERIODS:
            if period in (key, period_id):
                return getattr(self, _ATTR_BY_KEY[key])
        return None

    def available(self) -> List[Tuple[str, PeriodRecord]]:
        """Return (table label, record) pairs for the periods that exist."""
        rows: List[Tuple[str, PeriodRecord]] = []
        for key, _, label in PERIODS:
            record = getattr(self, _ATTR_BY_KEY[key])
            if record is not None:
                rows.append((label, record))
        return rows

    def is_empty(self) -> bool:
        return not self.available()


@dataclass(frozen=True)
class SnapshotYear:
    """One income-statement year; margins are None when revenue is zero or absent."""

    revenue: Optional[float] = None
    ebitda: Optional[float] = None
    net_income: Optional[float] = None
    eps: Optional[float] = None
    operating_margin: Optional[float] = None
    net_margin: Optional[float] = None


@dataclass(frozen=True)
class FinancialSnapshot:
    years: Tuple[str, ...] = ()
    data: Tuple[SnapshotYear, ...] = ()


@dataclass(frozen=True)
class RatioYear:
    roe: MetricValue = NOT_DISCLOSED
    roa: MetricValue = NOT_DISCLOSED
    roce: MetricValue = NOT_DISCLOSED
    debt_to_equity: MetricValue = NOT_DISCLOSED
    interest_coverage: MetricValue = NOT_DISCLOSED
    current_ratio: MetricValue = NOT_DISCLOSED
    free_cash_flow: MetricValue = NOT_DISCLOSED


@dataclass(frozen=True)
class FinancialRatios:
    years: Tuple[str, ...] = ()
    data: Tuple[RatioYear, ...] = ()


@dataclass(frozen=True)
class ValuationMetrics:
    current_pe: MetricValue = NOT_DISCLOSED
    historical_avg_pe: MetricValue = NOT_DISCLOSED
    sector_avg_pe: MetricValue = NOT_DISCLOSED


@dataclass(frozen=True)
class SegmentBreakdown:
    """Placeholder kept for forward compatibility; the provider has no segment data."""

    available: bool = False
    message: str = "Segment data not available from the financial data provider"


@dataclass(frozen=True)
class StructuredFinancialData:
    """Numeric half of the memo, derived from one RawFinancialBundle."""

    price_data: Optional[PricePerformanceSummary] = None
    financial_snapshot: FinancialSnapshot = field(default_factory=FinancialSnapshot)
    financial_ratios: FinancialRatios = field(default_factory=FinancialRatios)
    valuation_metrics: ValuationMetrics = field(default_factory=ValuationMetrics)
    segment_breakdown: SegmentBreakdown = field(default_factory=SegmentBreakdown)

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(asdict(self))


@dataclass(frozen=True)
class PriceContext:
    trend: str = NOT_DISCLOSED
    volatility: str = NOT_DISCLOSED


@dataclass(frozen=True)
class FinancialStructure:
    description: str = NOT_DISCLOSED
    segments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ThesisPoint:
    claim: str = NOT_DISCLOSED
    evidence_strength: str = "Weak"


@dataclass(frozen=True)
class ValuationSanity:
    assessment: str = NOT_DISCLOSED
    reasoning: str = ""


@dataclass(frozen=True)
class JudgmentItem:
    level: str = "Medium"
    reasoning: str = NOT_DISCLOSED


@dataclass(frozen=True)
class JudgmentSupport:
    business_quality: JudgmentItem = field(default_factory=JudgmentItem)
    evidence_strength: JudgmentItem = field(default_factory=JudgmentItem)
    uncertainty_level: JudgmentItem = field(default_factory=JudgmentItem)


@dataclass(frozen=True)
class NarrativeAnalysis:
    """Qualitative half of the memo, after arity normalization."""

    price_context: PriceContext = field(default_factory=PriceContext)
    financial_structure: FinancialStructure = field(default_factory=FinancialStructure)
    business_snapshot: Tuple[str, ...] = ()
    why_this_could_work: Tuple[ThesisPoint, ...] = ()
    key_risks: Tuple[str, ...] = ()
    valuation_sanity: ValuationSanity = field(default_factory=ValuationSanity)
    judgment_support: JudgmentSupport = field(default_factory=JudgmentSupport)
    validation_needs: Tuple[str, ...] = ()
    narrative_context: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(asdict(self))


@dataclass(frozen=True)
class UnifiedReportModel:
    """Company identity joined with structured data and narrative; sole renderer input."""

    company: CompanyProfile
    structured: StructuredFinancialData
    narrative: NarrativeAnalysis

    def to_dict(self) -> Dict[str, Any]:
        research = self.structured.to_dict()
        research.update(self.narrative.to_dict())
        return {"company": self.company.to_dict(), "research": research}


@dataclass(frozen=True)
class TableCell:
    text: str
    style: Optional[str] = None


@dataclass(frozen=True)
class JudgmentEntry:
    label: str
    level: str
    reasoning: str


@dataclass(frozen=True)
class RenderedSection:
    """One memo section, renderable on its own even when its data is absent."""

    key: str
    heading: str
    kind: str  # title | table | list | text | judgment
    tooltip: str = ""
    subtitle: Optional[str] = None
    columns: Tuple[str, ...] = ()
    rows: Tuple[Tuple[TableCell, ...], ...] = ()
    items: Tuple[str, ...] = ()
    paragraphs: Tuple[str, ...] = ()
    judgments: Tuple[JudgmentEntry, ...] = ()
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class RenderedReport:
    sections: Tuple[RenderedSection, ...]
    disclaimer: str

    def section(self, key: str) -> RenderedSection:
        for section in self.sections:
            if section.key == key:
                return section
        raise KeyError(key)


@dataclass(frozen=True)
class ChartPoint:
    label: str
    price: float


@dataclass(frozen=True)
class SyntheticPriceSeries:
    period: str
    points: Tuple[ChartPoint, ...]

    @property
    def labels(self) -> List[str]:
        return [p.label for p in self.points]

    @property
    def prices(self) -> List[float]:
        return [p.price for p in self.points]
