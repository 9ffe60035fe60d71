"""Join company identity, structured data and the LLM narrative into one report model.

The narrative comes from an external model and is never trusted blindly: every
list field is cut or padded to its fixed count, and enumerated tags are mapped
onto the allowed vocabulary. The only hard failure is a missing company identity.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from stockmemo.domain.errors import DataIncompleteError
from stockmemo.domain.models.memo import (
    EVIDENCE_LEVELS,
    JUDGMENT_LEVELS,
    NOT_DISCLOSED,
    CompanyProfile,
    FinancialStructure,
    JudgmentItem,
    JudgmentSupport,
    NarrativeAnalysis,
    PriceContext,
    StructuredFinancialData,
    ThesisPoint,
    UnifiedReportModel,
    ValuationSanity,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

BUSINESS_SNAPSHOT_COUNT = 4
THESIS_COUNT = 3
KEY_RISK_COUNT = 5
VALIDATION_COUNT = 3

REQUIRED_PROFILE_FIELDS = ("name", "symbol", "exchange", "sector")


def normalize_arity(items: Optional[Iterable[T]], count: int, sentinel: Callable[[], T]) -> Tuple[T, ...]:
    """Return exactly ``count`` items: truncate the excess, pad with ``sentinel()``."""
    kept: List[T] = list(items or [])[:count]
    kept.extend(sentinel() for _ in range(count - len(kept)))
    return tuple(kept)


def profile_from_payload(profile: Union[CompanyProfile, Mapping[str, Any], None]) -> CompanyProfile:
    """Build the company identity, raising DataIncompleteError when it cannot be established."""
    if isinstance(profile, CompanyProfile):
        fields = {name: getattr(profile, name) for name in REQUIRED_PROFILE_FIELDS}
        industry, pe = profile.industry, profile.pe
    elif isinstance(profile, Mapping) and profile:
        fields = {
            "name": profile.get("companyName") or profile.get("name"),
            "symbol": profile.get("symbol"),
            "exchange": profile.get("exchangeShortName") or profile.get("exchange"),
            "sector": profile.get("sector"),
        }
        industry = _text(profile.get("industry"), "") or None
        pe = _to_float(profile.get("pe"))
    else:
        raise DataIncompleteError(["profile"])

    missing = [name for name, value in fields.items() if not _text(value, "")]
    if missing:
        raise DataIncompleteError(missing)
    return CompanyProfile(
        name=_text(fields["name"], ""),
        symbol=_text(fields["symbol"], ""),
        exchange=_text(fields["exchange"], ""),
        sector=_text(fields["sector"], ""),
        industry=industry,
        pe=pe,
    )


def narrative_from_payload(payload: Union[NarrativeAnalysis, Mapping[str, Any], None]) -> NarrativeAnalysis:
    """Coerce an LLM narrative object into a NarrativeAnalysis with enforced arity."""
    if isinstance(payload, NarrativeAnalysis):
        payload = payload.to_dict()
    if not isinstance(payload, Mapping):
        payload = {}

    price = _mapping(payload.get("priceContext"))
    structure = _mapping(payload.get("financialStructure"))
    sanity = _mapping(payload.get("valuationSanity"))
    judgment = _mapping(payload.get("judgmentSupport"))
    thesis_raw = payload.get("whyThisCOULDWork")
    if thesis_raw is None:
        thesis_raw = payload.get("whyThisCouldWork")

    return NarrativeAnalysis(
        price_context=PriceContext(
            trend=_text(price.get("trend"), NOT_DISCLOSED),
            volatility=_text(price.get("volatility"), NOT_DISCLOSED),
        ),
        financial_structure=FinancialStructure(
            description=_text(structure.get("description"), NOT_DISCLOSED),
            segments=tuple(_string_items(structure.get("segments"))),
        ),
        business_snapshot=normalize_arity(
            _string_items(payload.get("businessSnapshot")), BUSINESS_SNAPSHOT_COUNT, lambda: NOT_DISCLOSED
        ),
        why_this_could_work=normalize_arity(_thesis_items(thesis_raw), THESIS_COUNT, ThesisPoint),
        key_risks=normalize_arity(_string_items(payload.get("keyRisks")), KEY_RISK_COUNT, lambda: NOT_DISCLOSED),
        valuation_sanity=ValuationSanity(
            assessment=_text(sanity.get("assessment"), NOT_DISCLOSED),
            reasoning=_text(sanity.get("reasoning"), ""),
        ),
        judgment_support=JudgmentSupport(
            business_quality=_judgment(judgment.get("businessQuality")),
            evidence_strength=_judgment(judgment.get("evidenceStrength")),
            uncertainty_level=_judgment(judgment.get("uncertaintyLevel")),
        ),
        validation_needs=normalize_arity(
            _string_items(payload.get("validationNeeds")), VALIDATION_COUNT, lambda: NOT_DISCLOSED
        ),
        narrative_context=tuple(_string_items(payload.get("narrativeContext"))),
    )


class NarrativeMerger:
    """Combine company identity, StructuredFinancialData and the narrative."""

    def merge(
        self,
        profile: Union[CompanyProfile, Mapping[str, Any], None],
        structured: StructuredFinancialData,
        narrative: Union[NarrativeAnalysis, Mapping[str, Any], None],
    ) -> UnifiedReportModel:
        company = profile_from_payload(profile)
        analysis = narrative_from_payload(narrative)
        logger.debug("Merged narrative for %s", company.symbol)
        return UnifiedReportModel(company=company, structured=structured, narrative=analysis)


# -----------------
# Internal helpers
# -----------------


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list, tuple)):
        return default
    text = str(value).strip()
    return text or default


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _string_items(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    items = [str(item).strip() for item in value if item is not None]
    return [item for item in items if item]


def _thesis_items(value: Any) -> List[ThesisPoint]:
    if not isinstance(value, (list, tuple)):
        return []
    points: List[ThesisPoint] = []
    for item in value:
        if isinstance(item, Mapping):
            claim = _text(item.get("claim"), "")
            strength = item.get("evidenceStrength")
        else:
            claim = _text(item, "")
            strength = None
        if claim:
            points.append(ThesisPoint(claim=claim, evidence_strength=_choice(strength, EVIDENCE_LEVELS, "Weak")))
    return points


def _judgment(value: Any) -> JudgmentItem:
    data = _mapping(value)
    return JudgmentItem(
        level=_choice(data.get("level"), JUDGMENT_LEVELS, "Medium"),
        reasoning=_text(data.get("reasoning"), NOT_DISCLOSED),
    )


def _choice(value: Any, allowed: Tuple[str, ...], default: str) -> str:
    text = _text(value, "").lower()
    for option in allowed:
        if text == option.lower():
            return option
    return default
